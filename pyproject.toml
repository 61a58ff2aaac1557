[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "crablings"
version = "5.5.1"
description = "Runner for small Rust exercises: compiles, tests, lints and tracks your progress"
requires-python = ">=3.11"
keywords = ["rust", "exercises", "learning", "education", "rustc", "clippy"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Education",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Education :: Computer Aided Instruction (CAI)",
]
dependencies = [
    "watchdog",
    "tqdm",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
crablings = "crablings.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["crablings"]

[tool.pytest.ini_options]
addopts = "-ra"
