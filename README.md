# crablings

A runner for small Rust exercises. It compiles each exercise with `rustc` (or
lints it with `cargo clippy`, or runs `cargo test` for build-script exercises),
runs the program or its tests, and shows how far along the list you are.

The package is the runner only. The exercises themselves and the `info.toml`
file that lists them live in your working directory and are not installed with
the package.

## Requirements

- Python 3.11 or newer
- A Rust toolchain with `rustc` on your `PATH` (and `cargo` for clippy and
  build-script exercises)
- `git`, for `crablings reset`

## Installing

```
pip install .
```

## The exercise list

Every command except `--version` must be run from a directory that holds an
`info.toml` file; run from anywhere else, the runner prints a message and exits
with status 1. It also exits with status 1 if `rustc --version` cannot be run.

`info.toml` holds a list of exercises, each with a name, a path, a mode and a
hint:

```toml
[[exercises]]
name = "intro1"
path = "exercises/intro/intro1.rs"
mode = "compile"
hint = "No hints this time ;)"
```

The mode is one of:

- `compile`: build the file with `rustc` and run the program
- `test`: build the file as a test harness with `rustc --test` and run the tests
- `clippy`: write `exercises/clippy/Cargo.toml` for the exercise and run
  `cargo clippy` with warnings denied
- `buildscript`: write `exercises/tests/Cargo.toml` for the exercise and run
  `cargo test`

## Usage

```
crablings                  # welcome text and a short introduction
crablings --version        # print the version (also -v)
crablings watch            # verify in order and re-check every time a file is saved
crablings verify           # verify all exercises once, in order
crablings run NAME         # compile and run (or test) one exercise
crablings run next         # run the first exercise that is not done yet
crablings hint NAME        # print the hint for an exercise
crablings reset NAME       # stash your changes to an exercise with "git stash -- <path>"
crablings list             # table of exercises with Done / Pending status
crablings lsp              # write rust-project.json for rust-analyzer
crablings cicvverify       # run every exercise and write a JSON report
```

`run`, `hint` and `reset` exit with status 1 when no exercise has the given
name; `run` and `verify` exit with status 1 when an exercise fails to compile,
run or pass its tests.

Pass `--nocapture` before the subcommand to see the output of test exercises:

```
crablings --nocapture run testSuccess
```

### Listing

`crablings list` prints a table of names, paths and status, then a progress
line. It takes these options:

- `-p`, `--paths`: print only exercise paths
- `-n`, `--names`: print only exercise names
- `-f`, `--filter PATTERNS`: comma-separated substrings to match against names
  or paths (lower-cased before matching)
- `-u`, `--unsolved`: show only exercises that are not done
- `-s`, `--solved`: show only exercises that are done

### Verifying and watching

`crablings verify` checks the exercises in the order of `info.toml` and stops at
the first one that fails or is still marked as pending, showing the lines around
the marker.

`crablings watch` does the same, then watches the `exercises/` folder. Whenever
an `.rs` file is created or changed, it re-checks that exercise first and then
every other unfinished one. While it runs, type one of these commands and press
Enter:

- `hint`: print the hint for the exercise that last failed
- `clear`: clear the screen
- `quit`: leave watch mode
- `!<cmd>`: run a command, for example `!rustc --explain E0381`
- `help`: list these commands

`crablings watch --success-hints` also prints the hint after an exercise passes.

### Marking an exercise as done

An exercise counts as pending while its file still has a line of the form
`// I AM NOT DONE` (or `/// I AM NOT DONE`). Once it compiles and passes, remove
that line to move on to the next one.

### Grading report

`crablings cicvverify` runs every exercise concurrently, prints the result of
each, and writes a JSON summary with a pass or fail result per exercise and the
totals to `.github/result/check_result.json`. The `.github/result/` directory
must already exist.

### rust-analyzer

`crablings lsp` writes `rust-project.json`, registering every `.rs` file below
`exercises/` as a crate. The standard-library source path is taken from
`RUST_SRC_PATH` if it is set, otherwise from `rustc --print sysroot`.

### Environment

- `NO_EMOJI`: set to any value to get plain-text markers instead of emoji.
- `RUST_SRC_PATH`: the standard-library source path that `crablings lsp` writes.
- `CLICOLOR_FORCE` (non-zero) forces coloured output; `CLICOLOR=0` turns it off.
  Otherwise colour is used only when standard output is a terminal.

## Using it from Python

The pieces behind the commands can be used directly:

```python
from crablings.exercise import load_exercises
from crablings.verify import VerificationFailed, verify

exercises = load_exercises("info.toml")
try:
    verify(exercises, (0, len(exercises)))
except VerificationFailed as exc:
    print("stopped at", exc.exercise.name)
```

`Exercise.state()` returns the pending context around the marker,
`Exercise.looks_done()` tells whether the marker is gone, and
`crablings.run.run` raises `RunFailed` when an exercise does not succeed.