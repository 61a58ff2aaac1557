"""Running a single exercise and resetting it."""

from __future__ import annotations

import subprocess

from .exercise import Exercise, ExerciseError, Mode
from .ui import success, warn
from .verify import VerificationFailed, test


class RunFailed(Exception):
    """Running or resetting an exercise did not succeed."""


def run(exercise: Exercise, verbose: bool = False) -> None:
    """Compile and run, or test, one exercise; raise RunFailed on failure."""
    if exercise.mode in (Mode.TEST, Mode.BUILD_SCRIPT):
        try:
            test(exercise, verbose)
        except VerificationFailed as exc:
            raise RunFailed(str(exc)) from exc
    else:
        _compile_and_run(exercise)


def reset(exercise: Exercise) -> None:
    """Stash the changes made to the exercise file with git."""
    try:
        subprocess.Popen(["git", "stash", "--", str(exercise.path)])
    except OSError as exc:
        raise RunFailed(f"could not reset {exercise}: {exc}") from exc


def _compile_and_run(exercise: Exercise) -> None:
    try:
        compiled = exercise.compile()
    except ExerciseError as exc:
        warn(f"Compilation of {exercise} failed!, Compiler error message:\n")
        print(exc.output.stderr)
        raise RunFailed(f"compilation of {exercise} failed") from exc

    with compiled:
        try:
            output = compiled.run()
        except ExerciseError as exc:
            print(exc.output.stdout)
            print(exc.output.stderr)
            warn(f"Ran {exercise} with errors")
            raise RunFailed(f"{exercise} ran with errors") from exc

    print(output.stdout)
    success(f"Successfully ran {exercise}")