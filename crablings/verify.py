"""Checking exercises: compile, run or test them and report progress."""

from __future__ import annotations

from enum import Enum, auto
from typing import Iterable

from tqdm import tqdm

from .exercise import CompiledExercise, Exercise, ExerciseError, Mode
from .ui import blue, bold, no_emoji, success, warn

_BAR_FORMAT = "Progress: [{bar:60}] {n_fmt}/{total_fmt} {desc}"

_SUCCESS_HEADLINES = {
    Mode.COMPILE: "Successfully ran {}!",
    Mode.TEST: "Successfully tested {}!",
    Mode.CLIPPY: "Successfully compiled {}!",
    Mode.BUILD_SCRIPT: "Successfully compiled {}!",
}


class RunMode(Enum):
    """Whether a passing exercise prompts the user to move on."""

    INTERACTIVE = auto()
    NON_INTERACTIVE = auto()


class VerificationFailed(Exception):
    """An exercise did not compile, run or pass its tests, or is not finished."""

    def __init__(self, exercise: Exercise) -> None:
        super().__init__(f"verification of {exercise} failed")
        self.exercise = exercise


def _percentage_text(percentage: float) -> str:
    return f"({percentage:.1f} %)"


def verify(
    exercises: Iterable[Exercise],
    progress: tuple[int, int],
    verbose: bool = False,
    success_hints: bool = False,
) -> None:
    """Check exercises in order; raise VerificationFailed at the first that fails."""
    num_done, total = progress
    step = 100.0 / total if total else 0.0
    percentage = num_done * step
    bar = tqdm(total=total, initial=num_done, bar_format=_BAR_FORMAT, ascii="-#")
    bar.set_description_str(_percentage_text(percentage))
    try:
        for exercise in exercises:
            try:
                passed = _check(exercise, verbose, success_hints)
            except VerificationFailed:
                passed = False
            if not passed:
                raise VerificationFailed(exercise)
            percentage += step
            bar.update(1)
            bar.set_description_str(_percentage_text(percentage))
    finally:
        bar.close()


def _check(exercise: Exercise, verbose: bool, success_hints: bool) -> bool:
    if exercise.mode in (Mode.TEST, Mode.BUILD_SCRIPT):
        return _compile_and_test(exercise, RunMode.INTERACTIVE, verbose, success_hints)
    if exercise.mode is Mode.COMPILE:
        return _compile_and_run_interactively(exercise, success_hints)
    return _compile_only(exercise, success_hints)


def test(exercise: Exercise, verbose: bool = False) -> None:
    """Compile and run the exercise's tests; raise VerificationFailed on failure."""
    _compile_and_test(exercise, RunMode.NON_INTERACTIVE, verbose, False)


def _compile(exercise: Exercise) -> CompiledExercise:
    try:
        return exercise.compile()
    except ExerciseError as exc:
        warn(f"Compiling of {exercise} failed! Please try again. Here's the output:")
        print(exc.output.stderr)
        raise VerificationFailed(exercise) from exc


def _compile_only(exercise: Exercise, success_hints: bool) -> bool:
    with _compile(exercise):
        pass
    return prompt_for_completion(exercise, None, success_hints)


def _compile_and_run_interactively(exercise: Exercise, success_hints: bool) -> bool:
    with _compile(exercise) as compiled:
        try:
            output = compiled.run()
        except ExerciseError as exc:
            warn(f"Ran {exercise} with errors")
            print(exc.output.stdout)
            print(exc.output.stderr)
            raise VerificationFailed(exercise) from exc
        return prompt_for_completion(exercise, output.stdout, success_hints)


def _compile_and_test(
    exercise: Exercise, run_mode: RunMode, verbose: bool, success_hints: bool
) -> bool:
    with _compile(exercise) as compiled:
        try:
            output = compiled.run()
        except ExerciseError as exc:
            warn(f"Testing of {exercise} failed! Please try again. Here's the output:")
            print(exc.output.stdout)
            raise VerificationFailed(exercise) from exc
    if verbose:
        print(output.stdout)
    if run_mode is RunMode.INTERACTIVE:
        return prompt_for_completion(exercise, None, success_hints)
    return True


def separator() -> str:
    """The bold rule that frames output and hints."""
    return bold("====================")


def prompt_for_completion(
    exercise: Exercise, prompt_output: str | None, success_hints: bool
) -> bool:
    """Return True if the exercise is done; otherwise show where the marker is."""
    state = exercise.state()
    if state.done():
        return True

    success(_SUCCESS_HEADLINES[exercise.mode].format(exercise))

    plain = no_emoji()
    if plain:
        clippy_msg = "The code is compiling, and Clippy is happy!"
    else:
        clippy_msg = "The code is compiling, and 📎 Clippy 📎 is happy!"
    success_msg = {
        Mode.COMPILE: "The code is compiling!",
        Mode.TEST: "The code is compiling, and the tests pass!",
        Mode.CLIPPY: clippy_msg,
        Mode.BUILD_SCRIPT: "Build script works!",
    }[exercise.mode]

    print()
    if plain:
        print(f"~*~ {success_msg} ~*~")
    else:
        print(f"🎉 🎉  {success_msg} 🎉 🎉")
    print()

    if prompt_output is not None:
        print("Output:")
        print(separator())
        print(prompt_output)
        print(separator())
        print()
    if success_hints:
        print("Hints:")
        print(separator())
        print(exercise.hint)
        print(separator())
        print()

    print("You can keep working on this exercise,")
    print(f"or jump into the next one by removing the {bold('`I AM NOT DONE`')} comment:")
    print()
    for context_line in state.context:
        text = bold(context_line.line) if context_line.important else context_line.line
        number = blue(bold(f"{context_line.number:>2}"))
        print(f"{number} {blue('|')}  {text}")

    return False