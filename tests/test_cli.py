import io
import json
import subprocess
from pathlib import Path
from unittest import mock

import pytest

from crablings.cli import (
    ExerciseCheckList,
    ExerciseResult,
    ExerciseStatistics,
    build_parser,
    cicv_verify,
    find_exercise,
    list_exercises,
    main,
    rustc_exists,
)
from crablings.exercise import Exercise, Mode

PENDING = "// fake_exercise\n\n// I AM NOT DONE\n\nfn main() {\n\n}\n"
FINISHED = "// fake_exercise\n\nfn main() {\n\n}\n"


def _make(tmp_path, name, body, mode=Mode.COMPILE, hint=""):
    path = tmp_path / f"{name}.rs"
    path.write_text(body, encoding="utf-8")
    return Exercise(name=name, path=path, mode=mode, hint=hint)


def _project(tmp_path, entries):
    """entries: (name, mode string, body, hint); paths are relative to tmp_path."""
    lines = []
    for name, mode, body, hint in entries:
        (tmp_path / f"{name}.rs").write_text(body, encoding="utf-8")
        lines += [
            "[[exercises]]",
            f'name = "{name}"',
            f'path = "{name}.rs"',
            f'mode = "{mode}"',
            f'hint = "{hint}"',
            "",
        ]
    (tmp_path / "info.toml").write_text("\n".join(lines), encoding="utf-8")


def _fake_run(code):
    def fake(args, *rest, **kwargs):
        if list(args) == ["rustc", "--version"]:
            return subprocess.CompletedProcess(args, 0)
        return subprocess.CompletedProcess(args, code, b"", b"compile error")

    return fake


def test_parser_reads_list_options():
    args = build_parser().parse_args(["list", "-p", "-f", "foo,bar", "-s"])
    assert args.command == "list"
    assert args.paths is True
    assert args.names is False
    assert args.filter == "foo,bar"
    assert args.solved is True
    assert args.unsolved is False


def test_parser_reads_global_switches_and_name():
    args = build_parser().parse_args(["--nocapture", "run", "intro1"])
    assert args.nocapture is True
    assert args.command == "run"
    assert args.name == "intro1"


def test_reset_without_name_exits_with_one():
    with pytest.raises(SystemExit) as info:
        main(["reset"])
    assert info.value.code == 1


def test_version_flag(capsys):
    assert main(["--version"]) == 0
    assert capsys.readouterr().out == "v5.5.1\n"


def test_fails_when_in_wrong_dir(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    assert main([]) == 1
    assert "Try `cd crablings/`!" in capsys.readouterr().out


def test_rustc_missing(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    _project(tmp_path, [("compSuccess", "compile", FINISHED, "")])
    with mock.patch("subprocess.run", side_effect=FileNotFoundError("rustc")):
        assert main(["verify"]) == 1
    assert "We cannot find `rustc`." in capsys.readouterr().out


def test_rustc_exists_reports_both_ways():
    with mock.patch("subprocess.run", side_effect=FileNotFoundError("rustc")):
        assert rustc_exists() is False
    with mock.patch("subprocess.run", return_value=subprocess.CompletedProcess([], 0)):
        assert rustc_exists() is True
    with mock.patch("subprocess.run", return_value=subprocess.CompletedProcess([], 1)):
        assert rustc_exists() is False


def test_find_exercise_by_name(tmp_path):
    exercises = [_make(tmp_path, "a", FINISHED), _make(tmp_path, "b", PENDING)]
    assert find_exercise("b", exercises) is exercises[1]


def test_find_exercise_next_is_first_pending(tmp_path):
    exercises = [
        _make(tmp_path, "a", FINISHED),
        _make(tmp_path, "b", PENDING),
        _make(tmp_path, "c", PENDING),
    ]
    assert find_exercise("next", exercises).name == "b"


def test_find_exercise_next_when_all_done(tmp_path):
    exercises = [_make(tmp_path, "a", FINISHED)]
    with pytest.raises(LookupError, match="Congratulations"):
        find_exercise("next", exercises)


def test_find_exercise_unknown(tmp_path):
    with pytest.raises(LookupError, match="No exercise found for 'zzz'!"):
        find_exercise("zzz", [_make(tmp_path, "a", FINISHED)])


def test_list_shows_done_and_pending(tmp_path):
    exercises = [_make(tmp_path, "done", FINISHED), _make(tmp_path, "pend", PENDING)]
    out = io.StringIO()
    assert list_exercises(exercises, out=out) == 1
    text = out.getvalue()
    assert text.splitlines()[0] == f"{'Name':<17}\t{'Path':<46}\t{'Status':<7}"
    assert "Done" in text and "Pending" in text
    assert text.endswith("Progress: You completed 1 / 2 exercises (50.0 %).\n")


def test_list_solved_hides_pending(tmp_path):
    exercises = [_make(tmp_path, "done", FINISHED), _make(tmp_path, "pend", PENDING)]
    out = io.StringIO()
    list_exercises(exercises, solved=True, out=out)
    assert "Pending" not in out.getvalue()
    assert "done" in out.getvalue()


def test_list_unsolved_hides_done(tmp_path):
    exercises = [_make(tmp_path, "done", FINISHED), _make(tmp_path, "pend", PENDING)]
    out = io.StringIO()
    list_exercises(exercises, unsolved=True, out=out)
    assert "Done" not in out.getvalue()
    assert "pend" in out.getvalue()


def test_list_names_with_filter(tmp_path):
    exercises = [
        _make(tmp_path, "variables1", FINISHED),
        _make(tmp_path, "if1", FINISHED),
    ]
    out = io.StringIO()
    list_exercises(exercises, names=True, pattern="IF, ", out=out)
    assert out.getvalue().splitlines() == [
        "if1",
        "Progress: You completed 2 / 2 exercises (100.0 %).",
    ]


def test_list_paths_only(tmp_path):
    exercises = [_make(tmp_path, "a", FINISHED)]
    out = io.StringIO()
    list_exercises(exercises, paths=True, out=out)
    assert out.getvalue().splitlines()[0] == str(tmp_path / "a.rs")


def test_list_empty_filter_shows_nothing(tmp_path):
    exercises = [_make(tmp_path, "a", FINISHED)]
    out = io.StringIO()
    list_exercises(exercises, names=True, pattern="", out=out)
    assert out.getvalue().splitlines() == [
        "Progress: You completed 1 / 1 exercises (100.0 %)."
    ]


def test_check_list_to_dict():
    report = ExerciseCheckList(
        exercises=[ExerciseResult(name="intro1", result=True)],
        statistics=ExerciseStatistics(
            total_exercations=1, total_succeeds=1, total_failures=0, total_time=3
        ),
    )
    assert report.to_dict() == {
        "exercises": [{"name": "intro1", "result": True}],
        "user_name": None,
        "statistics": {
            "total_exercations": 1,
            "total_succeeds": 1,
            "total_failures": 0,
            "total_time": 3,
        },
    }


def test_cicv_verify_records_failures(tmp_path):
    exercises = [_make(tmp_path, "a", FINISHED), _make(tmp_path, "b", FINISHED)]
    output = tmp_path / "check_result.json"
    with mock.patch("subprocess.run", side_effect=_fake_run(1)):
        report = cicv_verify(exercises, output)
    assert report.statistics.total_failures == 2
    assert report.statistics.total_succeeds == 0
    data = json.loads(output.read_text(encoding="utf-8"))
    assert data["statistics"]["total_exercations"] == 2
    assert data["user_name"] is None
    assert sorted((e["name"], e["result"]) for e in data["exercises"]) == [
        ("a", False),
        ("b", False),
    ]


def test_cicv_verify_records_successes(tmp_path):
    exercises = [_make(tmp_path, "a", FINISHED), _make(tmp_path, "b", PENDING)]
    output = tmp_path / "check_result.json"
    with mock.patch("subprocess.run", side_effect=_fake_run(0)):
        report = cicv_verify(exercises, output)
    assert report.statistics.total_succeeds == 2
    assert report.statistics.total_failures == 0
    data = json.loads(output.read_text(encoding="utf-8"))
    assert all(e["result"] for e in data["exercises"])


def test_main_cicvverify_succeeds(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    _project(tmp_path, [("compFailure", "compile", FINISHED, "")])
    (tmp_path / ".github" / "result").mkdir(parents=True)
    with mock.patch("subprocess.run", side_effect=_fake_run(1)):
        assert main(["--nocapture", "cicvverify"]) == 0
    data = json.loads(
        (tmp_path / ".github" / "result" / "check_result.json").read_text(encoding="utf-8")
    )
    assert data["exercises"] == [{"name": "compFailure", "result": False}]


def test_get_hint_for_single_test(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    _project(tmp_path, [("testFailure", "test", FINISHED, "Hello!")])
    with mock.patch("subprocess.run", side_effect=_fake_run(0)):
        assert main(["hint", "testFailure"]) == 0
    assert capsys.readouterr().out == "Hello!\n"


def test_run_unknown_exercise(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    _project(tmp_path, [("compNoExercise", "compile", FINISHED, "")])
    with mock.patch("subprocess.run", side_effect=_fake_run(0)):
        assert main(["run", "compNoExercise.rs"]) == 1
    assert "No exercise found for 'compNoExercise.rs'!" in capsys.readouterr().out


def test_run_single_compile_success(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    _project(tmp_path, [("compSuccess", "compile", FINISHED, "")])
    with mock.patch("subprocess.run", side_effect=_fake_run(0)):
        assert main(["run", "compSuccess"]) == 0


def test_run_single_compile_failure(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    _project(tmp_path, [("compFailure", "compile", FINISHED, "")])
    with mock.patch("subprocess.run", side_effect=_fake_run(1)):
        assert main(["run", "compFailure"]) == 1


def test_run_compile_exercise_does_not_prompt(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    _project(tmp_path, [("pending_exercise", "compile", PENDING, "")])
    with mock.patch("subprocess.run", side_effect=_fake_run(0)):
        assert main(["run", "pending_exercise"]) == 0
    assert "I AM NOT DONE" not in capsys.readouterr().out


def test_verify_all_success(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    _project(
        tmp_path,
        [
            ("compSuccess", "compile", FINISHED, ""),
            ("testSuccess", "test", FINISHED, ""),
        ],
    )
    with mock.patch("subprocess.run", side_effect=_fake_run(0)):
        assert main(["verify"]) == 0


def test_verify_fails_if_some_fails(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    _project(tmp_path, [("compFailure", "compile", FINISHED, "")])
    with mock.patch("subprocess.run", side_effect=_fake_run(1)):
        assert main(["verify"]) == 1


def test_main_list_without_pending(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    _project(
        tmp_path,
        [
            ("finished_exercise", "compile", FINISHED, ""),
            ("pending_exercise", "compile", PENDING, ""),
        ],
    )
    with mock.patch("subprocess.run", side_effect=_fake_run(0)):
        assert main(["list", "--solved"]) == 0
    out = capsys.readouterr().out
    assert "Pending" not in out
    assert "finished_exercise" in out


def test_main_list_without_done(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    _project(
        tmp_path,
        [
            ("finished_exercise", "compile", FINISHED, ""),
            ("pending_exercise", "compile", PENDING, ""),
        ],
    )
    with mock.patch("subprocess.run", side_effect=_fake_run(0)):
        assert main(["list", "--unsolved"]) == 0
    out = capsys.readouterr().out
    assert "Done" not in out
    assert "pending_exercise" in out


def test_main_without_command_prints_intro(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    _project(tmp_path, [("compSuccess", "compile", FINISHED, "")])
    with mock.patch("subprocess.run", side_effect=_fake_run(0)):
        assert main([]) == 0
    out = capsys.readouterr().out
    assert "welcome to..." in out
    assert "Thanks for installing Crablings!" in out