"""Watch mode: re-check exercises whenever their files change."""

from __future__ import annotations

import os
import queue
import subprocess
import sys
import threading
from enum import Enum, auto
from pathlib import Path
from typing import Iterable, Sequence

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .exercise import Exercise
from .verify import VerificationFailed, verify

_HELP = """Commands available to you in watch mode:
  hint   - prints the current exercise's hint
  clear  - clears the screen
  quit   - quits watch mode
  !<cmd> - executes a command, like `!rustc --explain E0381`
  help   - displays this help message

Watch mode automatically re-evaluates the current exercise
when you edit a file's contents."""


class WatchStatus(Enum):
    """How watch mode ended."""

    FINISHED = auto()
    UNFINISHED = auto()


def clear_screen() -> None:
    """Clear the terminal with an ANSI escape code."""
    print("\x1bc")


def _ends_with(full: Path, tail: Path) -> bool:
    tail_parts = tail.parts
    return bool(tail_parts) and full.parts[-len(tail_parts):] == tail_parts


def pending_after_change(
    exercises: Sequence[Exercise], changed_path: str | os.PathLike[str]
) -> list[Exercise]:
    """The changed exercise first, then every other unfinished one in order."""
    changed = Path(changed_path)
    changed_first = [next((e for e in exercises if _ends_with(changed, e.path)), None)]
    others = [
        e for e in exercises if not e.looks_done() and not _ends_with(changed, e.path)
    ]
    return [e for e in changed_first if e is not None] + others


class WatchShell:
    """The small command shell that runs alongside watch mode."""

    def __init__(self, hint: str | None = None) -> None:
        self.hint = hint
        self.should_quit = threading.Event()

    def handle(self, line: str) -> None:
        """Carry out one command typed by the user."""
        command = line.strip()
        if command == "hint":
            if self.hint is not None:
                print(self.hint)
        elif command == "clear":
            print("\x1b[2J\x1b[1;1H")
        elif command == "quit":
            self.should_quit.set()
            print("Bye!")
        elif command == "help":
            print(_HELP)
        elif command.startswith("!"):
            cmd = command[1:]
            parts = cmd.split()
            if not parts:
                print("no command provided")
                return
            try:
                subprocess.run(parts)
            except OSError as exc:
                print(f"failed to execute command `{cmd}`: {exc}")
        else:
            print(f"unknown command: {command}")

    def _loop(self) -> None:
        while True:
            try:
                line = sys.stdin.readline()
            except (OSError, ValueError) as exc:
                print(f"error reading command: {exc}")
                return
            if not line:
                return
            self.handle(line)

    def start(self) -> threading.Thread:
        """Read commands from standard input in a background thread."""
        print(
            "Welcome to watch mode! You can type 'help' to get an overview "
            "of the commands you can use here."
        )
        thread = threading.Thread(target=self._loop, daemon=True)
        thread.start()
        return thread


class _Forwarder(FileSystemEventHandler):
    def __init__(self, events: queue.Queue[str]) -> None:
        super().__init__()
        self._events = events

    def _forward(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._events.put(os.fsdecode(event.src_path))

    def on_created(self, event: FileSystemEvent) -> None:
        self._forward(event)

    def on_modified(self, event: FileSystemEvent) -> None:
        self._forward(event)


def _drain(events: queue.Queue[str], first: str) -> Iterable[str]:
    seen = {first: None}
    while True:
        try:
            seen.setdefault(events.get_nowait(), None)
        except queue.Empty:
            return seen.keys()


def watch(
    exercises: Sequence[Exercise], verbose: bool = False, success_hints: bool = False
) -> WatchStatus:
    """Verify exercises, then re-verify on every change until done or quit."""
    events: queue.Queue[str] = queue.Queue()
    observer = Observer()
    observer.schedule(_Forwarder(events), "./exercises", recursive=True)
    observer.start()
    try:
        clear_screen()
        try:
            verify(exercises, (0, len(exercises)), verbose, success_hints)
            return WatchStatus.FINISHED
        except VerificationFailed as exc:
            shell = WatchShell(exc.exercise.hint)
        shell.start()

        while True:
            try:
                first = events.get(timeout=1.0)
            except queue.Empty:
                pass
            else:
                for raw in _drain(events, first):
                    path = Path(raw)
                    if path.suffix != ".rs" or not path.exists():
                        continue
                    pending = pending_after_change(exercises, path.resolve())
                    num_done = sum(1 for e in exercises if e.looks_done())
                    clear_screen()
                    try:
                        verify(pending, (num_done, len(exercises)), verbose, success_hints)
                        return WatchStatus.FINISHED
                    except VerificationFailed as exc:
                        shell.hint = exc.exercise.hint
            if shell.should_quit.is_set():
                return WatchStatus.UNFINISHED
    finally:
        observer.stop()
        observer.join()