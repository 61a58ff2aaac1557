"""Terminal styling and the warning/success message helpers."""

from __future__ import annotations

import os
import sys

_RESET = "\x1b[0m"
_BOLD = "1"
_RED = "31"
_GREEN = "32"
_BLUE = "34"


def no_emoji() -> bool:
    """Return True when the user asked for output without emoji."""
    return "NO_EMOJI" in os.environ


def emoji(fancy: str, plain: str) -> str:
    """Pick the emoji form of a symbol, or its plain fallback."""
    return plain if no_emoji() else fancy


def _colors_enabled() -> bool:
    force = os.environ.get("CLICOLOR_FORCE")
    if force is not None and force != "0":
        return True
    if os.environ.get("CLICOLOR") == "0":
        return False
    isatty = getattr(sys.stdout, "isatty", None)
    return bool(isatty and isatty())


def _style(text: object, code: str) -> str:
    text = str(text)
    if not _colors_enabled():
        return text
    return f"\x1b[{code}m{text}{_RESET}"


def bold(text: object) -> str:
    """Render text in bold."""
    return _style(text, _BOLD)


def red(text: object) -> str:
    """Render text in red."""
    return _style(text, _RED)


def green(text: object) -> str:
    """Render text in green."""
    return _style(text, _GREEN)


def blue(text: object) -> str:
    """Render text in blue."""
    return _style(text, _BLUE)


def warn(message: str) -> None:
    """Print a warning line in red."""
    print(f"{red(emoji('⚠️ ', '!'))} {red(message)}")


def success(message: str) -> None:
    """Print a success line in green."""
    print(f"{green(emoji('✅', '✓'))} {green(message)}")