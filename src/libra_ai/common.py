"""Terminal output helpers for the command line."""

import sys
from enum import Enum
from typing import Any


class AnsiColors(Enum):
    """
    ANSI color codes for terminal output.
    """

    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[33m"
    BLUE = "\033[94m"


def colored_print(text: str, color: AnsiColors, *args: Any, **kwargs: Any) -> None:
    """
    Print text in color when writing to a terminal, plain otherwise.

    Args:
        text: The text to print
        color: The color to use (AnsiColors enum)
        args: Additional positional arguments for print
        kwargs: Additional keyword arguments for print
    """
    stream = kwargs.get("file") or sys.stdout
    if getattr(stream, "isatty", lambda: False)():
        text = f"{color.value}{text}\033[0m"  # ANSI reset at the end
    print(text, *args, **kwargs)


def shorten(text: str, width: int = 72) -> str:
    """Collapse whitespace and cut *text* to *width* characters with an ellipsis."""
    text = " ".join(text.split())
    if len(text) <= width:
        return text
    return text[: width - 1].rstrip() + "…"
