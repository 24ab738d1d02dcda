"""Terminal color utilities.

Provides ANSI color support with automatic TTY detection and NO_COLOR
support. Used by the console log handler.
"""

from __future__ import annotations

import os
import sys
from typing import TextIO

GREEN = "32"
YELLOW = "33"
RED = "31"
BOLD_RED = "1;31"
CYAN = "36"


def use_color(stream: TextIO = sys.stderr) -> bool:
    """True if the given stream is an interactive terminal and NO_COLOR is not set."""
    if os.environ.get("NO_COLOR"):
        return False
    return hasattr(stream, "isatty") and stream.isatty()


def colorize(text: str, code: str, enabled: bool) -> str:
    """Wrap text in ANSI color escape if enabled.

    >>> colorize('OK', GREEN, False)
    'OK'
    >>> colorize('OK', GREEN, True)
    '\\x1b[32mOK\\x1b[0m'
    """
    if not enabled:
        return text
    return f"\033[{code}m{text}\033[0m"
