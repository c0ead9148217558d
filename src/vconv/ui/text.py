"""Terminal text width helpers.

File names and ffmpeg status lines can contain wide characters (CJK, emoji)
that take two terminal columns, so fitting them uses display width rather
than character count.
"""

from __future__ import annotations

import shutil

from wcwidth import wcswidth

ELLIPSIS = "..."


def display_width(s: str) -> int:
    """Get the display width of a string, accounting for wide Unicode chars."""
    width = wcswidth(s)
    # wcswidth returns -1 if string contains non-printable characters
    return width if width >= 0 else len(s)


def truncate(s: str, max_width: int) -> str:
    """Truncate a string with an ellipsis if its display width exceeds max."""
    if display_width(s) <= max_width:
        return s
    if max_width <= len(ELLIPSIS):
        return ELLIPSIS[:max(0, max_width)]
    truncated = ""
    for char in s:
        if display_width(truncated + char + ELLIPSIS) > max_width:
            break
        truncated += char
    return truncated + ELLIPSIS


def terminal_width(default: int = 80) -> int:
    return shutil.get_terminal_size((default, 24)).columns
