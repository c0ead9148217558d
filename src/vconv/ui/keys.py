"""Keyboard input normalization.

click.getchar() returns raw terminal sequences; the screen transitions only
deal in Key values. Ctrl+C is not a key: click.getchar raises
KeyboardInterrupt for it, and the driver handles that separately.
"""

from __future__ import annotations

from enum import Enum

import click


class Key(Enum):
    """Logical keys understood by the screens."""

    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"
    ENTER = "enter"
    ESC = "esc"
    BACKSPACE = "backspace"
    QUIT = "q"
    OTHER = "other"


# POSIX escape sequences first, then the Windows console prefixes
_SEQUENCES: dict[str, Key] = {
    "\x1b[A": Key.UP,
    "\x1b[B": Key.DOWN,
    "\x1b[C": Key.RIGHT,
    "\x1b[D": Key.LEFT,
    "\x1bOA": Key.UP,
    "\x1bOB": Key.DOWN,
    "\x1bOC": Key.RIGHT,
    "\x1bOD": Key.LEFT,
    "\xe0H": Key.UP,
    "\xe0P": Key.DOWN,
    "\xe0M": Key.RIGHT,
    "\xe0K": Key.LEFT,
    "\x00H": Key.UP,
    "\x00P": Key.DOWN,
    "\x00M": Key.RIGHT,
    "\x00K": Key.LEFT,
    "\r": Key.ENTER,
    "\n": Key.ENTER,
    "\x1b": Key.ESC,
    "\x7f": Key.BACKSPACE,
    "\x08": Key.BACKSPACE,
    "k": Key.UP,
    "j": Key.DOWN,
    "h": Key.LEFT,
    "l": Key.RIGHT,
    "q": Key.QUIT,
}


def normalize_key(raw: str) -> Key:
    """Map a raw character sequence from click.getchar to a Key."""
    return _SEQUENCES.get(raw, Key.OTHER)


def read_key() -> Key:
    """Block until a key is pressed and return it normalized.

    Raises:
        KeyboardInterrupt: On Ctrl+C.
        EOFError: On Ctrl+D / Ctrl+Z.
    """
    return normalize_key(click.getchar())
