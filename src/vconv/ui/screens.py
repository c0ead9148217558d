"""Screen states of the interactive converter.

Each screen is an immutable value holding only the data that screen needs.
Transitions (see vconv.ui.transitions) take a screen and return the next
one; nothing is mutated in place.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Union

from vconv.domain.enums import FormatTag
from vconv.domain.models import ConversionRequest
from vconv.ui.picker import DirEntry

FORMAT_CHOICES: tuple[FormatTag, ...] = tuple(FormatTag)


@dataclass(frozen=True)
class PickerScreen:
    """Browsing a directory for the input file."""

    directory: Path
    entries: tuple[DirEntry, ...] = ()
    cursor: int = 0
    error: str | None = None
    error_expires_at: float | None = None  # time.monotonic() deadline

    @property
    def selected(self) -> DirEntry | None:
        if not self.entries:
            return None
        return self.entries[self.cursor]


@dataclass(frozen=True)
class FormatScreen:
    """Choosing the output format for the selected input."""

    input_path: Path
    cursor: int = 0

    @property
    def format_tag(self) -> FormatTag:
        return FORMAT_CHOICES[self.cursor]


@dataclass(frozen=True)
class ConfirmScreen:
    """Reviewing input, format and output before starting."""

    request: ConversionRequest


@dataclass(frozen=True)
class RunningScreen:
    """A conversion is in flight."""

    request: ConversionRequest
    percent: float = 0.0
    last_status: str = ""


@dataclass(frozen=True)
class DoneScreen:
    """The conversion finished successfully."""

    output_path: Path


@dataclass(frozen=True)
class ErrorScreen:
    """The conversion failed; any key goes back to format selection."""

    input_path: Path
    message: str
    format_tag: FormatTag | None = None


@dataclass(frozen=True)
class ExitScreen:
    """The session is over."""

    exit_code: int = 0
    canceled: bool = False


Screen = Union[
    PickerScreen,
    FormatScreen,
    ConfirmScreen,
    RunningScreen,
    DoneScreen,
    ErrorScreen,
    ExitScreen,
]
