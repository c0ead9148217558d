"""Domain models for a conversion run.

A run is described by an immutable ConversionRequest and reports back through
a stream of ProgressEvent values. Events are transient, in-memory and
consumed exactly once, in the order produced.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Union

from vconv.domain.enums import FormatTag
from vconv.exceptions import CanceledError, ConversionError

# Status text of the final event of a successful run
COMPLETION_STATUS = "FINISHED_OK"


@dataclass(frozen=True)
class ConversionRequest:
    """What to convert, where to, and with which preset."""

    input_path: Path
    output_path: Path
    format_tag: FormatTag

    def __post_init__(self) -> None:
        # Accept plain strings and tag names from callers; store normalized values
        object.__setattr__(self, "input_path", Path(self.input_path))
        object.__setattr__(self, "output_path", Path(self.output_path))
        object.__setattr__(self, "format_tag", FormatTag.parse(self.format_tag))


@dataclass(frozen=True)
class Started:
    """The transcoder process was spawned."""

    @property
    def terminal(self) -> bool:
        return False


@dataclass(frozen=True)
class Percent:
    """Completion fraction in [0.0, 1.0]."""

    value: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", min(1.0, max(0.0, float(self.value))))

    @property
    def terminal(self) -> bool:
        return False


@dataclass(frozen=True)
class StatusLine:
    """Human-readable status text.

    final is set only on the completion status that ends a successful run.
    """

    text: str
    final: bool = False

    @property
    def terminal(self) -> bool:
        return self.final


@dataclass(frozen=True)
class Failure:
    """Terminal failure of a run (including user cancellation)."""

    error: ConversionError

    @property
    def terminal(self) -> bool:
        return True

    @property
    def canceled(self) -> bool:
        return isinstance(self.error, CanceledError)

    @property
    def message(self) -> str:
        return str(self.error)


ProgressEvent = Union[Started, Percent, StatusLine, Failure]


def completion_event() -> StatusLine:
    """Build the completion status that terminates a successful run."""
    return StatusLine(COMPLETION_STATUS, final=True)
