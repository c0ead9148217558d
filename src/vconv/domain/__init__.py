"""Domain types shared across vconv modules."""

from vconv.domain.enums import FormatTag
from vconv.domain.models import (
    COMPLETION_STATUS,
    ConversionRequest,
    Failure,
    Percent,
    ProgressEvent,
    Started,
    StatusLine,
    completion_event,
)

__all__ = [
    "COMPLETION_STATUS",
    "ConversionRequest",
    "Failure",
    "FormatTag",
    "Percent",
    "ProgressEvent",
    "Started",
    "StatusLine",
    "completion_event",
]
