"""Data models for external tool detection."""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class ToolStatus(Enum):
    """Availability status of an external tool."""

    AVAILABLE = "available"
    MISSING = "missing"
    ERROR = "error"  # Found, but the version check failed


@dataclass
class ToolInfo:
    """Detection result for a single external tool."""

    name: str
    status: ToolStatus = ToolStatus.MISSING
    path: Path | None = None
    version: str | None = None
    status_message: str | None = None

    def is_available(self) -> bool:
        """Return True if the tool was found and answered a version check."""
        return self.status == ToolStatus.AVAILABLE and self.path is not None
