"""Configuration data models.

This module defines dataclasses for vconv configuration options.
"""

from dataclasses import dataclass, field
from pathlib import Path

from vconv.domain.enums import FormatTag


@dataclass
class ToolPathsConfig:
    """Configuration for external tool paths.

    All paths are optional. If not specified, tools are looked up in PATH.
    """

    ffmpeg: Path | None = None
    ffprobe: Path | None = None


@dataclass
class ConversionConfig:
    """Configuration for conversion runs."""

    # Format used when -format is not given
    default_format: str = FormatTag.H264.value

    # Event channel bound; advisory events beyond this are dropped
    channel_capacity: int = 32

    # Seconds to wait after SIGTERM before killing a canceled ffmpeg
    cancel_grace_seconds: float = 3.0

    # ffprobe timeout in seconds
    probe_timeout_seconds: int = 60

    # Directory the file picker opens in (None = home directory)
    start_directory: Path | None = None

    def __post_init__(self) -> None:
        """Validate configuration."""
        FormatTag.parse(self.default_format)
        if self.channel_capacity < 1:
            raise ValueError(
                f"channel_capacity must be at least 1, got {self.channel_capacity}"
            )
        if self.cancel_grace_seconds < 0:
            raise ValueError(
                "cancel_grace_seconds must be non-negative, "
                f"got {self.cancel_grace_seconds}"
            )
        if self.probe_timeout_seconds < 1:
            raise ValueError(
                "probe_timeout_seconds must be at least 1, "
                f"got {self.probe_timeout_seconds}"
            )


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    # Log level: debug, info, warning, error
    level: str = "warning"

    # Log file path (None = stderr only)
    file: Path | None = None

    # Log format: text or json
    format: str = "text"

    # Also log to stderr when file is set
    include_stderr: bool = False

    # Rotation threshold in bytes (default 10MB)
    max_bytes: int = 10_485_760

    # Number of rotated files to keep
    backup_count: int = 5

    def __post_init__(self) -> None:
        """Validate configuration."""
        valid_levels = {"debug", "info", "warning", "error"}
        if self.level.lower() not in valid_levels:
            raise ValueError(f"level must be one of {valid_levels}, got {self.level}")
        valid_formats = {"text", "json"}
        if self.format.lower() not in valid_formats:
            raise ValueError(
                f"format must be one of {valid_formats}, got {self.format}"
            )


@dataclass
class VConvConfig:
    """Main configuration container for vconv.

    Aggregates all configuration sections.
    """

    tools: ToolPathsConfig = field(default_factory=ToolPathsConfig)
    conversion: ConversionConfig = field(default_factory=ConversionConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def get_tool_path(self, tool_name: str) -> Path | None:
        """Get configured path for a tool.

        Args:
            tool_name: Name of the tool (ffmpeg, ffprobe).

        Returns:
            Configured path or None if not configured.
        """
        return getattr(self.tools, tool_name.lower(), None)
