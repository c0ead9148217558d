"""External tool detection and ffmpeg output parsing."""

from vconv.tools.detection import (
    INSTALL_HINTS,
    detect_tool,
    find_tool,
    require_tool,
)
from vconv.tools.ffmpeg_progress import (
    FFmpegProgress,
    ProgressParser,
    compute_fraction,
    is_status_line,
    parse_hms,
    parse_out_time,
    parse_out_time_ms,
    parse_status_line,
    parse_stderr_progress,
)
from vconv.tools.models import ToolInfo, ToolStatus

__all__ = [
    # Detection
    "INSTALL_HINTS",
    "ToolInfo",
    "ToolStatus",
    "detect_tool",
    "find_tool",
    "require_tool",
    # Progress parsing
    "FFmpegProgress",
    "ProgressParser",
    "compute_fraction",
    "is_status_line",
    "parse_hms",
    "parse_out_time",
    "parse_out_time_ms",
    "parse_status_line",
    "parse_stderr_progress",
]
