"""External tool detection and version parsing.

Resolves ffmpeg and ffprobe from configured paths or PATH and checks that
they answer a version query before any conversion is attempted.
"""

import logging
import re
import shutil
import subprocess  # nosec B404 - subprocess is required for tool detection
from pathlib import Path

from vconv.core.subprocess_utils import run_command
from vconv.exceptions import ToolNotAvailableError
from vconv.tools.models import ToolInfo, ToolStatus

logger = logging.getLogger(__name__)

# Timeout for version detection commands (seconds)
DETECTION_TIMEOUT = 10

# ffmpeg and ffprobe both print "<name> version <version> Copyright ..."
_VERSION_PATTERN = re.compile(r"^\S+ version (\S+)", re.MULTILINE)

INSTALL_HINTS: dict[str, str] = {
    "ffmpeg": "Install it and try again (https://ffmpeg.org/download.html)",
    "ffprobe": "ffprobe ships with ffmpeg; install ffmpeg and try again",
}


def find_tool(name: str, configured_path: Path | None = None) -> Path | None:
    """Find a tool executable.

    Args:
        name: Tool name (e.g., "ffmpeg").
        configured_path: Optional configured path override.

    Returns:
        Path to tool executable, or None if not found.
    """
    if configured_path:
        if configured_path.is_file():
            return configured_path
        logger.warning(
            "Configured path for %s is not a file: %s", name, configured_path
        )

    which_result = shutil.which(name)
    if which_result:
        return Path(which_result)

    return None


def detect_tool(name: str, configured_path: Path | None = None) -> ToolInfo:
    """Locate a tool and query its version.

    Args:
        name: Tool name (e.g., "ffmpeg").
        configured_path: Optional configured path override.

    Returns:
        ToolInfo describing the detection result. Never raises.
    """
    info = ToolInfo(name=name)

    path = find_tool(name, configured_path)
    if path is None:
        info.status_message = f"{name} not found in PATH"
        return info

    info.path = path

    try:
        stdout, stderr, rc = run_command(
            [path, "-version"], timeout=DETECTION_TIMEOUT
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        info.status = ToolStatus.ERROR
        info.status_message = f"Failed to run {name}: {e}"
        return info

    if rc != 0:
        info.status = ToolStatus.ERROR
        info.status_message = f"Failed to get {name} version: {stderr.strip()}"
        return info

    version_match = _VERSION_PATTERN.search(stdout)
    if version_match:
        info.version = version_match.group(1)

    info.status = ToolStatus.AVAILABLE
    logger.debug("Detected %s %s at %s", name, info.version or "(unknown)", path)
    return info


def require_tool(name: str, configured_path: Path | None = None) -> Path:
    """Get path to a required tool, raising if it is not usable.

    Args:
        name: Tool name.
        configured_path: Optional configured path override.

    Returns:
        Path to the tool executable.

    Raises:
        ToolNotAvailableError: If the tool is missing or fails its version
            check.
    """
    info = detect_tool(name, configured_path)
    if not info.is_available() or info.path is None:
        logger.debug("%s unusable: %s", name, info.status_message)
        raise ToolNotAvailableError(name, INSTALL_HINTS.get(name, ""))
    return info.path
