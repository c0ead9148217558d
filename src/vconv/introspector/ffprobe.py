"""FFprobe-based duration prober.

Total media duration is required before progress can be reported as a
fraction, so a failed probe is a fatal precondition failure for the run.
"""

import logging
import math
import subprocess  # nosec B404 - needed for TimeoutExpired
from pathlib import Path

from vconv.core.subprocess_utils import run_command
from vconv.exceptions import ProbeError

logger = logging.getLogger(__name__)


class FFprobeIntrospector:
    """Reads container duration with ffprobe."""

    DEFAULT_TIMEOUT: int = 60

    def __init__(
        self,
        ffprobe_path: Path | str = "ffprobe",
        timeout: int | None = None,
    ) -> None:
        """Initialize the introspector.

        Args:
            ffprobe_path: Path to the ffprobe executable (default: PATH lookup).
            timeout: Probe timeout in seconds. None uses DEFAULT_TIMEOUT.
        """
        self._ffprobe_path = Path(ffprobe_path)
        self._timeout = timeout if timeout is not None else self.DEFAULT_TIMEOUT

    def build_command(self, path: Path) -> list[str]:
        """Return the ffprobe command line that prints only the duration."""
        return [
            str(self._ffprobe_path),
            "-v",
            "error",
            "-show_entries",
            "format=duration",
            "-of",
            "default=noprint_wrappers=1:nokey=1",
            str(path),
        ]

    def get_duration(self, path: Path) -> float:
        """Get the total duration of a media file.

        Args:
            path: Path to a readable media file.

        Returns:
            Duration in seconds, always a positive finite number.

        Raises:
            ProbeError: If the file is missing, ffprobe cannot run, times
                out, exits non-zero, or prints an empty, non-numeric or
                non-positive duration.
        """
        path = Path(path)
        if not path.exists():
            raise ProbeError(f"ffprobe error: file not found: {path}")

        try:
            stdout, stderr, rc = run_command(
                self.build_command(path), timeout=self._timeout
            )
        except subprocess.TimeoutExpired as e:
            raise ProbeError(
                f"ffprobe error: timed out for {path} after {e.timeout}s"
            ) from e
        except OSError as e:
            raise ProbeError(f"ffprobe error: cannot run ffprobe: {e}") from e

        if rc != 0:
            detail = stderr.strip() or f"exit status {rc}"
            raise ProbeError(f"ffprobe error: {detail}")

        text = stdout.strip()
        if not text:
            raise ProbeError("ffprobe error: ffprobe returned empty output")

        # Some containers report one duration per line; the first is the format
        first_line = text.splitlines()[0].strip()
        try:
            duration = float(first_line)
        except ValueError as e:
            raise ProbeError(
                f"ffprobe error: unparsable duration {first_line!r}"
            ) from e

        if not math.isfinite(duration) or duration <= 0:
            raise ProbeError(f"ffprobe error: invalid duration {first_line!r}")

        logger.debug("Probed duration %.3fs for %s", duration, path)
        return duration
