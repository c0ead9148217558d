"""FFmpeg progress parsing utilities.

Parses the two live text streams of a running ffmpeg:

- stdout, written by ``-progress pipe:1``: key=value lines such as
  ``out_time_ms=125000`` or ``out_time=00:02:05.000000``;
- stderr: free-form diagnostics, including stats lines such as
  ``frame=  120 fps= 30 ... time=00:00:04.00 ... speed=1.02x``.

Malformed or unknown lines are never errors; every parse function returns
None for input it does not understand.
"""

import math
import re
from dataclasses import dataclass

from vconv.domain.models import Percent, StatusLine

OUT_TIME_MS_KEY = "out_time_ms"
OUT_TIME_KEY = "out_time"

# Substrings that mark a stderr line as a status line worth showing
STATUS_MARKERS = ("frame=", "speed=", "time=")


@dataclass
class FFmpegProgress:
    """Fields parsed from one ffmpeg stderr stats line."""

    frame: int | None = None
    fps: float | None = None
    bitrate: str | None = None
    out_time_seconds: float | None = None
    speed: str | None = None


# Regex patterns for ffmpeg stderr stats lines
PROGRESS_PATTERNS = {
    "frame": re.compile(r"frame=\s*(\d+)"),
    "fps": re.compile(r"fps=\s*([\d.]+)"),
    "bitrate": re.compile(r"bitrate=\s*([^\s]+)"),
    "speed": re.compile(r"speed=\s*([^\s]+)"),
}
_STDERR_TIME_PATTERN = re.compile(r"time=\s*(-?\d+:\d+:\d+(?:\.\d+)?)")


def _split_key_value(line: str) -> tuple[str, str] | None:
    line = line.strip()
    if "=" not in line:
        return None
    key, _, value = line.partition("=")
    return key.strip(), value.strip()


def parse_out_time_ms(line: str) -> float | None:
    """Parse an ``out_time_ms=<integer>`` progress line.

    Args:
        line: A line from ffmpeg's -progress output.

    Returns:
        Elapsed output time in milliseconds, or None if the line is not an
        out_time_ms line or its value is not numeric (e.g. "N/A").
    """
    pair = _split_key_value(line)
    if pair is None or pair[0] != OUT_TIME_MS_KEY:
        return None
    try:
        value = float(pair[1])
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def parse_hms(text: str) -> float | None:
    """Parse an ``HH:MM:SS.fraction`` timestamp into seconds.

    Args:
        text: Timestamp such as "00:02:05.00".

    Returns:
        hours * 3600 + minutes * 60 + seconds, or None if unparseable.
    """
    parts = text.strip().split(":", 2)
    if len(parts) != 3:
        return None
    try:
        hours, minutes, seconds = (float(p) for p in parts)
    except ValueError:
        return None
    total = hours * 3600 + minutes * 60 + seconds
    return total if math.isfinite(total) else None


def parse_out_time(line: str) -> float | None:
    """Parse an ``out_time=<HH:MM:SS.fraction>`` progress line into seconds."""
    pair = _split_key_value(line)
    if pair is None or pair[0] != OUT_TIME_KEY:
        return None
    return parse_hms(pair[1])


def compute_fraction(elapsed_seconds: float, duration_seconds: float) -> float:
    """Convert elapsed output time into a completion fraction.

    Args:
        elapsed_seconds: Output time processed so far.
        duration_seconds: Total media duration.

    Returns:
        elapsed / duration clamped to [0.0, 1.0]; 0.0 when the duration is
        not a positive number.
    """
    if not duration_seconds > 0 or not math.isfinite(duration_seconds):
        return 0.0
    fraction = elapsed_seconds / duration_seconds
    if math.isnan(fraction):
        return 0.0
    return min(1.0, max(0.0, fraction))


class ProgressParser:
    """Incremental parser for one run's -progress stream.

    out_time_ms is the primary source. out_time is used only until the
    first out_time_ms value arrives, since ffmpeg writes both in every block.
    """

    def __init__(self, duration_seconds: float) -> None:
        self.duration_seconds = duration_seconds
        self._saw_out_time_ms = False

    def feed(self, line: str) -> Percent | None:
        """Parse one progress line.

        Returns:
            A Percent event, or None if the line carries no usable time.
        """
        ms = parse_out_time_ms(line)
        if ms is not None:
            self._saw_out_time_ms = True
            return Percent(compute_fraction(ms / 1000.0, self.duration_seconds))

        if self._saw_out_time_ms:
            return None

        seconds = parse_out_time(line)
        if seconds is not None:
            return Percent(compute_fraction(seconds, self.duration_seconds))
        return None


def is_status_line(line: str) -> bool:
    """Return True if a stderr line should be shown as a status line."""
    return any(marker in line for marker in STATUS_MARKERS)


def parse_status_line(line: str) -> StatusLine | None:
    """Forward a stderr stats line verbatim as a StatusLine event.

    Args:
        line: A line from ffmpeg stderr, with or without its terminator.

    Returns:
        StatusLine carrying the original text, or None for other lines.
    """
    text = line.rstrip("\r\n")
    if not is_status_line(text):
        return None
    return StatusLine(text)


def parse_stderr_progress(line: str) -> FFmpegProgress | None:
    """Parse the fields of an ffmpeg stderr stats line.

    Args:
        line: A line from ffmpeg stderr.

    Returns:
        Parsed FFmpegProgress, or None if the line is not a stats line.
    """
    if "frame=" not in line and "size=" not in line:
        return None

    result = FFmpegProgress()

    frame = PROGRESS_PATTERNS["frame"].search(line)
    if frame:
        result.frame = int(frame.group(1))

    fps = PROGRESS_PATTERNS["fps"].search(line)
    if fps:
        try:
            result.fps = float(fps.group(1))
        except ValueError:
            result.fps = None

    for key in ("bitrate", "speed"):
        match = PROGRESS_PATTERNS[key].search(line)
        if match and match.group(1) != "N/A":
            setattr(result, key, match.group(1))

    time_match = _STDERR_TIME_PATTERN.search(line)
    if time_match:
        result.out_time_seconds = parse_hms(time_match.group(1))

    return result
