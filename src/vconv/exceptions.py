"""Exception hierarchy for vconv.

Run-level failures derive from ConversionError so the UI can surface any of
them through a single Failure event. Malformed progress or status lines are
never errors; they are dropped by the parser.
"""

from __future__ import annotations


class VConvError(Exception):
    """Base exception for all vconv errors."""


class ConfigError(VConvError):
    """Raised when the configuration file cannot be parsed in strict mode."""


class ToolNotAvailableError(VConvError):
    """Raised when a required external tool cannot be found.

    Attributes:
        tool_name: Name of the missing tool (e.g. "ffmpeg").
    """

    def __init__(self, tool_name: str, hint: str = "") -> None:
        self.tool_name = tool_name
        message = f"{tool_name} not found in PATH"
        if hint:
            message = f"{message}. {hint}"
        super().__init__(message)


class ChannelClosedError(VConvError):
    """Raised when sending to, or closing, an already closed event channel."""


class ConversionError(VConvError):
    """Base exception for failures of a single conversion run.

    All run errors inherit from this class, allowing callers to catch every
    fatal run condition with a single except clause.
    """


class ProbeError(ConversionError):
    """Raised when the media duration cannot be determined.

    Fatal precondition failure: the run is aborted before any process is
    spawned.
    """


class LaunchError(ConversionError):
    """Raised when the transcoder process cannot be started."""


class ProcessError(ConversionError):
    """Raised (or reported) when the transcoder exits non-zero or crashes.

    Attributes:
        returncode: Process exit status. Negative values are signal numbers.
        detail: Last diagnostic line written by the process, if any.
    """

    def __init__(self, returncode: int, detail: str | None = None) -> None:
        self.returncode = returncode
        self.detail = detail
        if returncode < 0:
            message = f"ffmpeg error: terminated by signal {-returncode}"
        else:
            message = f"ffmpeg error: exit status {returncode}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class CanceledError(ConversionError):
    """Reported when the user cancels a running conversion.

    Not a failure from the user's point of view; the session ends cleanly.
    """

    def __init__(self, message: str = "conversion canceled") -> None:
        super().__init__(message)
