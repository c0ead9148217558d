"""Exit codes for the vconv command.

    0: Success, or the user canceled the session
    1: Missing input, invalid format, missing tools, configuration or
       conversion failure
"""

from enum import IntEnum


class ExitCode(IntEnum):
    """Exit codes for the vconv CLI."""

    SUCCESS = 0
    GENERAL_ERROR = 1
