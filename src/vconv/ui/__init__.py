"""Interactive terminal UI: file picker, format list, live progress."""

from vconv.ui.app import ConverterApp, render
from vconv.ui.keys import Key, normalize_key, read_key
from vconv.ui.picker import ALLOWED_EXTENSIONS, DirEntry, list_directory
from vconv.ui.screens import (
    ConfirmScreen,
    DoneScreen,
    ErrorScreen,
    ExitScreen,
    FormatScreen,
    PickerScreen,
    RunningScreen,
    Screen,
)

__all__ = [
    "ConverterApp",
    "render",
    "Key",
    "normalize_key",
    "read_key",
    "ALLOWED_EXTENSIONS",
    "DirEntry",
    "list_directory",
    "ConfirmScreen",
    "DoneScreen",
    "ErrorScreen",
    "ExitScreen",
    "FormatScreen",
    "PickerScreen",
    "RunningScreen",
    "Screen",
]
