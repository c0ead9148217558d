"""Screen transitions.

Every handler is a function of (screen, input, clock) that returns the next
screen. Filesystem listing is injected as a DirectoryLister so handlers can
be exercised without touching the disk.
"""

from __future__ import annotations

import dataclasses
import logging
from pathlib import Path

from vconv.domain.enums import FormatTag
from vconv.domain.models import (
    ConversionRequest,
    Failure,
    Percent,
    ProgressEvent,
    Started,
    StatusLine,
)
from vconv.executor.command import default_output_path
from vconv.ui.keys import Key
from vconv.ui.picker import DirectoryLister, list_directory
from vconv.ui.screens import (
    FORMAT_CHOICES,
    ConfirmScreen,
    DoneScreen,
    ErrorScreen,
    ExitScreen,
    FormatScreen,
    PickerScreen,
    RunningScreen,
    Screen,
)

logger = logging.getLogger(__name__)

# How long a picker error stays on screen
ERROR_DISPLAY_SECONDS = 2.0


def open_picker(
    directory: Path,
    now: float,
    lister: DirectoryLister = list_directory,
    select: Path | None = None,
) -> PickerScreen:
    """Build a picker screen for a directory.

    Args:
        directory: Directory to list.
        now: Current monotonic time, used to time out listing errors.
        lister: Directory listing function.
        select: Entry to place the cursor on, if present.
    """
    try:
        entries = lister(directory)
    except OSError as e:
        logger.debug("Cannot list %s: %s", directory, e)
        return PickerScreen(
            directory=directory,
            error=f"cannot open {directory}: {e.strerror or e}",
            error_expires_at=now + ERROR_DISPLAY_SECONDS,
        )

    cursor = 0
    if select is not None:
        for index, entry in enumerate(entries):
            if entry.path == select:
                cursor = index
                break
    return PickerScreen(directory=directory, entries=entries, cursor=cursor)


def format_screen_for(input_path: Path, tag: FormatTag | None = None) -> FormatScreen:
    """Build a format screen with the cursor on the given tag."""
    cursor = FORMAT_CHOICES.index(tag) if tag is not None else 0
    return FormatScreen(input_path=input_path, cursor=cursor)


def _move(cursor: int, key: Key, count: int) -> int:
    if count == 0:
        return 0
    if key is Key.UP:
        return max(0, cursor - 1)
    return min(count - 1, cursor + 1)


def _picker_error(screen: PickerScreen, message: str, now: float) -> PickerScreen:
    return dataclasses.replace(
        screen, error=message, error_expires_at=now + ERROR_DISPLAY_SECONDS
    )


def handle_picker_key(
    screen: PickerScreen,
    key: Key,
    now: float,
    lister: DirectoryLister = list_directory,
) -> Screen:
    if key is Key.QUIT:
        return ExitScreen(exit_code=0, canceled=True)

    if key in (Key.UP, Key.DOWN):
        cursor = _move(screen.cursor, key, len(screen.entries))
        return dataclasses.replace(screen, cursor=cursor)

    if key in (Key.LEFT, Key.BACKSPACE, Key.ESC):
        parent = screen.directory.parent
        if parent == screen.directory:
            return screen
        return open_picker(parent, now, lister, select=screen.directory)

    if key in (Key.ENTER, Key.RIGHT):
        entry = screen.selected
        if entry is None:
            return screen
        if entry.is_dir:
            return open_picker(entry.path, now, lister)
        if not entry.allowed:
            return _picker_error(screen, f"{entry.path} is not valid.", now)
        return format_screen_for(entry.path)

    return screen


def handle_format_key(screen: FormatScreen, key: Key) -> Screen:
    if key in (Key.UP, Key.DOWN):
        return dataclasses.replace(
            screen, cursor=_move(screen.cursor, key, len(FORMAT_CHOICES))
        )
    if key is Key.ENTER:
        tag = screen.format_tag
        request = ConversionRequest(
            input_path=screen.input_path,
            output_path=default_output_path(screen.input_path, tag),
            format_tag=tag,
        )
        return ConfirmScreen(request=request)
    return screen


def handle_confirm_key(screen: ConfirmScreen, key: Key) -> Screen:
    if key is Key.ENTER:
        return RunningScreen(request=screen.request)
    if key is Key.ESC:
        return format_screen_for(screen.request.input_path, screen.request.format_tag)
    return screen


def handle_key(
    screen: Screen,
    key: Key,
    now: float,
    lister: DirectoryLister = list_directory,
) -> Screen:
    """Apply a key press to the current screen.

    Args:
        screen: Current screen.
        key: Normalized key.
        now: Current monotonic time.
        lister: Directory listing function for picker navigation.

    Returns:
        The next screen. RunningScreen ignores keys; the driver cancels on
        Ctrl+C through interrupt().
    """
    if isinstance(screen, PickerScreen):
        return handle_picker_key(clear_expired(screen, now), key, now, lister)
    if isinstance(screen, FormatScreen):
        if key is Key.ESC:
            return open_picker(
                screen.input_path.parent, now, lister, select=screen.input_path
            )
        return handle_format_key(screen, key)
    if isinstance(screen, ConfirmScreen):
        return handle_confirm_key(screen, key)
    if isinstance(screen, ErrorScreen):
        return format_screen_for(screen.input_path, screen.format_tag)
    if isinstance(screen, DoneScreen):
        return ExitScreen(exit_code=0)
    return screen


def apply_event(screen: RunningScreen, event: ProgressEvent) -> Screen:
    """Fold one conversion event into the running screen."""
    if isinstance(event, Started):
        return screen
    if isinstance(event, Percent):
        return dataclasses.replace(screen, percent=event.value)
    if isinstance(event, StatusLine):
        if event.final:
            return DoneScreen(output_path=screen.request.output_path)
        return dataclasses.replace(screen, last_status=event.text)
    if isinstance(event, Failure):
        return start_failed(screen, event.error)
    return screen


def start_failed(screen: RunningScreen, error: Exception) -> ErrorScreen:
    """Error screen for a run that failed to start or failed while running."""
    return ErrorScreen(
        input_path=screen.request.input_path,
        message=str(error),
        format_tag=screen.request.format_tag,
    )


def interrupt(screen: Screen) -> ExitScreen:
    """Ctrl+C on any screen ends the session cleanly."""
    if isinstance(screen, ExitScreen):
        return screen
    return ExitScreen(exit_code=0, canceled=True)


def clear_expired(screen: Screen, now: float) -> Screen:
    """Drop a picker error whose display time has passed."""
    if not isinstance(screen, PickerScreen) or screen.error is None:
        return screen
    if screen.error_expires_at is not None and now < screen.error_expires_at:
        return screen
    return dataclasses.replace(screen, error=None, error_expires_at=None)
