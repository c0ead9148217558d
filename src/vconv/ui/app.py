"""Terminal driver for the interactive converter.

ConverterApp owns the single UI loop: it draws the current screen with
click, reads one key, and asks vconv.ui.transitions for the next screen.
While a conversion runs it blocks on the run's event channel instead and
renders a click progress bar. Ctrl+C arrives as KeyboardInterrupt on this
thread and ends the session, canceling any running conversion first.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from pathlib import Path

import click

from vconv.domain.enums import FormatTag
from vconv.domain.models import ConversionRequest
from vconv.exceptions import ConversionError
from vconv.executor.command import get_preset
from vconv.executor.supervisor import ConversionHandle, ConversionSupervisor
from vconv.ui.keys import Key, read_key
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
from vconv.ui.text import terminal_width, truncate
from vconv.ui.transitions import (
    apply_event,
    clear_expired,
    format_screen_for,
    handle_key,
    interrupt,
    open_picker,
    start_failed,
)

logger = logging.getLogger(__name__)

# Resolution of the progress bar
PROGRESS_STEPS = 1000

# Picker rows shown at once
PICKER_HEIGHT = 15


def render_picker(screen: PickerScreen) -> str:
    lines = [""]
    if screen.error:
        lines.append("  " + click.style(screen.error, fg="red"))
    else:
        lines.append("  Pick a file:")
    lines.append("  " + click.style(str(screen.directory), bold=True))
    lines.append("")

    if not screen.entries:
        lines.append("    (empty)")
    top = min(screen.cursor - PICKER_HEIGHT // 2, len(screen.entries) - PICKER_HEIGHT)
    top = max(0, top)
    visible = screen.entries[top : top + PICKER_HEIGHT]
    name_width = max(10, terminal_width() - 6)
    for index, entry in enumerate(visible, top):
        marker = ">" if index == screen.cursor else " "
        if entry.is_dir:
            label = click.style(truncate(entry.label, name_width), fg="blue")
        elif entry.allowed:
            label = truncate(entry.label, name_width)
        else:
            label = click.style(truncate(entry.label, name_width), dim=True)
        lines.append(f"  {marker} {label}")

    lines.append("")
    lines.append("  (arrows to move, Enter to select, Left for parent, q to quit)")
    return "\n".join(lines)


def render_format(screen: FormatScreen) -> str:
    lines = [f"Selected input: {screen.input_path}", ""]
    lines.append("Choose output format (up/down then Enter)")
    lines.append("")
    for index, tag in enumerate(FORMAT_CHOICES):
        preset = get_preset(tag)
        if index == screen.cursor:
            lines.append("  > " + click.style(preset.title, fg="cyan", bold=True))
        else:
            lines.append(f"    {preset.title}")
        lines.append(f"      {preset.description}")
    lines.append("")
    lines.append("(Esc to go back, Enter to confirm selection)")
    return "\n".join(lines)


def render_confirm(screen: ConfirmScreen) -> str:
    request = screen.request
    return (
        "Ready to convert:\n\n"
        f"  input:  {request.input_path}\n"
        f"  format: {request.format_tag.value}\n"
        f"  output: {request.output_path}\n\n"
        "Press Enter to start conversion, Esc to go back, Ctrl+C to cancel."
    )


def render_error(screen: ErrorScreen) -> str:
    return (
        click.style(f"Error: {screen.message}", fg="red")
        + "\n\n(press any key to go back)"
    )


def render_done(screen: DoneScreen) -> str:
    return (
        click.style("Conversion finished!", fg="green")
        + f"\n\nOutput: {screen.output_path}\n\n(press any key to exit)"
    )


def render(screen: Screen) -> str:
    """Render a key-driven screen as text."""
    if isinstance(screen, PickerScreen):
        return render_picker(screen)
    if isinstance(screen, FormatScreen):
        return render_format(screen)
    if isinstance(screen, ConfirmScreen):
        return render_confirm(screen)
    if isinstance(screen, ErrorScreen):
        return render_error(screen)
    if isinstance(screen, DoneScreen):
        return render_done(screen)
    return ""


class ConverterApp:
    """Drives the screens against a ConversionSupervisor."""

    def __init__(
        self,
        supervisor: ConversionSupervisor,
        *,
        start_directory: Path | None = None,
        output_path: Path | None = None,
        default_format: FormatTag | None = None,
        lister: DirectoryLister = list_directory,
        key_reader: Callable[[], Key] = read_key,
        clock: Callable[[], float] = time.monotonic,
        timer_factory: Callable[..., threading.Timer] = threading.Timer,
    ) -> None:
        """Initialize the app.

        Args:
            supervisor: Starts and cancels conversions.
            start_directory: Directory the picker opens in.
            output_path: Explicit output path; replaces the derived default
                on the confirm screen.
            default_format: Format preselected on the format screen.
            lister: Directory listing function.
            key_reader: Blocking key source.
            clock: Monotonic clock used for picker error expiry.
            timer_factory: Builds the timer that redraws the picker when its
                error expires while no key is pressed.
        """
        self._supervisor = supervisor
        self._start_directory = start_directory or Path.cwd()
        self._output_path = output_path
        self._default_format = default_format
        self._lister = lister
        self._read_key = key_reader
        self._clock = clock
        self._timer_factory = timer_factory
        self._draw_lock = threading.Lock()

    def run(self) -> ExitScreen:
        """Run an interactive session, starting at the file picker."""
        screen: Screen = open_picker(
            self._start_directory, self._clock(), self._lister
        )
        while not isinstance(screen, ExitScreen):
            try:
                screen = self._step(screen)
            except (KeyboardInterrupt, EOFError):
                screen = interrupt(screen)
        logger.debug("Session ended: %s", screen)
        return screen

    def run_request(self, request: ConversionRequest) -> int:
        """Convert a single file without interaction.

        Returns:
            0 when the conversion finished or was canceled, 1 on failure.
        """
        screen = self._run_conversion(RunningScreen(request=request))
        if isinstance(screen, DoneScreen):
            click.echo("conversion finished successfully")
            click.echo(f"output: {screen.output_path}")
            return 0
        if isinstance(screen, ErrorScreen):
            click.echo(f"ffmpeg failed: {screen.message}", err=True)
            return 1
        click.echo("conversion canceled", err=True)
        return 0

    def _step(self, screen: Screen) -> Screen:
        if isinstance(screen, RunningScreen):
            return self._run_conversion(screen)

        screen = clear_expired(screen, self._clock())
        self._draw(screen)
        timer = self._schedule_error_clear(screen)
        try:
            key = self._read_key()
        finally:
            if timer is not None:
                timer.cancel()
        previous = screen
        screen = handle_key(screen, key, self._clock(), self._lister)

        if isinstance(previous, PickerScreen) and isinstance(screen, FormatScreen):
            screen = format_screen_for(screen.input_path, self._default_format)

        if isinstance(screen, ConfirmScreen) and self._output_path is not None:
            request = screen.request
            screen = ConfirmScreen(
                ConversionRequest(
                    input_path=request.input_path,
                    output_path=self._output_path,
                    format_tag=request.format_tag,
                )
            )
        return screen

    def _draw(self, screen: Screen) -> None:
        with self._draw_lock:
            click.clear()
            click.echo(render(screen))

    def _schedule_error_clear(self, screen: Screen) -> threading.Timer | None:
        """Redraw the picker without its error once the error expires.

        The main thread is blocked reading a key meanwhile, so the redraw
        happens on a timer thread.
        """
        if not isinstance(screen, PickerScreen) or screen.error_expires_at is None:
            return None
        delay = max(0.0, screen.error_expires_at - self._clock())
        timer = self._timer_factory(
            delay, lambda: self._draw(clear_expired(screen, self._clock()))
        )
        timer.daemon = True
        timer.start()
        return timer

    def _run_conversion(self, screen: RunningScreen) -> Screen:
        """Start a conversion and consume its events until it ends."""
        try:
            handle = self._supervisor.start(screen.request)
        except ConversionError as e:
            logger.info("Conversion did not start: %s", e)
            return start_failed(screen, e)
        except KeyboardInterrupt:
            return interrupt(screen)

        try:
            return self._follow(handle, screen)
        except KeyboardInterrupt:
            try:
                self._supervisor.cancel(handle)
            except KeyboardInterrupt:
                # Second Ctrl+C: cancel has already killed ffmpeg
                logger.info("Interrupted again while canceling")
            return interrupt(screen)

    def _follow(self, handle: ConversionHandle, screen: RunningScreen) -> Screen:
        preset = get_preset(screen.request.format_tag)
        click.clear()
        click.echo(f"Converting {screen.request.input_path.name} to {preset.title}")
        click.echo(f"Output: {screen.request.output_path}")
        click.echo("(Ctrl+C to cancel)\n")

        current: Screen = screen
        # Bar, percentage and padding take roughly 50 columns
        status_width = max(10, terminal_width() - 50)
        with click.progressbar(
            length=PROGRESS_STEPS,
            label="  ",
            show_eta=False,
            show_percent=True,
            item_show_func=lambda status: truncate(status or "", status_width),
        ) as bar:
            for event in handle:
                current = apply_event(current, event)
                if not isinstance(current, RunningScreen):
                    if isinstance(current, DoneScreen):
                        bar.update(PROGRESS_STEPS - bar.pos)
                    break
                target = round(current.percent * PROGRESS_STEPS)
                bar.update(max(0, target - bar.pos), current.last_status)

        if isinstance(current, RunningScreen):
            # Channel closed without a terminal event
            return start_failed(current, ConversionError("ffmpeg error: no result"))
        return current
