"""Supervision of a single ffmpeg conversion run.

ConversionSupervisor probes the input, spawns ffmpeg with machine-readable
progress enabled and fans three threads into one EventChannel:

- progress reader: ffmpeg stdout (-progress key=value lines) -> Percent
- status reader: ffmpeg stderr (stats lines) -> StatusLine
- exit waiter: waits for ffmpeg, emits the terminal event, closes the channel

The exit waiter joins both readers before emitting the terminal event, and
it is the only thread that closes the channel, so consumers see every event
of a run before exactly one terminal event and then end-of-stream.
"""

from __future__ import annotations

import contextvars
import logging
import os
import subprocess  # nosec B404 - subprocess is required for FFmpeg invocation
import threading
import uuid
from collections import deque
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from vconv.domain.models import (
    ConversionRequest,
    Failure,
    Percent,
    ProgressEvent,
    Started,
    completion_event,
)
from vconv.exceptions import (
    CanceledError,
    ConversionError,
    LaunchError,
    ProcessError,
)
from vconv.executor.channel import DEFAULT_CAPACITY, EventChannel
from vconv.executor.command import build_progress_command
from vconv.logging.context import run_context
from vconv.tools.ffmpeg_progress import (
    FFmpegProgress,
    ProgressParser,
    parse_status_line,
    parse_stderr_progress,
)

logger = logging.getLogger(__name__)

# Number of trailing stderr lines kept for error messages
STDERR_TAIL_LINES = 20


class DurationProber(Protocol):
    """Anything that can report a media file's duration in seconds."""

    def get_duration(self, path: Path) -> float: ...


class CancellationToken:
    """Two-phase cancellation flag shared by a handle and its threads."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


@dataclass
class ConversionHandle:
    """One in-flight ffmpeg process and the receive side of its events.

    Owned by a single consumer for the duration of one run. Iterating the
    handle yields events until the channel is closed.
    """

    request: ConversionRequest
    process: subprocess.Popen
    duration: float
    channel: EventChannel[ProgressEvent]
    token: CancellationToken = field(default_factory=CancellationToken)
    run_id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])
    exited: threading.Event = field(default_factory=threading.Event)
    stderr_tail: deque[str] = field(
        default_factory=lambda: deque(maxlen=STDERR_TAIL_LINES)
    )
    last_stats: FFmpegProgress | None = None
    _cancel_lock: threading.Lock = field(default_factory=threading.Lock)
    _threads: list[threading.Thread] = field(default_factory=list)

    def next_event(self, timeout: float | None = None) -> ProgressEvent | None:
        """Receive the next event; None once the run's stream has ended."""
        return self.channel.get(timeout)

    def __iter__(self) -> Iterator[ProgressEvent]:
        while True:
            event = self.channel.get()
            if event is None:
                return
            yield event


class ConversionSupervisor:
    """Starts, monitors and cancels ffmpeg conversions.

    Example:
        supervisor = ConversionSupervisor(ffmpeg, FFprobeIntrospector(ffprobe))
        handle = supervisor.start(request)
        for event in handle:
            ...
    """

    DEFAULT_CANCEL_GRACE: float = 3.0
    READER_DRAIN_TIMEOUT: float = 5.0  # Max wait for readers after exit

    def __init__(
        self,
        ffmpeg_path: Path | str,
        prober: DurationProber,
        channel_capacity: int = DEFAULT_CAPACITY,
        cancel_grace_seconds: float | None = None,
    ) -> None:
        """Initialize the supervisor.

        Args:
            ffmpeg_path: Path to the ffmpeg executable.
            prober: Duration prober used before each start.
            channel_capacity: Bound of each run's event channel.
            cancel_grace_seconds: Seconds between the graceful stop request
                and forced termination. None uses DEFAULT_CANCEL_GRACE.
        """
        self._ffmpeg_path = Path(ffmpeg_path)
        self._prober = prober
        self._channel_capacity = channel_capacity
        self._cancel_grace = (
            cancel_grace_seconds
            if cancel_grace_seconds is not None
            else self.DEFAULT_CANCEL_GRACE
        )

    def start(self, request: ConversionRequest) -> ConversionHandle:
        """Probe the input and launch ffmpeg.

        Args:
            request: What to convert.

        Returns:
            Handle for the running conversion. Its first event is Started.

        Raises:
            ProbeError: If the input duration cannot be determined. No
                process is spawned.
            LaunchError: If ffmpeg cannot be started.
        """
        duration = self._prober.get_duration(request.input_path)
        cmd = build_progress_command(self._ffmpeg_path, request)

        logger.debug("Launching: %s", " ".join(cmd))
        try:
            process = subprocess.Popen(  # nosec B603 - args built from presets
                cmd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
                # Terminal Ctrl+C reaches vconv only; it decides how to stop ffmpeg
                start_new_session=os.name == "posix",
            )
        except (OSError, ValueError) as e:
            raise LaunchError(f"ffmpeg start failed: {e}") from e

        channel: EventChannel[ProgressEvent] = EventChannel(self._channel_capacity)
        handle = ConversionHandle(
            request=request,
            process=process,
            duration=duration,
            channel=channel,
        )
        channel.put(Started())

        with run_context(handle.run_id, request.input_path):
            logger.info(
                "Started ffmpeg pid=%d (%s -> %s, %.2fs)",
                process.pid,
                request.input_path,
                request.output_path,
                duration,
            )
            readers = [
                self._spawn(handle, "progress", self._read_progress),
                self._spawn(handle, "status", self._read_status),
            ]
            handle._threads.extend(readers)
            handle._threads.append(self._spawn(handle, "exit", self._wait_for_exit))

        return handle

    def cancel(self, handle: ConversionHandle) -> None:
        """Cancel a running conversion.

        Requests a graceful stop (SIGTERM) and, if ffmpeg has not exited
        within the grace window, kills it. Canceling a handle that already
        exited or was already canceled does nothing.
        """
        with handle._cancel_lock:
            if handle.token.cancelled or handle.exited.is_set():
                return
            if handle.process.poll() is not None:
                return
            handle.token.cancel()

        with run_context(handle.run_id, handle.request.input_path):
            logger.info("Canceling ffmpeg pid=%d", handle.process.pid)
            try:
                handle.process.terminate()
            except ProcessLookupError:
                return

            stopped = False
            try:
                stopped = handle.exited.wait(self._cancel_grace)
            finally:
                # Also reached when a second Ctrl+C cuts the grace period short
                if not stopped:
                    self._kill(handle)

    def _kill(self, handle: ConversionHandle) -> None:
        logger.warning("ffmpeg did not stop after SIGTERM, killing it")
        try:
            handle.process.kill()
        except ProcessLookupError:
            pass

    def next(
        self, handle: ConversionHandle, timeout: float | None = None
    ) -> ProgressEvent | None:
        """Blocking receive of the next event; None once the run is over."""
        return handle.next_event(timeout)

    def _spawn(self, handle, name, target) -> threading.Thread:
        # Threads inherit the run context for log tagging
        ctx = contextvars.copy_context()
        thread = threading.Thread(
            target=ctx.run,
            args=(target, handle),
            name=f"vconv-{name}-{handle.run_id}",
            daemon=True,
        )
        thread.start()
        return thread

    def _read_progress(self, handle: ConversionHandle) -> None:
        """Turn ffmpeg -progress lines into Percent events."""
        parser = ProgressParser(handle.duration)
        stdout = handle.process.stdout
        if stdout is None:
            return
        try:
            for line in stdout:
                event = parser.feed(line)
                if event is not None:
                    handle.channel.offer(event)
        except (ValueError, OSError) as e:
            # Pipe closed under us (process killed)
            logger.debug("Progress reader stopped: %s", e)

    def _read_status(self, handle: ConversionHandle) -> None:
        """Forward ffmpeg stats lines and remember the stderr tail."""
        stderr = handle.process.stderr
        if stderr is None:
            return
        try:
            for line in stderr:
                text = line.rstrip("\r\n")
                if not text.strip():
                    continue
                event = parse_status_line(text)
                if event is None:
                    handle.stderr_tail.append(text)
                    continue
                stats = parse_stderr_progress(text)
                if stats is not None:
                    handle.last_stats = stats
                handle.channel.offer(event)
        except (ValueError, OSError) as e:
            logger.debug("Status reader stopped: %s", e)

    def _wait_for_exit(self, handle: ConversionHandle) -> None:
        """Wait for ffmpeg, emit the terminal event and close the channel."""
        try:
            returncode = handle.process.wait()
            handle.exited.set()

            for thread in handle._threads[:2]:
                thread.join(timeout=self.READER_DRAIN_TIMEOUT)
                if thread.is_alive():
                    logger.warning("Reader %s did not finish after exit", thread.name)

            self._log_summary(handle, returncode)

            if handle.token.cancelled:
                handle.channel.put(Failure(CanceledError()))
            elif returncode != 0:
                detail = handle.stderr_tail[-1] if handle.stderr_tail else None
                handle.channel.put(Failure(ProcessError(returncode, detail)))
            else:
                handle.channel.put(Percent(1.0))
                handle.channel.put(completion_event())
        except Exception as e:
            logger.exception("Exit waiter failed")
            handle.channel.put(Failure(ConversionError(f"ffmpeg error: {e}")))
        finally:
            self._close_pipes(handle)
            handle.exited.set()
            handle.channel.close()

    def _close_pipes(self, handle: ConversionHandle) -> None:
        """Close the pipes of readers that have finished.

        A reader still blocked in read() holds its pipe's lock, and
        close() would block behind it; that pipe is left to the GC.
        """
        pipes = (handle.process.stdout, handle.process.stderr)
        for pipe, reader in zip(pipes, handle._threads[:2]):
            if pipe is None or reader.is_alive():
                continue
            try:
                pipe.close()
            except (OSError, ValueError) as e:
                logger.debug("Closing ffmpeg pipe failed: %s", e)

    def _log_summary(self, handle: ConversionHandle, returncode: int) -> None:
        stats = handle.last_stats
        logger.debug(
            "ffmpeg exited with status %d%s",
            returncode,
            " (canceled)" if handle.token.cancelled else "",
            extra={
                "returncode": returncode,
                "frames": stats.frame if stats else None,
                "fps": stats.fps if stats else None,
                "speed": stats.speed if stats else None,
            },
        )
        for line in handle.stderr_tail:
            logger.debug("ffmpeg: %s", line)
