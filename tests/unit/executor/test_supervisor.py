"""Unit tests for ConversionSupervisor.

The supervisor is exercised against small /bin/sh scripts that stand in for
ffmpeg: they write progress lines to stdout and stats lines to stderr, then
exit with a chosen status or sleep until canceled.
"""

import queue
import sys
import time
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from vconv.domain.models import (
    COMPLETION_STATUS,
    Failure,
    Percent,
    Started,
    StatusLine,
)
from vconv.exceptions import LaunchError, ProbeError, ProcessError
from vconv.executor.channel import EventChannel
from vconv.executor.supervisor import (
    CancellationToken,
    ConversionHandle,
    ConversionSupervisor,
)

pytestmark = pytest.mark.skipif(
    sys.platform == "win32", reason="uses POSIX shell scripts as stand-in ffmpeg"
)

SUCCESS_SCRIPT = """\
echo "out_time_ms=2500"
echo "progress=continue"
printf 'frame=  10 fps=0.0 size=256kB time=00:00:02.50 bitrate=N/A speed=5.0x\\r' >&2
echo "out_time=00:00:09.000000"
echo "out_time_ms=5000"
echo "progress=end"
exit 0
"""

FAILING_SCRIPT = """\
echo "Input #0, mov, from 'clip.mov':" >&2
echo "clip.mov: Invalid data found when processing input" >&2
exit 1
"""

# Runs until signaled; exec keeps sleep as the only holder of the pipes
SLEEPING_SCRIPT = """\
echo "out_time_ms=1000"
exec sleep 30
"""

STUBBORN_SCRIPT = """\
trap '' TERM
echo "out_time_ms=1000"
exec sleep 30
"""


class FixedProber:
    """Prober stub returning a fixed duration."""

    def __init__(self, duration: float = 10.0) -> None:
        self.duration = duration
        self.calls: list[Path] = []

    def get_duration(self, path: Path) -> float:
        self.calls.append(path)
        return self.duration


def drain(handle: ConversionHandle, timeout: float = 10.0) -> list:
    """Collect every event of a run until end-of-stream."""
    events = []
    deadline = time.monotonic() + timeout
    while True:
        remaining = deadline - time.monotonic()
        assert remaining > 0, f"run did not finish; got {events}"
        event = handle.next_event(timeout=remaining)
        if event is None:
            return events
        events.append(event)


def wait_for_percent(handle: ConversionHandle, timeout: float = 5.0) -> list:
    """Consume events until the first Percent arrives."""
    seen = []
    deadline = time.monotonic() + timeout
    while True:
        event = handle.next_event(timeout=max(0.01, deadline - time.monotonic()))
        assert event is not None, f"stream ended early: {seen}"
        seen.append(event)
        if isinstance(event, Percent):
            return seen


@pytest.fixture
def supervisor_for(fake_tool):
    """Factory creating a supervisor around a fake ffmpeg script."""

    def _make(script: str, **kwargs) -> ConversionSupervisor:
        ffmpeg = fake_tool("ffmpeg", script)
        return ConversionSupervisor(ffmpeg, FixedProber(10.0), **kwargs)

    return _make


class TestCancellationToken:
    """Tests for CancellationToken."""

    def test_starts_uncancelled(self) -> None:
        assert CancellationToken().cancelled is False

    def test_cancel_is_sticky(self) -> None:
        token = CancellationToken()
        token.cancel()
        token.cancel()
        assert token.cancelled is True


class TestSupervisorStart:
    """Tests for ConversionSupervisor.start()."""

    def test_probe_error_spawns_nothing(self, input_file, request_for) -> None:
        """A failed probe aborts before any process is started."""
        prober = MagicMock()
        prober.get_duration.side_effect = ProbeError("ffprobe error: boom")
        supervisor = ConversionSupervisor("/usr/bin/ffmpeg", prober)

        with patch("vconv.executor.supervisor.subprocess.Popen") as mock_popen:
            with pytest.raises(ProbeError, match="boom"):
                supervisor.start(request_for(input_file))

        mock_popen.assert_not_called()

    def test_launch_error_for_missing_binary(
        self, tmp_path, input_file, request_for
    ) -> None:
        supervisor = ConversionSupervisor(tmp_path / "no-such-ffmpeg", FixedProber())

        with pytest.raises(LaunchError, match="ffmpeg start failed"):
            supervisor.start(request_for(input_file))

    def test_passes_progress_command(self, input_file, request_for) -> None:
        """ffmpeg is spawned with progress on stdout and no stdin."""
        supervisor = ConversionSupervisor("/opt/ffmpeg", FixedProber())

        with patch("vconv.executor.supervisor.subprocess.Popen") as mock_popen:
            mock_popen.side_effect = OSError("nope")
            with pytest.raises(LaunchError):
                supervisor.start(request_for(input_file))

        cmd = mock_popen.call_args.args[0]
        kwargs = mock_popen.call_args.kwargs
        assert cmd[0] == "/opt/ffmpeg"
        assert "-progress" in cmd and "pipe:1" in cmd
        assert kwargs["stdin"] is not None
        assert kwargs["text"] is True


class TestSupervisorRun:
    """Tests for the event stream of a run."""

    def test_successful_run(self, supervisor_for, input_file, request_for) -> None:
        supervisor = supervisor_for(SUCCESS_SCRIPT)
        handle = supervisor.start(request_for(input_file))

        events = drain(handle)

        assert events[0] == Started()
        assert events[-2:] == [Percent(1.0), StatusLine(COMPLETION_STATUS, final=True)]
        percents = [e.value for e in events if isinstance(e, Percent)]
        # out_time is ignored once out_time_ms has been seen
        assert percents == [0.25, 0.5, 1.0]
        statuses = [e for e in events if isinstance(e, StatusLine) and not e.final]
        assert len(statuses) == 1
        assert statuses[0].text.startswith("frame=  10")
        assert handle.process.returncode == 0

    def test_pipes_closed_after_run(
        self, supervisor_for, input_file, request_for
    ) -> None:
        supervisor = supervisor_for(SUCCESS_SCRIPT)
        handle = supervisor.start(request_for(input_file))

        drain(handle)

        assert handle.process.stdout.closed
        assert handle.process.stderr.closed

    def test_exactly_one_terminal_event(
        self, supervisor_for, input_file, request_for
    ) -> None:
        supervisor = supervisor_for(SUCCESS_SCRIPT)
        handle = supervisor.start(request_for(input_file))

        events = list(handle)

        assert [e for e in events if e.terminal] == [events[-1]]
        assert handle.next_event() is None

    def test_next_delegates_to_handle(
        self, supervisor_for, input_file, request_for
    ) -> None:
        supervisor = supervisor_for(SUCCESS_SCRIPT)
        handle = supervisor.start(request_for(input_file))

        assert supervisor.next(handle, timeout=5) == Started()

    def test_non_zero_exit(self, supervisor_for, input_file, request_for) -> None:
        supervisor = supervisor_for(FAILING_SCRIPT)
        handle = supervisor.start(request_for(input_file))

        events = drain(handle)

        failure = events[-1]
        assert isinstance(failure, Failure)
        assert not failure.canceled
        assert isinstance(failure.error, ProcessError)
        assert failure.error.returncode == 1
        assert failure.message == (
            "ffmpeg error: exit status 1: "
            "clip.mov: Invalid data found when processing input"
        )

    def test_next_times_out_while_running(
        self, supervisor_for, input_file, request_for
    ) -> None:
        supervisor = supervisor_for("exec sleep 30\n", cancel_grace_seconds=1.0)
        handle = supervisor.start(request_for(input_file))
        try:
            assert handle.next_event(timeout=1) == Started()
            with pytest.raises(queue.Empty):
                handle.next_event(timeout=0.1)
        finally:
            supervisor.cancel(handle)
            drain(handle)


class TestSupervisorCancel:
    """Tests for ConversionSupervisor.cancel()."""

    def test_graceful_cancel(self, supervisor_for, input_file, request_for) -> None:
        supervisor = supervisor_for(SLEEPING_SCRIPT)
        handle = supervisor.start(request_for(input_file))
        wait_for_percent(handle)

        supervisor.cancel(handle)
        events = drain(handle)

        assert handle.token.cancelled
        assert isinstance(events[-1], Failure)
        assert events[-1].canceled
        assert events[-1].message == "conversion canceled"
        assert handle.process.returncode != 0

    def test_forced_kill_after_grace(
        self, supervisor_for, input_file, request_for
    ) -> None:
        """A process ignoring SIGTERM is killed once the grace window ends."""
        supervisor = supervisor_for(STUBBORN_SCRIPT, cancel_grace_seconds=0.2)
        handle = supervisor.start(request_for(input_file))
        wait_for_percent(handle)

        start = time.monotonic()
        supervisor.cancel(handle)
        events = drain(handle)

        assert time.monotonic() - start < 5
        assert handle.process.returncode == -9
        assert events[-1].canceled

    def test_cancel_twice_is_noop(
        self, supervisor_for, input_file, request_for
    ) -> None:
        supervisor = supervisor_for(SLEEPING_SCRIPT)
        handle = supervisor.start(request_for(input_file))
        wait_for_percent(handle)

        supervisor.cancel(handle)
        supervisor.cancel(handle)
        events = drain(handle)

        assert sum(1 for e in events if e.terminal) == 1

    def test_cancel_after_exit_is_noop(
        self, supervisor_for, input_file, request_for
    ) -> None:
        supervisor = supervisor_for(SUCCESS_SCRIPT)
        handle = supervisor.start(request_for(input_file))
        events = drain(handle)

        supervisor.cancel(handle)

        assert not handle.token.cancelled
        assert events[-1] == StatusLine(COMPLETION_STATUS, final=True)


class TestCancelEscalation:
    """Tests for the SIGTERM -> SIGKILL escalation with a mocked process."""

    def make_handle(self, request, exited_wait) -> ConversionHandle:
        process = MagicMock(pid=4242)
        process.poll.return_value = None
        exited = MagicMock()
        exited.is_set.return_value = False
        exited.wait.side_effect = exited_wait
        return ConversionHandle(
            request=request,
            process=process,
            duration=10.0,
            channel=EventChannel(),
            exited=exited,
        )

    def test_no_kill_when_process_stops(self, input_file, request_for) -> None:
        supervisor = ConversionSupervisor("/usr/bin/ffmpeg", FixedProber())
        handle = self.make_handle(request_for(input_file), lambda timeout: True)

        supervisor.cancel(handle)

        handle.process.terminate.assert_called_once()
        handle.process.kill.assert_not_called()

    def test_interrupted_grace_wait_still_kills(
        self, input_file, request_for
    ) -> None:
        """Ctrl+C during the grace wait must not leave ffmpeg running."""
        supervisor = ConversionSupervisor(
            "/usr/bin/ffmpeg", FixedProber(), cancel_grace_seconds=30.0
        )
        handle = self.make_handle(request_for(input_file), KeyboardInterrupt)

        with pytest.raises(KeyboardInterrupt):
            supervisor.cancel(handle)

        handle.process.terminate.assert_called_once()
        handle.process.kill.assert_called_once()
