"""Unit tests for logging configuration, JSON output and run context."""

import json
import logging
import sys
from pathlib import Path

import pytest

from vconv.config.models import LoggingConfig
from vconv.logging.config import configure_logging
from vconv.logging.context import (
    RunContextFilter,
    clear_run_context,
    get_run_context,
    run_context,
    set_run_context,
)
from vconv.logging.handlers import JSONFormatter


@pytest.fixture(autouse=True)
def _restore_logging(reset_root_logger):
    """Every test here reconfigures the root logger."""
    yield
    clear_run_context()


def _record(message: str = "hello", **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="vconv.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=message,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestConfigureLogging:
    """Tests for configure_logging()."""

    @pytest.mark.parametrize(
        ("level", "expected"),
        [
            ("debug", logging.DEBUG),
            ("info", logging.INFO),
            ("warning", logging.WARNING),
            ("ERROR", logging.ERROR),
        ],
    )
    def test_sets_root_level(self, level: str, expected: int) -> None:
        configure_logging(LoggingConfig(level=level))
        assert logging.getLogger().level == expected

    def test_defaults_to_stderr(self) -> None:
        configure_logging(LoggingConfig())

        handlers = logging.getLogger().handlers
        assert len(handlers) == 1
        assert isinstance(handlers[0], logging.StreamHandler)

    def test_file_handler(self, tmp_path: Path) -> None:
        log_file = tmp_path / "logs" / "vconv.log"
        configure_logging(LoggingConfig(level="info", file=log_file))

        logging.getLogger("vconv.test").info("written to file")
        for handler in logging.getLogger().handlers:
            handler.flush()

        assert log_file.exists()
        content = log_file.read_text()
        assert "written to file" in content
        assert "vconv.test - INFO" in content

    def test_file_and_stderr(self, tmp_path: Path) -> None:
        configure_logging(
            LoggingConfig(file=tmp_path / "vconv.log", include_stderr=True)
        )
        assert len(logging.getLogger().handlers) == 2

    def test_unwritable_file_falls_back_to_stderr(
        self, tmp_path: Path, capsys: pytest.CaptureFixture
    ) -> None:
        blocker = tmp_path / "blocker"
        blocker.write_text("a file, not a directory")

        configure_logging(LoggingConfig(file=blocker / "vconv.log"))

        handlers = logging.getLogger().handlers
        assert len(handlers) == 1
        assert "Could not open log file" in capsys.readouterr().err

    def test_json_format(self, tmp_path: Path) -> None:
        log_file = tmp_path / "vconv.log"
        configure_logging(LoggingConfig(level="info", file=log_file, format="json"))

        with run_context("abc12345", "/videos/clip.mov"):
            logging.getLogger("vconv.test").info("json line", extra={"pid": 42})
        for handler in logging.getLogger().handlers:
            handler.flush()

        entry = json.loads(log_file.read_text().splitlines()[-1])
        assert entry["message"] == "json line"
        assert entry["context"] == {"pid": 42}
        assert entry["run"] == {"id": "abc12345", "input": "/videos/clip.mov"}


class TestJSONFormatter:
    """Tests for JSONFormatter output."""

    def test_basic_fields(self) -> None:
        entry = json.loads(JSONFormatter().format(_record("hello")))

        assert entry["level"] == "INFO"
        assert entry["message"] == "hello"
        assert entry["logger"] == "vconv.test"
        assert "timestamp" in entry
        assert "context" not in entry
        assert "run" not in entry

    def test_extra_fields_in_context(self) -> None:
        record = _record(returncode=1, command="ffmpeg")
        entry = json.loads(JSONFormatter().format(record))
        assert entry["context"] == {"returncode": 1, "command": "ffmpeg"}

    def test_non_serializable_values_use_str(self) -> None:
        record = _record(path=Path("/videos/clip.mov"))
        entry = json.loads(JSONFormatter().format(record))
        assert entry["context"]["path"] == "/videos/clip.mov"

    def test_exception_included(self) -> None:
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = _record()
            record.exc_info = sys.exc_info()

        entry = json.loads(JSONFormatter().format(record))
        assert "RuntimeError: boom" in entry["exception"]


class TestRunContext:
    """Tests for run context propagation."""

    def test_set_and_clear(self) -> None:
        set_run_context("r1", Path("/a.mov"))
        assert get_run_context() == ("r1", "/a.mov")
        clear_run_context()
        assert get_run_context() == (None, None)

    def test_context_manager_restores(self) -> None:
        set_run_context("outer")
        with run_context("inner", "/b.mov"):
            assert get_run_context() == ("inner", "/b.mov")
        assert get_run_context() == ("outer", None)

    def test_filter_adds_run_tag(self) -> None:
        record = _record()
        with run_context("deadbeef"):
            assert RunContextFilter().filter(record) is True
        assert record.run_tag == "[deadbeef] "
        assert record.run_id == "deadbeef"

    def test_filter_without_context(self) -> None:
        record = _record()
        RunContextFilter().filter(record)
        assert record.run_tag == ""
        assert record.input_path is None

