"""Unit tests for external tool detection."""

import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from vconv.exceptions import ToolNotAvailableError
from vconv.tools.detection import (
    detect_tool,
    find_tool,
    require_tool,
)
from vconv.tools.models import ToolStatus

FFMPEG_VERSION_OUTPUT = (
    "ffmpeg version 6.1.1-3ubuntu5 Copyright (c) 2000-2023 the FFmpeg developers\n"
    "built with gcc 13 (Ubuntu 13.2.0-23ubuntu3)\n"
)


class TestFindTool:
    """Tests for find_tool()."""

    def test_prefers_configured_file(self, tmp_path: Path) -> None:
        configured = tmp_path / "ffmpeg"
        configured.touch()

        with patch("vconv.tools.detection.shutil.which") as mock_which:
            assert find_tool("ffmpeg", configured) == configured
        mock_which.assert_not_called()

    @patch("vconv.tools.detection.shutil.which", return_value="/usr/bin/ffmpeg")
    def test_falls_back_to_path(self, mock_which: MagicMock, tmp_path: Path) -> None:
        assert find_tool("ffmpeg", tmp_path / "missing") == Path("/usr/bin/ffmpeg")

    @patch("vconv.tools.detection.shutil.which", return_value=None)
    def test_not_found(self, mock_which: MagicMock) -> None:
        assert find_tool("ffmpeg") is None


class TestDetectTool:
    """Tests for detect_tool()."""

    @patch("vconv.tools.detection.run_command")
    @patch("vconv.tools.detection.find_tool", return_value=Path("/usr/bin/ffmpeg"))
    def test_available(self, mock_find: MagicMock, mock_run: MagicMock) -> None:
        mock_run.return_value = (FFMPEG_VERSION_OUTPUT, "", 0)

        info = detect_tool("ffmpeg")

        assert info.status == ToolStatus.AVAILABLE
        assert info.is_available()
        assert info.version == "6.1.1-3ubuntu5"

    @patch("vconv.tools.detection.find_tool", return_value=None)
    def test_missing(self, mock_find: MagicMock) -> None:
        info = detect_tool("ffprobe")

        assert info.status == ToolStatus.MISSING
        assert not info.is_available()
        assert info.status_message == "ffprobe not found in PATH"

    @patch("vconv.tools.detection.run_command")
    @patch("vconv.tools.detection.find_tool", return_value=Path("/usr/bin/ffmpeg"))
    def test_version_failure(self, mock_find: MagicMock, mock_run: MagicMock) -> None:
        mock_run.return_value = ("", "broken install", 1)

        info = detect_tool("ffmpeg")

        assert info.status == ToolStatus.ERROR
        assert "broken install" in info.status_message

    @patch("vconv.tools.detection.run_command")
    @patch("vconv.tools.detection.find_tool", return_value=Path("/usr/bin/ffmpeg"))
    def test_timeout(self, mock_find: MagicMock, mock_run: MagicMock) -> None:
        mock_run.side_effect = subprocess.TimeoutExpired(cmd="ffmpeg", timeout=10)

        info = detect_tool("ffmpeg")

        assert info.status == ToolStatus.ERROR


class TestRequireTool:
    """Tests for require_tool()."""

    @patch("vconv.tools.detection.find_tool", return_value=None)
    def test_raises_with_install_hint(self, mock_find: MagicMock) -> None:
        with pytest.raises(ToolNotAvailableError, match="ffmpeg not found in PATH") as exc:
            require_tool("ffmpeg")

        assert exc.value.tool_name == "ffmpeg"
        assert "Install it and try again" in str(exc.value)

    @patch("vconv.tools.detection.run_command")
    @patch("vconv.tools.detection.find_tool", return_value=Path("/opt/ffprobe"))
    def test_returns_path(self, mock_find: MagicMock, mock_run: MagicMock) -> None:
        mock_run.return_value = ("ffprobe version 7.0 Copyright", "", 0)

        assert require_tool("ffprobe", Path("/opt/ffprobe")) == Path("/opt/ffprobe")
        mock_find.assert_called_once_with("ffprobe", Path("/opt/ffprobe"))

    @patch("vconv.tools.detection.run_command")
    @patch("vconv.tools.detection.find_tool", return_value=Path("/usr/bin/ffmpeg"))
    def test_broken_tool_raises(
        self, mock_find: MagicMock, mock_run: MagicMock
    ) -> None:
        """A tool that is found but fails its version check is unusable."""
        mock_run.return_value = ("", "error while loading shared libraries", 127)

        with pytest.raises(ToolNotAvailableError):
            require_tool("ffmpeg")
