"""Shared test fixtures for vconv."""

import logging
import os
import stat
from collections.abc import Callable
from pathlib import Path

import pytest

from vconv.config.loader import clear_config_cache
from vconv.domain.enums import FormatTag
from vconv.domain.models import ConversionRequest


@pytest.fixture(autouse=True)
def isolate_config(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    """Keep the user's config file and VCONV_* variables out of tests."""
    for name in list(os.environ):
        if name.startswith("VCONV_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("VCONV_CONFIG_PATH", str(tmp_path / "no-config.toml"))
    clear_config_cache()
    yield
    clear_config_cache()


@pytest.fixture
def reset_root_logger():
    """Save and restore root logger state between tests."""
    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    yield
    for handler in root.handlers:
        if handler not in original_handlers:
            handler.close()
    root.handlers[:] = original_handlers
    root.setLevel(original_level)


@pytest.fixture
def media_dir(tmp_path: Path) -> Path:
    """Create a directory with a mix of media, other and hidden files."""
    directory = tmp_path / "media"
    directory.mkdir()

    (directory / "clip.mov").write_bytes(b"\x00")
    (directory / "Song.WAV").write_bytes(b"\x00")
    (directory / "notes.txt").write_text("not media")
    (directory / ".secret.mp4").write_bytes(b"\x00")

    nested = directory / "Projects"
    nested.mkdir()
    (nested / "take1.mxf").write_bytes(b"\x00")

    (directory / ".cache").mkdir()
    return directory


@pytest.fixture
def input_file(tmp_path: Path) -> Path:
    """An existing (empty) input file."""
    path = tmp_path / "clip.mov"
    path.write_bytes(b"")
    return path


@pytest.fixture
def request_for(tmp_path: Path) -> Callable[..., ConversionRequest]:
    """Factory for conversion requests writing into tmp_path."""

    def _make(input_path: Path, tag: FormatTag = FormatTag.H264) -> ConversionRequest:
        return ConversionRequest(
            input_path=input_path,
            output_path=tmp_path / f"out-{tag.value}",
            format_tag=tag,
        )

    return _make


@pytest.fixture
def fake_tool(tmp_path: Path) -> Callable[[str, str], Path]:
    """Factory writing an executable /bin/sh script that stands in for a tool."""

    def _write(name: str, body: str) -> Path:
        path = tmp_path / "bin" / name
        path.parent.mkdir(exist_ok=True)
        path.write_text("#!/bin/sh\n" + body)
        path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return path

    return _write
