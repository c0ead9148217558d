"""Run context for structured logging.

Propagates the current conversion run through contextvars so every log
record emitted while a run is active carries its run id and input path.
Reader threads copy the starting thread's context so they are tagged too.
"""

from __future__ import annotations

import contextvars
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Generator

_run_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "run_id", default=None
)
_input_path: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "input_path", default=None
)


def set_run_context(run_id: str, input_path: Path | str | None = None) -> None:
    """Set the current run context.

    Args:
        run_id: Short run identifier (e.g. "3f2a91c0").
        input_path: Path of the file being converted, or None.
    """
    _run_id.set(run_id)
    _input_path.set(str(input_path) if input_path is not None else None)


def clear_run_context() -> None:
    """Clear the current run context."""
    _run_id.set(None)
    _input_path.set(None)


@contextmanager
def run_context(
    run_id: str,
    input_path: Path | str | None = None,
) -> Generator[None, None, None]:
    """Context manager that sets the run context and restores it on exit.

    Example:
        with run_context("3f2a91c0", "/videos/clip.mov"):
            logger.info("Starting ffmpeg")  # Tagged [3f2a91c0]
    """
    old_run_id = _run_id.get()
    old_input_path = _input_path.get()
    try:
        set_run_context(run_id, input_path)
        yield
    finally:
        _run_id.set(old_run_id)
        _input_path.set(old_input_path)


def get_run_context() -> tuple[str | None, str | None]:
    """Get current run context as (run_id, input_path)."""
    return _run_id.get(), _input_path.get()


class RunContextFilter(logging.Filter):
    """Logging filter that injects run context into log records.

    Adds run_id and input_path attributes for JSON output, and a compact
    run_tag such as "[3f2a91c0] " for the text format.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        run_id, input_path = get_run_context()

        record.run_id = run_id
        record.input_path = input_path
        record.run_tag = f"[{run_id}] " if run_id else ""

        return True  # Never filter out records
