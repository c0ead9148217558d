"""Root logger setup for vconv.

vconv draws its UI on the terminal, so by default only warnings go to
stderr. A log file (optionally rotated) collects the debug output of ffmpeg
runs without disturbing the screen.
"""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING

from vconv.logging.context import RunContextFilter
from vconv.logging.handlers import JSONFormatter, text_formatter

if TYPE_CHECKING:
    from vconv.config.models import LoggingConfig

# CRITICAL is not exposed via CLI configuration.
LEVELS: dict[str, int] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def _open_log_file(config: LoggingConfig) -> logging.Handler | None:
    """Open the rotating log file, or None (with a warning) if it can't be."""
    path = Path(config.file).expanduser()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        return RotatingFileHandler(
            path,
            maxBytes=config.max_bytes,
            backupCount=config.backup_count,
            encoding="utf-8",
        )
    except OSError as e:
        # Logging isn't set up yet; report straight to the terminal
        sys.stderr.write(f"Warning: Could not open log file {path}: {e}\n")
        return None


def configure_logging(config: LoggingConfig) -> None:
    """Replace the root logger's handlers according to LoggingConfig.

    Falls back to stderr when the log file cannot be opened, so messages
    are never silently lost.
    """
    level = LEVELS.get(config.level.casefold(), logging.WARNING)

    handlers: list[logging.Handler] = []
    if config.file:
        file_handler = _open_log_file(config)
        if file_handler is not None:
            handlers.append(file_handler)
    if config.include_stderr or not handlers:
        handlers.append(logging.StreamHandler(sys.stderr))

    if config.format.casefold() == "json":
        formatter: logging.Formatter = JSONFormatter()
    else:
        formatter = text_formatter()
    context_filter = RunContextFilter()

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level)
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        handler.addFilter(context_filter)
        root.addHandler(handler)
