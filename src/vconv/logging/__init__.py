"""Structured logging module for vconv.

Provides configurable logging with JSON format support, file rotation and
per-run context tagging.
"""

from vconv.logging.config import configure_logging
from vconv.logging.context import (
    RunContextFilter,
    clear_run_context,
    get_run_context,
    run_context,
    set_run_context,
)
from vconv.logging.handlers import JSONFormatter

__all__ = [
    "JSONFormatter",
    "RunContextFilter",
    "clear_run_context",
    "configure_logging",
    "get_run_context",
    "run_context",
    "set_run_context",
]
