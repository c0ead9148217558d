"""Core utilities shared across vconv modules."""

from vconv.core.subprocess_utils import run_command

__all__ = ["run_command"]
