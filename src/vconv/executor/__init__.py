"""Conversion execution: ffmpeg command presets and process supervision."""

from vconv.executor.channel import DEFAULT_CAPACITY, EventChannel
from vconv.executor.command import (
    FORMAT_PRESETS,
    FormatPreset,
    build_ffmpeg_args,
    build_progress_command,
    default_output_path,
    get_preset,
)
from vconv.executor.supervisor import (
    CancellationToken,
    ConversionHandle,
    ConversionSupervisor,
)

__all__ = [
    "DEFAULT_CAPACITY",
    "EventChannel",
    "FORMAT_PRESETS",
    "FormatPreset",
    "build_ffmpeg_args",
    "build_progress_command",
    "default_output_path",
    "get_preset",
    "CancellationToken",
    "ConversionHandle",
    "ConversionSupervisor",
]
