"""FFmpeg command building for the conversion presets.

This module holds the table of format presets (codec arguments, output
suffix, display text) and the pure functions that turn a conversion request
into an ffmpeg command line.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from vconv.domain.enums import FormatTag
from vconv.domain.models import ConversionRequest

# Global flags: key=value progress on stdout, stats lines on stderr
PROGRESS_FLAGS: tuple[str, ...] = (
    "-hide_banner",
    "-nostdin",
    "-progress",
    "pipe:1",
    "-stats",
)


@dataclass(frozen=True)
class FormatPreset:
    """Codec/container preset for one format tag."""

    tag: FormatTag
    title: str
    description: str
    suffix: str  # Appended to the input stem to derive the default output
    codec_args: tuple[str, ...]


# fmt: off
FORMAT_PRESETS: dict[FormatTag, FormatPreset] = {
    FormatTag.H264: FormatPreset(
        tag=FormatTag.H264,
        title="H.264 (MP4)",
        description="Smaller files, generally supported",
        suffix="_h264.mp4",
        codec_args=(
            "-c:v", "libx264",
            "-preset", "medium",
            "-crf", "20",
            "-c:a", "aac",
            "-b:a", "192k",
        ),
    ),
    FormatTag.PRORES: FormatPreset(
        tag=FormatTag.PRORES,
        title="Apple ProRes (MOV)",
        description="Edit-friendly, large files (ProRes 422 HQ)",
        suffix="_prores.mov",
        codec_args=(
            "-c:v", "prores_ks",
            "-profile:v", "3",
            "-pix_fmt", "yuv422p10le",
            "-c:a", "pcm_s16le",
        ),
    ),
    FormatTag.DNXHD: FormatPreset(
        tag=FormatTag.DNXHD,
        title="DNxHD / DNxHR (MXF)",
        description="Avid-style mezzanine codec (1080p)",
        suffix="_dnx.mxf",
        codec_args=(
            "-c:v", "dnxhd",
            "-b:v", "185M",
            "-pix_fmt", "yuv422p",
            "-c:a", "pcm_s16le",
        ),
    ),
    FormatTag.WAV: FormatPreset(
        tag=FormatTag.WAV,
        title="WAV 48kHz (Audio only)",
        description="Export audio only as 48kHz stereo WAV",
        suffix="_48k.wav",
        codec_args=(
            "-vn",
            "-ar", "48000",
            "-ac", "2",
            "-c:a", "pcm_s16le",
        ),
    ),
}
# fmt: on


def get_preset(format_tag: FormatTag | str) -> FormatPreset:
    """Look up the preset for a format tag.

    Raises:
        ValueError: If the tag is not a known format.
    """
    return FORMAT_PRESETS[FormatTag.parse(format_tag)]


def build_ffmpeg_args(
    input_path: Path | str,
    output_path: Path | str,
    format_tag: FormatTag | str,
) -> list[str]:
    """Build the ffmpeg arguments (without the executable) for a conversion.

    Args:
        input_path: Source media file.
        output_path: Destination file; overwritten if it exists.
        format_tag: Target format.

    Returns:
        ["-y", "-i", input, *codec_args, output]

    Raises:
        ValueError: If the format tag is unknown.
    """
    preset = get_preset(format_tag)
    return ["-y", "-i", str(input_path), *preset.codec_args, str(output_path)]


def build_progress_command(
    ffmpeg_path: Path | str, request: ConversionRequest
) -> list[str]:
    """Build the full ffmpeg command line used by the supervisor.

    The progress flags are global options and go before the first input so
    ffmpeg does not treat them as trailing options.
    """
    args = build_ffmpeg_args(
        request.input_path, request.output_path, request.format_tag
    )
    return [str(ffmpeg_path), *PROGRESS_FLAGS, *args]


def default_output_path(input_path: Path | str, format_tag: FormatTag | str) -> Path:
    """Derive the default output path for a conversion.

    The output sits next to the input, named after the input's stem plus the
    preset suffix: ``clip.mov`` converted to wav becomes ``clip_48k.wav``.

    Raises:
        ValueError: If the format tag is unknown.
    """
    preset = get_preset(format_tag)
    source = Path(input_path)
    return source.parent / f"{source.stem}{preset.suffix}"
