"""Domain enums for vconv."""

from enum import Enum


class FormatTag(Enum):
    """Output encoding profile selected by the user.

    Each tag maps to a codec/container preset in vconv.executor.command.
    """

    H264 = "h264"  # H.264 video + AAC audio in MP4
    PRORES = "prores"  # ProRes 422 HQ in MOV
    DNXHD = "dnxhd"  # DNxHD 1080p in MXF
    WAV = "wav"  # 48kHz stereo PCM, audio only

    @classmethod
    def parse(cls, value: "str | FormatTag") -> "FormatTag":
        """Parse a format tag, case-insensitively.

        Args:
            value: Tag name such as "h264" or "WAV", or a FormatTag.

        Returns:
            The matching FormatTag.

        Raises:
            ValueError: If the value is not a known format tag.
        """
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower()
        for tag in cls:
            if tag.value == normalized:
                return tag
        raise ValueError(f"invalid format: {normalized}")

    @classmethod
    def names(cls) -> list[str]:
        """Return all tag names in declaration order."""
        return [tag.value for tag in cls]
