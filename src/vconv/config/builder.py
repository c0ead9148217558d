"""Configuration builder with explicit layering.

ConfigBuilder composes VConvConfig from several ConfigSource layers. Later
layers override earlier ones for every value they actually set.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

from vconv.config.env import EnvReader
from vconv.config.models import (
    ConversionConfig,
    LoggingConfig,
    ToolPathsConfig,
    VConvConfig,
)
from vconv.exceptions import ConfigError


@dataclass
class ConfigSource:
    """Configuration values from a single source.

    None values mean "not specified in this source" and never override
    values from lower-precedence sources.
    """

    # Tool paths
    ffmpeg_path: Path | None = None
    ffprobe_path: Path | None = None

    # Conversion config
    default_format: str | None = None
    channel_capacity: int | None = None
    cancel_grace_seconds: float | None = None
    probe_timeout_seconds: int | None = None
    start_directory: Path | None = None

    # Logging config
    logging_level: str | None = None
    logging_file: Path | None = None
    logging_format: str | None = None
    logging_include_stderr: bool | None = None
    logging_max_bytes: int | None = None
    logging_backup_count: int | None = None


class ConfigBuilder:
    """Builds VConvConfig by layering ConfigSources with precedence.

    Example:
        builder = ConfigBuilder()
        builder.apply(source_from_file(file_config))
        builder.apply(source_from_env(reader))
        builder.apply(cli_source)
        config = builder.build()
    """

    def __init__(self) -> None:
        self._values: dict[str, Any] = {}

    def apply(self, source: ConfigSource) -> None:
        """Apply a configuration source, overriding existing values."""
        for field_obj in fields(source):
            value = getattr(source, field_obj.name)
            if value is not None:
                self._values[field_obj.name] = value

    def _get(self, key: str, default: Any) -> Any:
        return self._values.get(key, default)

    def build(self) -> VConvConfig:
        """Build the final VConvConfig with defaults for unset values.

        Raises:
            ValueError: If a layered value fails model validation.
        """
        tools = ToolPathsConfig(
            ffmpeg=self._get("ffmpeg_path", None),
            ffprobe=self._get("ffprobe_path", None),
        )

        conversion = ConversionConfig(
            default_format=self._get("default_format", "h264"),
            channel_capacity=self._get("channel_capacity", 32),
            cancel_grace_seconds=self._get("cancel_grace_seconds", 3.0),
            probe_timeout_seconds=self._get("probe_timeout_seconds", 60),
            start_directory=self._get("start_directory", None),
        )

        logging_config = LoggingConfig(
            level=self._get("logging_level", "warning"),
            file=self._get("logging_file", None),
            format=self._get("logging_format", "text"),
            include_stderr=self._get("logging_include_stderr", False),
            max_bytes=self._get("logging_max_bytes", 10_485_760),
            backup_count=self._get("logging_backup_count", 5),
        )

        return VConvConfig(
            tools=tools,
            conversion=conversion,
            logging=logging_config,
        )


# Accepted TOML types per kind of setting, with the wording used in errors
_STR = ((str,), "a string")
_INT = ((int,), "an integer")
_NUMBER = ((int, float), "a number")
_BOOL = ((bool,), "true or false")


def _section(file_config: dict[str, Any], name: str) -> dict[str, Any]:
    section = file_config.get(name, {})
    if not isinstance(section, dict):
        raise ConfigError(f"[{name}] must be a table")
    return section


def _typed(
    section: dict[str, Any],
    section_name: str,
    key: str,
    expected: tuple[tuple[type, ...], str],
) -> Any:
    """Read an optional value from a config table, checking its TOML type.

    Raises:
        ConfigError: If the value is present but of the wrong type.
    """
    value = section.get(key)
    if value is None:
        return None
    kinds, description = expected
    # bool is a subclass of int; only accept it where a bool is expected
    if not isinstance(value, kinds) or (
        isinstance(value, bool) and bool not in kinds
    ):
        raise ConfigError(
            f"{section_name}.{key} must be {description}, got {value!r}"
        )
    return value


def _optional_path(value: str | None) -> Path | None:
    return Path(value).expanduser() if value else None


def source_from_file(file_config: dict[str, Any]) -> ConfigSource:
    """Create ConfigSource from a parsed TOML config file.

    Recognized sections are [tools], [conversion] and [logging].

    Raises:
        ConfigError: If a section is not a table or a value has the wrong
            type (for example a quoted number).
    """
    tools = _section(file_config, "tools")
    conversion = _section(file_config, "conversion")
    logging_conf = _section(file_config, "logging")

    return ConfigSource(
        ffmpeg_path=_optional_path(_typed(tools, "tools", "ffmpeg", _STR)),
        ffprobe_path=_optional_path(_typed(tools, "tools", "ffprobe", _STR)),
        default_format=_typed(conversion, "conversion", "default_format", _STR),
        channel_capacity=_typed(
            conversion, "conversion", "channel_capacity", _INT
        ),
        cancel_grace_seconds=_typed(
            conversion, "conversion", "cancel_grace_seconds", _NUMBER
        ),
        probe_timeout_seconds=_typed(
            conversion, "conversion", "probe_timeout_seconds", _INT
        ),
        start_directory=_optional_path(
            _typed(conversion, "conversion", "start_directory", _STR)
        ),
        logging_level=_typed(logging_conf, "logging", "level", _STR),
        logging_file=_optional_path(_typed(logging_conf, "logging", "file", _STR)),
        logging_format=_typed(logging_conf, "logging", "format", _STR),
        logging_include_stderr=_typed(
            logging_conf, "logging", "include_stderr", _BOOL
        ),
        logging_max_bytes=_typed(logging_conf, "logging", "max_bytes", _INT),
        logging_backup_count=_typed(logging_conf, "logging", "backup_count", _INT),
    )


def source_from_env(reader: EnvReader) -> ConfigSource:
    """Create ConfigSource from VCONV_* environment variables."""
    return ConfigSource(
        ffmpeg_path=reader.get_path("VCONV_FFMPEG_PATH"),
        ffprobe_path=reader.get_path("VCONV_FFPROBE_PATH"),
        default_format=reader.get_str("VCONV_DEFAULT_FORMAT"),
        cancel_grace_seconds=reader.get_float("VCONV_CANCEL_GRACE_SECONDS"),
        probe_timeout_seconds=reader.get_int("VCONV_PROBE_TIMEOUT"),
        start_directory=reader.get_path("VCONV_START_DIR"),
        logging_level=reader.get_str("VCONV_LOG_LEVEL"),
        logging_file=reader.get_path("VCONV_LOG_FILE", must_exist=False),
        logging_format=reader.get_str("VCONV_LOG_FORMAT"),
    )
