"""Configuration loader with precedence handling.

Configuration is loaded with the following precedence (highest to lowest):
1. CLI arguments (passed directly to get_config)
2. Environment variables (VCONV_*)
3. Config file (~/.vconv/config.toml)
4. Default values

Environment variables:
- VCONV_CONFIG_PATH: Path to config file (overrides default location)
- VCONV_FFMPEG_PATH: Path to ffmpeg executable
- VCONV_FFPROBE_PATH: Path to ffprobe executable
- VCONV_DEFAULT_FORMAT: Format used when -format is not given
- VCONV_CANCEL_GRACE_SECONDS: Seconds between SIGTERM and SIGKILL on cancel
- VCONV_PROBE_TIMEOUT: ffprobe timeout in seconds
- VCONV_START_DIR: Directory the file picker opens in
- VCONV_LOG_LEVEL / VCONV_LOG_FILE / VCONV_LOG_FORMAT: Logging overrides
"""

from __future__ import annotations

import logging
import os
import threading
import tomllib
from pathlib import Path
from typing import Any

from vconv.config.builder import (
    ConfigBuilder,
    ConfigSource,
    source_from_env,
    source_from_file,
)
from vconv.config.env import EnvReader
from vconv.config.models import VConvConfig
from vconv.exceptions import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = Path.home() / ".vconv"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.toml"

# Cache for loaded config files (path -> (parsed dict, mtime))
_config_cache: dict[Path, tuple[dict, float]] = {}
_config_cache_lock = threading.Lock()


def get_default_config_path() -> Path:
    """Get the config file path, honoring VCONV_CONFIG_PATH."""
    env_path = os.environ.get("VCONV_CONFIG_PATH")
    if env_path:
        return Path(env_path).expanduser()
    return DEFAULT_CONFIG_FILE


def load_toml_file(path: Path, *, strict: bool = False) -> dict[str, Any]:
    """Load and parse a TOML file.

    Args:
        path: Path to the TOML file.
        strict: If True, raise ConfigError when the file cannot be parsed.

    Returns:
        Parsed dictionary. Empty if the file doesn't exist, or if it cannot
        be parsed and strict is False.

    Raises:
        ConfigError: When strict=True and the file is unreadable or invalid.
    """
    if not path.exists():
        logger.debug("Config file not found: %s", path)
        return {}

    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        if strict:
            raise ConfigError(f"Cannot parse config file {path}: {e}") from e
        logger.warning("Ignoring unreadable config file %s: %s", path, e)
        return {}


def load_config_file(path: Path | None = None, *, strict: bool = False) -> dict:
    """Load configuration from TOML file, cached by mtime.

    The cache reloads the file automatically when its mtime changes. Use
    clear_config_cache() to force a reload.

    Args:
        path: Path to config file. If None, uses the default location.
        strict: If True, raise ConfigError on parse failures.

    Returns:
        Parsed configuration dict. Empty dict if file doesn't exist.
    """
    if path is None:
        path = get_default_config_path()

    try:
        current_mtime = path.stat().st_mtime
    except FileNotFoundError:
        current_mtime = 0.0

    with _config_cache_lock:
        cached = _config_cache.get(path)
        if cached is not None and cached[1] == current_mtime:
            return cached[0]

        result = load_toml_file(path, strict=strict)
        _config_cache[path] = (result, current_mtime)
        return result


def clear_config_cache() -> None:
    """Clear the config file cache. Primarily useful for testing."""
    with _config_cache_lock:
        _config_cache.clear()


def get_config(
    config_path: Path | None = None,
    # CLI overrides (highest precedence)
    ffmpeg_path: Path | None = None,
    ffprobe_path: Path | None = None,
    log_level: str | None = None,
    log_file: Path | None = None,
    log_format: str | None = None,
    # Optional dependency injection for testing
    env_reader: EnvReader | None = None,
    *,
    strict: bool = False,
) -> VConvConfig:
    """Get vconv configuration with full precedence handling.

    Args:
        config_path: Path to config file (overrides VCONV_CONFIG_PATH).
        ffmpeg_path: CLI override for ffmpeg path.
        ffprobe_path: CLI override for ffprobe path.
        log_level: CLI override for log level.
        log_file: CLI override for log file.
        log_format: CLI override for log format ("text" or "json").
        env_reader: Optional EnvReader for testing (uses os.environ if None).
        strict: If True, raise ConfigError on config file parse failures.

    Returns:
        VConvConfig with merged configuration.

    Raises:
        ConfigError: When strict=True and the config file cannot be parsed,
            or when a value has the wrong type or fails validation.
    """
    reader = env_reader or EnvReader()
    file_config = load_config_file(config_path, strict=strict)

    cli_source = ConfigSource(
        ffmpeg_path=ffmpeg_path,
        ffprobe_path=ffprobe_path,
        logging_level=log_level,
        logging_file=log_file,
        logging_format=log_format,
    )

    builder = ConfigBuilder()
    builder.apply(source_from_file(file_config))
    builder.apply(source_from_env(reader))
    builder.apply(cli_source)

    try:
        return builder.build()
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid configuration: {e}") from e
