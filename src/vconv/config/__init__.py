"""Configuration management for vconv.

Configuration is loaded with precedence handling:
1. CLI flags (highest priority)
2. Environment variables (VCONV_*)
3. Config file (~/.vconv/config.toml)
4. Default values (lowest priority)
"""

from vconv.config.builder import (
    ConfigBuilder,
    ConfigSource,
    source_from_env,
    source_from_file,
)
from vconv.config.env import EnvReader
from vconv.config.loader import (
    clear_config_cache,
    get_config,
    get_default_config_path,
    load_config_file,
    load_toml_file,
)
from vconv.config.models import (
    ConversionConfig,
    LoggingConfig,
    ToolPathsConfig,
    VConvConfig,
)

__all__ = [
    # Models
    "ConversionConfig",
    "LoggingConfig",
    "ToolPathsConfig",
    "VConvConfig",
    # Loader
    "clear_config_cache",
    "get_config",
    "get_default_config_path",
    "load_config_file",
    "load_toml_file",
    # Layering
    "EnvReader",
    "ConfigBuilder",
    "ConfigSource",
    "source_from_env",
    "source_from_file",
]
