"""Configuration loading and validation.

Usage:
    from accessh.config import ConfigSource, load_config
"""

from accessh.config.loader import ConfigError, ConfigSource, load_config, resolve_config_path
from accessh.config.schema import AccesshConfig, LocationConfig, ProgramSettings, SSHSettings

__all__ = [
    "AccesshConfig",
    "ConfigError",
    "ConfigSource",
    "LocationConfig",
    "ProgramSettings",
    "SSHSettings",
    "load_config",
    "resolve_config_path",
]
