"""Configuration loading, schema, and defaults."""

from aibump.config.loader import ConfigError, load_config
from aibump.config.schema import AibumpConfig

__all__ = [
    "AibumpConfig",
    "ConfigError",
    "load_config",
]
