"""Configuration package exports."""

from .loader import ConfigLocator, ConfigRepository, apply_env_overrides
from .models import CheckConfig, GlobalConfig, RedisConfig

__all__ = [
    "CheckConfig",
    "ConfigLocator",
    "ConfigRepository",
    "GlobalConfig",
    "RedisConfig",
    "apply_env_overrides",
]
