"""Application configuration helpers."""

from __future__ import annotations

from .delivery import DeliveryConfig, get_delivery_config
from .discord import DiscordConfig, get_discord_config
from .env import env_bool, env_int, env_str
from .errors import (
    ConfigurationError,
    InvalidConfigurationValueError,
    MissingConfigurationError,
)
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy
from .logging import LOG_LEVEL_ENV, LOG_LEVELS, configure_logging, resolve_log_level
from .sources import SourcesConfig, get_sources_config
from .storage import StorageConfig, get_storage_config

__all__ = [
    "CacheConfig",
    "ConfigurationError",
    "DeliveryConfig",
    "DiscordConfig",
    "LOG_LEVELS",
    "LOG_LEVEL_ENV",
    "InvalidConfigurationValueError",
    "MissingConfigurationError",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "SourcesConfig",
    "StorageConfig",
    "configure_logging",
    "env_bool",
    "env_int",
    "env_str",
    "get_delivery_config",
    "get_discord_config",
    "get_sources_config",
    "get_storage_config",
    "resolve_log_level",
]
