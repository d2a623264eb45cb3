"""Configuration loading and validation."""

from .models import (
    AppConfig,
    CacheConfig,
    CredentialsConfig,
    GraphApiConfig,
    LoggingConfig,
    PaginationConfig,
    RateLimitConfig,
    SyncConfig,
)
from .loader import ConfigError, load_app_config, validate_config_file

__all__ = [
    # Config models
    "AppConfig",
    "CacheConfig",
    "CredentialsConfig",
    "GraphApiConfig",
    "LoggingConfig",
    "PaginationConfig",
    "RateLimitConfig",
    "SyncConfig",
    # Loaders
    "ConfigError",
    "load_app_config",
    "validate_config_file",
]
