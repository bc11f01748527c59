"""Application configuration helpers."""

from __future__ import annotations

from .controller import ControllerConfig, get_controller_config
from .env import env_float, env_int
from .errors import ConfigurationError
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .repository import (
    KeyringConfig,
    RepositoryClientConfig,
    get_keyring_config,
    get_repository_client_config,
)
from .storage import (
    DatabaseConfig,
    StorageConfig,
    get_database_config,
    get_http_cache_path,
    get_storage_config,
)

__all__ = [
    "CacheConfig",
    "ConfigurationError",
    "ControllerConfig",
    "DatabaseConfig",
    "KeyringConfig",
    "RateLimit",
    "RepositoryClientConfig",
    "ResilienceConfig",
    "RetryPolicy",
    "StorageConfig",
    "configure_logging",
    "env_float",
    "env_int",
    "get_controller_config",
    "get_database_config",
    "get_http_cache_path",
    "get_keyring_config",
    "get_repository_client_config",
    "get_storage_config",
]
