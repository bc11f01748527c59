"""Component repository client configuration values."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from .env import env_float, env_int
from .errors import ConfigurationError
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy

SECRET_ENV_PREFIX = "OCMGRAPH_SECRET_"


@dataclass(frozen=True, slots=True)
class RepositoryClientConfig:
    resilience: ResilienceConfig
    secret_env_prefix: str = SECRET_ENV_PREFIX


@dataclass(frozen=True, slots=True)
class KeyringConfig:
    keys_dir: Path | None = None


def _cache_config() -> CacheConfig | None:
    # published component versions never change
    backend = os.getenv("OCMGRAPH_HTTP_CACHE", "off").strip().lower()
    if backend in {"", "off"}:
        return None
    if backend not in {"sqlite", "memory"}:
        raise ConfigurationError(
            f"OCMGRAPH_HTTP_CACHE must be one of off, sqlite, memory; got {backend!r}"
        )
    return CacheConfig(backend="sqlite" if backend == "sqlite" else "memory")


def get_repository_client_config() -> RepositoryClientConfig:
    max_calls = env_int("OCMGRAPH_RATELIMIT_CALLS", 0)
    ratelimit = (
        RateLimit(max_calls=max_calls, per_seconds=env_float("OCMGRAPH_RATELIMIT_SECONDS", 1.0))
        if max_calls
        else None
    )
    resilience = ResilienceConfig(
        timeout_seconds=env_float("OCMGRAPH_HTTP_TIMEOUT", 30.0, minimum=0.1),
        retry=RetryPolicy(total=env_int("OCMGRAPH_HTTP_RETRIES", 4)),
        ratelimit=ratelimit,
        cache=_cache_config(),
        default_headers={"Accept": "application/json"},
    )
    return RepositoryClientConfig(resilience=resilience)


def get_keyring_config() -> KeyringConfig:
    """Read ``OCMGRAPH_KEYS_DIR``; unset means keys live under the data directory."""

    raw = os.getenv("OCMGRAPH_KEYS_DIR")
    if raw is None or not raw.strip():
        return KeyringConfig()
    keys_dir = Path(raw).expanduser()
    if keys_dir.exists() and not keys_dir.is_dir():
        raise ConfigurationError(f"OCMGRAPH_KEYS_DIR must be a directory, got {raw!r}")
    return KeyringConfig(keys_dir=keys_dir)
