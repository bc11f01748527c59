"""Reconcile loop tuning values."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from .env import env_float, env_int

DEFAULT_INTERVAL_SECONDS = 600.0
DEFAULT_CONFLICT_RETRIES = 5


@dataclass(frozen=True, slots=True)
class ControllerConfig:
    default_interval: timedelta = timedelta(seconds=DEFAULT_INTERVAL_SECONDS)
    conflict_retries: int = DEFAULT_CONFLICT_RETRIES
    workers: int = 1


def get_controller_config() -> ControllerConfig:
    return ControllerConfig(
        default_interval=timedelta(
            seconds=env_float("OCMGRAPH_DEFAULT_INTERVAL", DEFAULT_INTERVAL_SECONDS, minimum=1.0)
        ),
        conflict_retries=env_int("OCMGRAPH_CONFLICT_RETRIES", DEFAULT_CONFLICT_RETRIES, minimum=1),
        workers=env_int("OCMGRAPH_WORKERS", 1, minimum=1),
    )
