"""Repository credentials resolved from the process environment."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ocmgraph.config.repository import SECRET_ENV_PREFIX

if TYPE_CHECKING:
    from ocmgraph.domain.model import SecretRef

_INVALID_ENV_CHARS = re.compile(r"[^A-Z0-9]+")


@dataclass(frozen=True, slots=True)
class EnvCredentials:
    """Map ``SecretRef(name="my-creds")`` to ``$OCMGRAPH_SECRET_MY_CREDS``."""

    prefix: str = SECRET_ENV_PREFIX

    def env_name(self, ref: SecretRef) -> str:
        return self.prefix + _INVALID_ENV_CHARS.sub("_", ref.name.upper()).strip("_")

    def __call__(self, ref: SecretRef) -> str | None:
        value = os.getenv(self.env_name(ref))
        if value is None or not value.strip():
            return None
        return value.strip()
