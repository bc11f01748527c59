"""Deterministic record keys for graph nodes."""

from __future__ import annotations

import hashlib
import json
from typing import TYPE_CHECKING

from .errors import NamingError

if TYPE_CHECKING:
    from collections.abc import Mapping

_HASH_BYTES = 8


def compute_key(name: str, version: str, identity: Mapping[str, str] | None = None) -> str:
    """Return the store key for the node identified by ``(name, version, identity)``.

    The key is ``<name with '/' replaced>-<version>-<hash>`` where the hash covers a
    canonical JSON serialisation of the triple. Identity maps are compared by content,
    and ``None`` is the same identity as an empty map.
    """

    try:
        canonical = json.dumps(
            {
                "componentName": name,
                "version": version,
                "identity": dict(identity or {}),
            },
            sort_keys=True,
            separators=(",", ":"),
            ensure_ascii=False,
        )
    except (TypeError, ValueError) as exc:
        raise NamingError(
            f"failed to generate hash for name {name!r}, version {version!r}: {exc}"
        ) from exc

    digest = hashlib.sha256(canonical.encode("utf-8")).digest()
    number = int.from_bytes(digest[:_HASH_BYTES], "big")
    return f"{name.replace('/', '-')}-{version}-{number}"
