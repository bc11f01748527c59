"""Public key material lookups for signature verification."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ocmgraph.domain.errors import VerificationError

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

    from ocmgraph.domain.model import SecretRef


class FileKeyring:
    """Read ``<keys_dir>/<secret name>.pem``."""

    def __init__(self, keys_dir: Path) -> None:
        self._keys_dir = keys_dir

    def path_for(self, ref: SecretRef) -> Path:
        return self._keys_dir / f"{ref.name}.pem"

    def __call__(self, ref: SecretRef) -> bytes:
        path = self.path_for(ref)
        try:
            return path.read_bytes()
        except OSError as exc:
            raise VerificationError(
                f"public key {ref.name!r} not readable at {path}: {exc}"
            ) from exc


class StaticKeyring:
    def __init__(self, keys: Mapping[str, bytes]) -> None:
        self._keys = dict(keys)

    def __call__(self, ref: SecretRef) -> bytes:
        try:
            return self._keys[ref.name]
        except KeyError:
            raise VerificationError(f"public key {ref.name!r} not found") from None
