"""Ports for signature verification capabilities."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ocmgraph.domain.model import (
        CanonicalDescriptor,
        SecretRef,
        SignatureConfig,
        VerificationOutcome,
    )


@runtime_checkable
class SignatureVerifier(Protocol):
    """Check a descriptor against trusted signatures.

    Returns ``verified=False`` on a signature mismatch and raises
    ``VerificationError`` when verification itself cannot run.
    """

    def __call__(
        self,
        descriptor: CanonicalDescriptor,
        signatures: Sequence[SignatureConfig],
    ) -> VerificationOutcome: ...


@runtime_checkable
class PublicKeyResolver(Protocol):
    """Resolve a secret reference to PEM-encoded public key material."""

    def __call__(self, ref: SecretRef) -> bytes: ...


__all__ = ["PublicKeyResolver", "SignatureVerifier"]
