"""Descriptor digests and signature checks backed by ``cryptography``."""

from __future__ import annotations

import hashlib
import json
from logging import getLogger
from typing import TYPE_CHECKING, Any

from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey, Ed25519PublicKey
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey, RSAPublicKey

from ocmgraph.domain.errors import VerificationError
from ocmgraph.domain.model import VerificationOutcome

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ocmgraph.domain.model import CanonicalDescriptor, DescriptorReference, SignatureConfig
    from ocmgraph.domain.ports import PublicKeyResolver

log = getLogger(__name__)

HASH_ALGORITHM = "SHA-256"
NORMALISATION_ALGORITHM = "jsonNormalisation/v1"
RSA_ALGORITHM = "RSASSA-PKCS1-V1_5"
ED25519_ALGORITHM = "ed25519"

type PublicKey = RSAPublicKey | Ed25519PublicKey
type PrivateKey = RSAPrivateKey | Ed25519PrivateKey

_RESOURCE_FIELDS = ("name", "version", "type", "extraIdentity", "digest")


def normalise_descriptor(descriptor: CanonicalDescriptor) -> bytes:
    """Serialise the signed subset of a descriptor deterministically.

    Signatures and repository contexts are left out so re-signing or
    transferring a component does not change its digest.
    """

    document = {
        "name": descriptor.name,
        "version": descriptor.version,
        "provider": descriptor.provider,
        "resources": [
            {key: resource[key] for key in _RESOURCE_FIELDS if resource.get(key) is not None}
            for resource in descriptor.resources
        ],
        "references": [_reference_document(reference) for reference in descriptor.references],
    }
    return json.dumps(
        document, sort_keys=True, separators=(",", ":"), ensure_ascii=False
    ).encode("utf-8")


def _reference_document(reference: DescriptorReference) -> dict[str, Any]:
    document: dict[str, Any] = {
        "name": reference.name,
        "componentName": reference.component_name,
        "version": reference.version,
    }
    if reference.extra_identity:
        document["extraIdentity"] = dict(reference.extra_identity)
    if reference.digest:
        document["digest"] = dict(reference.digest)
    return document


def descriptor_digest(descriptor: CanonicalDescriptor) -> str:
    """Return the hex SHA-256 digest of the normalised descriptor."""

    return hashlib.sha256(normalise_descriptor(descriptor)).hexdigest()


def load_public_key(pem: bytes) -> PublicKey:
    try:
        key = serialization.load_pem_public_key(pem)
    except (ValueError, UnsupportedAlgorithm) as exc:
        raise VerificationError(f"invalid public key: {exc}") from exc
    if not isinstance(key, RSAPublicKey | Ed25519PublicKey):
        raise VerificationError(f"unsupported public key type {type(key).__name__}")
    return key


def sign_digest(private_key: PrivateKey, digest: str) -> tuple[str, str]:
    """Sign a hex digest and return ``(algorithm, hex signature)``."""

    data = bytes.fromhex(digest)
    if isinstance(private_key, Ed25519PrivateKey):
        return ED25519_ALGORITHM, private_key.sign(data).hex()
    signature = private_key.sign(data, padding.PKCS1v15(), hashes.SHA256())
    return RSA_ALGORITHM, signature.hex()


def _signature_valid(key: PublicKey, signature_hex: str, digest: str) -> bool:
    try:
        signature = bytes.fromhex(signature_hex)
    except ValueError:
        return False
    data = bytes.fromhex(digest)
    try:
        if isinstance(key, Ed25519PublicKey):
            key.verify(signature, data)
        else:
            key.verify(signature, data, padding.PKCS1v15(), hashes.SHA256())
    except InvalidSignature:
        return False
    return True


class DescriptorVerifier:
    """Verify descriptor signatures against PEM keys from a resolver."""

    def __init__(self, keys: PublicKeyResolver) -> None:
        self._keys = keys

    def __call__(
        self,
        descriptor: CanonicalDescriptor,
        signatures: Sequence[SignatureConfig],
    ) -> VerificationOutcome:
        digest = descriptor_digest(descriptor)
        for config in signatures:
            key = load_public_key(self._keys(config.public_key.secret_ref))
            if not self._matches(descriptor, config.name, key, digest):
                return VerificationOutcome(verified=False, digest=digest)
        return VerificationOutcome(verified=True, digest=digest)

    def _matches(
        self,
        descriptor: CanonicalDescriptor,
        name: str,
        key: PublicKey,
        digest: str,
    ) -> bool:
        signature = descriptor.signature(name)
        if signature is None:
            log.info(
                "%s@%s carries no signature named %r", descriptor.name, descriptor.version, name
            )
            return False
        if signature.digest.value.lower() != digest:
            log.info(
                "Signature %r on %s@%s covers digest %s, computed %s",
                name,
                descriptor.name,
                descriptor.version,
                signature.digest.value,
                digest,
            )
            return False
        return _signature_valid(key, signature.signature.value, digest)
