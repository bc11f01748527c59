"""Component descriptors: fetched, canonical, persisted, and referenced forms."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any


@dataclass(frozen=True, slots=True)
class RawDescriptor:
    """Descriptor payload as delivered by a component repository."""

    payload: dict[str, Any]
    schema_version: str | None = None


@dataclass(frozen=True, slots=True)
class DescriptorReference:
    """A child component reference as declared on a descriptor."""

    name: str
    component_name: str
    version: str
    extra_identity: dict[str, str] = field(default_factory=dict[str, str])
    labels: tuple[dict[str, Any], ...] = ()
    digest: dict[str, str] | None = None


@dataclass(frozen=True, slots=True)
class DigestSpec:
    hash_algorithm: str
    normalisation_algorithm: str
    value: str


@dataclass(frozen=True, slots=True)
class SignatureSpec:
    algorithm: str
    value: str
    media_type: str = ""
    issuer: str | None = None


@dataclass(frozen=True, slots=True)
class DescriptorSignature:
    name: str
    digest: DigestSpec
    signature: SignatureSpec


@dataclass(frozen=True, slots=True)
class CanonicalDescriptor:
    """One component version in the single shape the pipeline works with."""

    name: str
    version: str
    provider: str = ""
    labels: tuple[dict[str, Any], ...] = ()
    repository_contexts: tuple[dict[str, Any], ...] = ()
    resources: tuple[dict[str, Any], ...] = ()
    sources: tuple[dict[str, Any], ...] = ()
    references: tuple[DescriptorReference, ...] = ()
    signatures: tuple[DescriptorSignature, ...] = ()

    @property
    def component_spec(self) -> dict[str, Any]:
        """Return the ``ocm.software/v3alpha1`` spec payload for this descriptor."""

        return {
            "resources": [dict(resource) for resource in self.resources],
            "sources": [dict(source) for source in self.sources],
            "references": [_reference_payload(reference) for reference in self.references],
        }

    def signature(self, name: str) -> DescriptorSignature | None:
        for signature in self.signatures:
            if signature.name == name:
                return signature
        return None


def _reference_payload(reference: DescriptorReference) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "name": reference.name,
        "componentName": reference.component_name,
        "version": reference.version,
    }
    if reference.extra_identity:
        payload["extraIdentity"] = dict(reference.extra_identity)
    if reference.labels:
        payload["labels"] = [dict(label) for label in reference.labels]
    if reference.digest:
        payload["digest"] = dict(reference.digest)
    return payload


@dataclass(eq=False, kw_only=True)
class ComponentDescriptor:
    """Persisted graph node, addressed by its canonical key.

    ``owner_name`` links the node to the root intent whose deletion removes it.
    """

    key: str
    name: str
    version: str
    extra_identity: dict[str, str] = field(default_factory=dict[str, str])
    component_spec: dict[str, Any] = field(default_factory=dict[str, Any])
    owner_name: str | None = None
    resource_version: int | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))


@dataclass(frozen=True, slots=True)
class Reference:
    """Resolved edge in the dependency tree, pointing at a persisted descriptor."""

    name: str
    version: str
    component_descriptor_ref: str
    extra_identity: dict[str, str] = field(default_factory=dict[str, str])
    references: tuple[Reference, ...] = ()


@dataclass(frozen=True, slots=True)
class VerificationOutcome:
    verified: bool
    digest: str = ""
