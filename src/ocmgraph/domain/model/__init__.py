"""Domain model for component versions and their resolved dependency graphs."""

from __future__ import annotations

from .component_version import (
    ComponentVersion,
    ComponentVersionSpec,
    ComponentVersionStatus,
    Condition,
    ConfigRef,
    PublicKeyRef,
    RepositoryRef,
    SecretRef,
    SignatureConfig,
)
from .descriptor import (
    CanonicalDescriptor,
    ComponentDescriptor,
    DescriptorReference,
    DescriptorSignature,
    DigestSpec,
    RawDescriptor,
    Reference,
    SignatureSpec,
    VerificationOutcome,
)
from .enums import ConditionReason, ConditionStatus, ConditionType, Operation, SchemaVersion

__all__ = [
    "CanonicalDescriptor",
    "ComponentDescriptor",
    "ComponentVersion",
    "ComponentVersionSpec",
    "ComponentVersionStatus",
    "Condition",
    "ConditionReason",
    "ConditionStatus",
    "ConditionType",
    "ConfigRef",
    "DescriptorReference",
    "DescriptorSignature",
    "DigestSpec",
    "Operation",
    "PublicKeyRef",
    "RawDescriptor",
    "Reference",
    "RepositoryRef",
    "SchemaVersion",
    "SecretRef",
    "SignatureConfig",
    "SignatureSpec",
    "VerificationOutcome",
]
