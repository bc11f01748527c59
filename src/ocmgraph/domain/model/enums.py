"""Enumerations shared across the domain model."""

from __future__ import annotations

from enum import StrEnum


class ConditionType(StrEnum):
    READY = "Ready"
    VERIFIED = "Verified"


class ConditionStatus(StrEnum):
    TRUE = "True"
    FALSE = "False"
    UNKNOWN = "Unknown"


class ConditionReason(StrEnum):
    SUCCEEDED = "Succeeded"
    SIGNATURE_MISMATCH = "SignatureMismatch"
    VERIFICATION_ERROR = "VerificationError"
    VERIFICATION_FAILED = "VerificationFailed"
    CONVERSION_FAILED = "ConversionFailed"
    CYCLE_DETECTED = "CycleDetected"
    REFERENCE_NOT_FOUND = "ReferenceNotFound"


class Operation(StrEnum):
    """Outcome of a create-or-update against the store."""

    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"


class SchemaVersion(StrEnum):
    V2 = "v2"
    V3ALPHA1 = "ocm.software/v3alpha1"
