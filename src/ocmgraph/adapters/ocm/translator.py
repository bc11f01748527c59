"""Translate published descriptor payloads into canonical descriptors."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from ocmgraph.domain.errors import ConversionError
from ocmgraph.domain.model import (
    CanonicalDescriptor,
    DescriptorReference,
    DescriptorSignature,
    DigestSpec,
    SchemaVersion,
    SignatureSpec,
)

from .schema import (
    ComponentDescriptorV2,
    ComponentDescriptorV3,
    ComponentReference,
    Label,
    Resource,
    Signature,
    Source,
    detect_schema_version,
)

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence


def convert_descriptor(
    payload: Mapping[str, Any],
    schema_version: str | None = None,
) -> CanonicalDescriptor:
    """Convert ``payload`` of any known schema version into a ``CanonicalDescriptor``.

    ``schema_version`` overrides what the payload declares. Raises ``ConversionError``
    when the version is unknown or the payload does not fit its schema.
    """

    version = schema_version or detect_schema_version(payload)
    try:
        if version == SchemaVersion.V2:
            return _from_v2(ComponentDescriptorV2.model_validate(payload))
        if version == SchemaVersion.V3ALPHA1:
            return _from_v3(ComponentDescriptorV3.model_validate(payload))
    except ValidationError as exc:
        raise ConversionError(
            f"descriptor does not match schema {version}: {exc.error_count()} error(s), "
            f"first: {_first_error(exc)}"
        ) from exc
    raise ConversionError(f"unknown component descriptor schema version {version!r}")


def _from_v2(document: ComponentDescriptorV2) -> CanonicalDescriptor:
    component = document.component
    return CanonicalDescriptor(
        name=component.name,
        version=component.version,
        provider=component.provider,
        labels=_labels(component.labels),
        repository_contexts=tuple(component.repository_contexts),
        resources=_elements(component.resources),
        sources=_elements(component.sources),
        references=_references(component.component_references),
        signatures=_signatures(document.signatures),
    )


def _from_v3(document: ComponentDescriptorV3) -> CanonicalDescriptor:
    metadata = document.metadata
    return CanonicalDescriptor(
        name=metadata.name,
        version=metadata.version,
        provider=metadata.provider.name if metadata.provider else "",
        labels=_labels(metadata.labels),
        repository_contexts=tuple(document.repository_contexts),
        resources=_elements(document.spec.resources),
        sources=_elements(document.spec.sources),
        references=_references(document.spec.references),
        signatures=_signatures(document.signatures),
    )


def _labels(labels: Sequence[Label]) -> tuple[dict[str, Any], ...]:
    return tuple(
        label.model_dump(mode="json", by_alias=True, exclude_none=True) for label in labels
    )


def _elements(elements: Sequence[Resource | Source]) -> tuple[dict[str, Any], ...]:
    return tuple(
        element.model_dump(mode="json", by_alias=True, exclude_none=True) for element in elements
    )


def _references(references: Sequence[ComponentReference]) -> tuple[DescriptorReference, ...]:
    return tuple(
        DescriptorReference(
            name=reference.name,
            component_name=reference.component_name,
            version=reference.version,
            extra_identity=dict(reference.extra_identity),
            labels=_labels(reference.labels),
            digest=(
                reference.digest.model_dump(mode="json", by_alias=True, exclude_none=True)
                if reference.digest
                else None
            ),
        )
        for reference in references
    )


def _signatures(signatures: Sequence[Signature]) -> tuple[DescriptorSignature, ...]:
    return tuple(
        DescriptorSignature(
            name=signature.name,
            digest=DigestSpec(
                hash_algorithm=signature.digest.hash_algorithm,
                normalisation_algorithm=signature.digest.normalisation_algorithm,
                value=signature.digest.value,
            ),
            signature=SignatureSpec(
                algorithm=signature.signature.algorithm,
                value=signature.signature.value,
                media_type=signature.signature.media_type,
                issuer=signature.signature.issuer,
            ),
        )
        for signature in signatures
    )


def _first_error(exc: ValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return str(exc)
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    return f"{location}: {first.get('msg', '')}"
