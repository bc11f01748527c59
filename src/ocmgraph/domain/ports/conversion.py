"""Port for normalising fetched descriptors into the canonical shape."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping

    from ocmgraph.domain.model import CanonicalDescriptor


@runtime_checkable
class DescriptorConverter(Protocol):
    """Map a raw descriptor payload of any known schema version onto one shape.

    Raises ``ConversionError`` when the payload matches no known schema.
    """

    def __call__(
        self,
        payload: Mapping[str, Any],
        schema_version: str | None = None,
    ) -> CanonicalDescriptor: ...


__all__ = ["DescriptorConverter"]
