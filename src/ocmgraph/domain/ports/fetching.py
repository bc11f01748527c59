"""Ports for fetching component versions from a component repository."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from ocmgraph.domain.model import RawDescriptor, RepositoryRef


@runtime_checkable
class ComponentFetcher(Protocol):
    """Callable port retrieving one component version descriptor.

    Implementations raise ``FetchError`` for transport failures; callers treat
    those as retryable.
    """

    def __call__(
        self,
        *,
        repository: RepositoryRef,
        name: str,
        version: str,
    ) -> RawDescriptor: ...


__all__ = ["ComponentFetcher"]
