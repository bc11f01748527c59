"""Ports for the persistent keyed store."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ocmgraph.domain.model import ComponentDescriptor, ComponentVersion


@runtime_checkable
class Repository[TEntity](Protocol):
    """Minimal repository contract for a persistent aggregate store."""

    def add(self, entity: TEntity) -> None: ...


@runtime_checkable
class ComponentVersionRepository(Repository["ComponentVersion"], Protocol):
    """Persistence contract for root intents, keyed by name."""

    def get(self, name: str) -> ComponentVersion | None: ...

    def list(self) -> Sequence[ComponentVersion]: ...

    def delete(self, entity: ComponentVersion) -> None: ...


@runtime_checkable
class ComponentDescriptorRepository(Repository["ComponentDescriptor"], Protocol):
    """Persistence contract for graph nodes, keyed by canonical key."""

    def get(self, key: str) -> ComponentDescriptor | None: ...

    def list_by_owner(self, owner_name: str) -> Sequence[ComponentDescriptor]: ...

    def count(self) -> int: ...
