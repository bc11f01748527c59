"""Recursive expansion of component references into a resolved tree."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from ocmgraph.domain.errors import ConversionError, CycleDetectedError, ReferenceNotFoundError
from ocmgraph.domain.model import Reference
from ocmgraph.domain.naming import compute_key

from .persist import NodePayload

if TYPE_CHECKING:
    from ocmgraph.domain.model import CanonicalDescriptor, DescriptorReference, RepositoryRef
    from ocmgraph.domain.ports import ComponentFetcher, DescriptorConverter

    from .context import ReconcileContext
    from .persist import DescriptorStore

log = getLogger(__name__)


@dataclass(slots=True)
class GraphBuilder:
    """Walk a descriptor's references depth-first, persisting every node.

    All nodes are owned by the root intent rather than their graph parent, so
    deleting the root removes the whole graph in one hop. The walk is sequential and
    keeps declaration order in its output. A key that reappears on the active path
    aborts the walk with ``CycleDetectedError``.
    """

    fetcher: ComponentFetcher
    converter: DescriptorConverter
    store: DescriptorStore

    def expand(
        self,
        owner: str,
        descriptor: CanonicalDescriptor,
        *,
        repository: RepositoryRef,
        context: ReconcileContext,
        path: tuple[str, ...] = (),
        only: str | None = None,
    ) -> tuple[Reference, ...]:
        """Resolve the references of ``descriptor`` into a tree of ``Reference``.

        ``path`` holds the keys of the nodes currently being expanded, the root
        included. ``only`` restricts this level to the declared reference of that
        name.
        """

        declared = descriptor.references
        if only is not None:
            declared = tuple(ref for ref in declared if ref.name == only)
            if not declared:
                raise ReferenceNotFoundError(
                    f"component {descriptor.name}@{descriptor.version} "
                    f"declares no reference named {only!r}"
                )

        references: list[Reference] = []
        for ref in declared:
            references.append(
                self._resolve(owner, ref, repository=repository, context=context, path=path)
            )
        return tuple(references)

    def _resolve(
        self,
        owner: str,
        ref: DescriptorReference,
        *,
        repository: RepositoryRef,
        context: ReconcileContext,
        path: tuple[str, ...],
    ) -> Reference:
        key = compute_key(ref.component_name, ref.version, ref.extra_identity)
        if key in path:
            raise CycleDetectedError([*path, key])

        context.raise_if_cancelled(f"fetch of {ref.component_name}@{ref.version}")
        raw = self.fetcher(repository=repository, name=ref.component_name, version=ref.version)
        try:
            child = self.converter(raw.payload, raw.schema_version)
        except ConversionError as exc:
            raise ConversionError(
                f"failed to convert component descriptor "
                f"{ref.component_name}@{ref.version}: {exc}"
            ) from exc

        result = self.store.upsert(
            key,
            owner=owner,
            payload=NodePayload(
                name=child.name,
                version=ref.version,
                extra_identity=ref.extra_identity,
                component_spec=child.component_spec,
            ),
            context=context,
        )
        log.debug("Resolved reference %s -> %s (%s)", ref.name, key, result.operation)

        nested: tuple[Reference, ...] = ()
        if child.references:
            nested = self.expand(
                owner,
                child,
                repository=repository,
                context=context,
                path=(*path, key),
            )

        return Reference(
            name=ref.name,
            version=ref.version,
            component_descriptor_ref=key,
            extra_identity=dict(ref.extra_identity),
            references=nested,
        )
