"""Idempotent create-or-update of graph nodes.

Each upsert runs in its own unit of work, so a node is either fully written or not
at all. Write conflicts are retried against freshly read state.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Any

from ocmgraph.domain.errors import ConflictError, OwnershipError
from ocmgraph.domain.model import ComponentDescriptor, Operation
from ocmgraph.domain.ports.unit_of_work import GraphUnitOfWork

if TYPE_CHECKING:
    from collections.abc import Mapping

    from .context import ReconcileContext

UnitOfWorkFactory = Callable[[], GraphUnitOfWork]

DEFAULT_MAX_ATTEMPTS = 5

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class NodePayload:
    """Desired content of one graph node."""

    name: str
    version: str
    extra_identity: Mapping[str, str]
    component_spec: Mapping[str, Any]


@dataclass(frozen=True, slots=True)
class UpsertResult:
    key: str
    operation: Operation

    @property
    def created(self) -> bool:
        return self.operation is Operation.CREATED


@dataclass(slots=True)
class DescriptorStore:
    unit_of_work_factory: UnitOfWorkFactory
    max_attempts: int = DEFAULT_MAX_ATTEMPTS

    def upsert(
        self,
        key: str,
        *,
        owner: str,
        payload: NodePayload,
        context: ReconcileContext,
    ) -> UpsertResult:
        """Create the node at ``key`` owned by ``owner``, or refresh it in place.

        Owner linkage is only set on creation; an existing node keeps its owner.
        """

        last_error: ConflictError | OwnershipError | None = None
        for attempt in range(1, self.max_attempts + 1):
            context.raise_if_cancelled(f"upsert of component descriptor {key}")
            try:
                result = self._upsert_once(key, owner=owner, payload=payload)
            except (ConflictError, OwnershipError) as exc:
                last_error = exc
                log.info(
                    "Conflict writing component descriptor %s (attempt %d/%d): %s",
                    key,
                    attempt,
                    self.max_attempts,
                    exc,
                )
                continue
            log.debug("%s component descriptor %s", result.operation, key)
            return result

        if isinstance(last_error, OwnershipError):
            raise last_error
        raise ConflictError(
            f"failed to create or update component descriptor {key}: "
            f"still conflicting after {self.max_attempts} attempts",
            key=key,
        ) from last_error

    def _upsert_once(self, key: str, *, owner: str, payload: NodePayload) -> UpsertResult:
        with self.unit_of_work_factory() as uow:
            descriptors = uow.repositories.descriptors
            existing = descriptors.get(key)
            if existing is None:
                if uow.repositories.component_versions.get(owner) is None:
                    raise OwnershipError(
                        f"cannot set owner of component descriptor {key}: "
                        f"component version {owner} no longer exists"
                    )
                descriptors.add(
                    ComponentDescriptor(
                        key=key,
                        name=payload.name,
                        version=payload.version,
                        extra_identity=dict(payload.extra_identity),
                        component_spec=dict(payload.component_spec),
                        owner_name=owner,
                    )
                )
                uow.commit()
                return UpsertResult(key=key, operation=Operation.CREATED)

            if not _apply_payload(existing, payload):
                return UpsertResult(key=key, operation=Operation.UNCHANGED)
            uow.commit()
            return UpsertResult(key=key, operation=Operation.UPDATED)


def _apply_payload(record: ComponentDescriptor, payload: NodePayload) -> bool:
    changed = False
    if record.name != payload.name:
        record.name = payload.name
        changed = True
    if record.version != payload.version:
        record.version = payload.version
        changed = True
    if record.extra_identity != dict(payload.extra_identity):
        record.extra_identity = dict(payload.extra_identity)
        changed = True
    if record.component_spec != dict(payload.component_spec):
        record.component_spec = dict(payload.component_spec)
        changed = True
    return changed
