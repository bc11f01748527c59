"""Patch-style commits of the root intent's observable status."""

from __future__ import annotations

from dataclasses import dataclass, replace
from logging import getLogger
from typing import TYPE_CHECKING

from ocmgraph.domain.errors import ConflictError

from .persist import DEFAULT_MAX_ATTEMPTS, UnitOfWorkFactory

if TYPE_CHECKING:
    from ocmgraph.domain.model import (
        ComponentVersionStatus,
        Condition,
        Reference,
        VerificationOutcome,
    )

    from .context import ReconcileContext

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class StatusPatch:
    """Fields to change on a root intent's status; ``None`` leaves a field as stored."""

    observed_generation: int
    resolved_graph_root: Reference | None = None
    verification: VerificationOutcome | None = None
    verified: bool | None = None
    conditions: tuple[Condition, ...] = ()

    def apply(self, status: ComponentVersionStatus) -> ComponentVersionStatus:
        patched = replace(status, observed_generation=self.observed_generation)
        if self.resolved_graph_root is not None:
            patched = replace(patched, resolved_graph_root=self.resolved_graph_root)
        if self.verification is not None:
            patched = replace(
                patched,
                verified=self.verification.verified,
                latest_resolved_digest=self.verification.digest,
            )
        if self.verified is not None:
            patched = replace(patched, verified=self.verified)
        for condition in self.conditions:
            patched = patched.with_condition(condition)
        return patched


@dataclass(slots=True)
class StatusWriter:
    """Merge a ``StatusPatch`` onto the currently stored status.

    The stored record is re-read for every attempt, so the in-memory copy the
    reconcile started from may be stale; conditions of other types survive.
    """

    unit_of_work_factory: UnitOfWorkFactory
    max_attempts: int = DEFAULT_MAX_ATTEMPTS

    def commit(self, name: str, patch: StatusPatch, *, context: ReconcileContext) -> bool:
        """Apply ``patch`` to the status of ``name``; return whether anything changed."""

        last_conflict: ConflictError | None = None
        for attempt in range(1, self.max_attempts + 1):
            context.raise_if_cancelled(f"status commit of {name}")
            try:
                return self._commit_once(name, patch)
            except ConflictError as exc:
                last_conflict = exc
                log.info(
                    "Conflict patching status of %s (attempt %d/%d): %s",
                    name,
                    attempt,
                    self.max_attempts,
                    exc,
                )
        raise ConflictError(
            f"failed to patch status of component version {name}: "
            f"still conflicting after {self.max_attempts} attempts",
            key=name,
        ) from last_conflict

    def _commit_once(self, name: str, patch: StatusPatch) -> bool:
        with self.unit_of_work_factory() as uow:
            stored = uow.repositories.component_versions.get(name)
            if stored is None:
                log.info("Component version %s is gone, skipping status commit", name)
                return False
            patched = patch.apply(stored.status)
            if patched == stored.status:
                return False
            stored.status = patched
            uow.commit()
            return True
