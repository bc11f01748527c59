"""Reconcile one root intent: fetch, verify, persist, expand, commit status.

Every step is idempotent, so a reconcile interrupted anywhere can simply be run
again from the start. Graph nodes written before a failure are left in place;
the retry rewrites them with identical content.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from ocmgraph.domain.errors import (
    ConflictError,
    ConversionError,
    CycleDetectedError,
    FetchError,
    NamingError,
    OwnershipError,
    ReconcileError,
    ReferenceNotFoundError,
    SignatureMismatchError,
    VerificationError,
)
from ocmgraph.domain.model import (
    Condition,
    ConditionReason,
    ConditionStatus,
    ConditionType,
    Reference,
    VerificationOutcome,
)
from ocmgraph.domain.naming import compute_key

from .context import ReconcileContext
from .expand import GraphBuilder
from .persist import DEFAULT_MAX_ATTEMPTS, DescriptorStore, NodePayload, UnitOfWorkFactory
from .status import StatusPatch, StatusWriter
from .verify import VerificationGate

if TYPE_CHECKING:
    from datetime import timedelta

    from ocmgraph.domain.model import CanonicalDescriptor, ComponentVersion
    from ocmgraph.domain.ports import ComponentFetcher, DescriptorConverter, SignatureVerifier

log = getLogger(__name__)

_TRUE = ConditionStatus.TRUE
_FALSE = ConditionStatus.FALSE


@dataclass(slots=True)
class ReconcileResult:
    """Outcome of a successful reconcile."""

    name: str
    requeue_after: timedelta | None
    graph_root: Reference | None = None
    verification: VerificationOutcome | None = None
    status_changed: bool = False


@dataclass(slots=True)
class ComponentVersionReconciler:
    fetcher: ComponentFetcher
    converter: DescriptorConverter
    verifier: SignatureVerifier
    unit_of_work_factory: UnitOfWorkFactory
    max_conflict_attempts: int = DEFAULT_MAX_ATTEMPTS
    _gate: VerificationGate = field(init=False, repr=False)
    _store: DescriptorStore = field(init=False, repr=False)
    _builder: GraphBuilder = field(init=False, repr=False)
    _status: StatusWriter = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._gate = VerificationGate(self.verifier)
        self._store = DescriptorStore(self.unit_of_work_factory, self.max_conflict_attempts)
        self._builder = GraphBuilder(self.fetcher, self.converter, self._store)
        self._status = StatusWriter(self.unit_of_work_factory, self.max_conflict_attempts)

    def reconcile(self, name: str, *, context: ReconcileContext | None = None) -> ReconcileResult:
        """Reconcile the root intent called ``name``.

        Raises ``ReconcileError`` carrying the requeue delay on failure and
        ``ReconcileCancelledError`` when ``context`` is cancelled.
        """

        ctx = context or ReconcileContext()
        log.info("Starting component version reconcile for %s", name)

        ctx.raise_if_cancelled(f"load of component version {name}")
        root = self._load(name)
        if root is None:
            log.info("Component version %s not found, nothing to reconcile", name)
            return ReconcileResult(name=name, requeue_after=None)

        descriptor = self._fetch_root(root, ctx)
        outcome = self._verify(root, descriptor, ctx)

        identity = root.spec.config_ref.extra_identity
        try:
            root_key = compute_key(descriptor.name, descriptor.version, identity)
        except NamingError as exc:
            raise self._fail(root, ctx, ConditionReason.CONVERSION_FAILED, str(exc)) from exc
        self._persist_root(root, root_key, descriptor, ctx)

        references: tuple[Reference, ...] = ()
        if root.spec.expand:
            references = self._expand(root, root_key, descriptor, ctx)
        else:
            log.debug("Reference expansion disabled for %s", name)

        graph_root = Reference(
            name=descriptor.name,
            version=descriptor.version,
            component_descriptor_ref=root_key,
            extra_identity=dict(identity),
            references=references,
        )
        changed = self._commit(
            root,
            StatusPatch(
                observed_generation=root.generation,
                resolved_graph_root=graph_root,
                verification=outcome,
                conditions=(
                    _condition(
                        root,
                        ConditionType.VERIFIED,
                        _TRUE,
                        ConditionReason.SUCCEEDED,
                        "signatures verified",
                    ),
                    _condition(
                        root,
                        ConditionType.READY,
                        _TRUE,
                        ConditionReason.SUCCEEDED,
                        "reconciliation succeeded",
                    ),
                ),
            ),
            ctx,
        )
        log.info("Reconciliation complete for %s (status changed: %s)", name, changed)
        return ReconcileResult(
            name=name,
            requeue_after=root.requeue_after,
            graph_root=graph_root,
            verification=outcome,
            status_changed=changed,
        )

    def _load(self, name: str) -> ComponentVersion | None:
        with self.unit_of_work_factory() as uow:
            return uow.repositories.component_versions.get(name)

    def _fetch_root(self, root: ComponentVersion, ctx: ReconcileContext) -> CanonicalDescriptor:
        spec = root.spec
        ctx.raise_if_cancelled(f"fetch of {spec.component}@{spec.version}")
        try:
            raw = self.fetcher(
                repository=spec.repository, name=spec.component, version=spec.version
            )
        except FetchError as exc:
            raise ReconcileError(
                f"failed to get component version {spec.component}@{spec.version}: {exc}",
                requeue_after=root.requeue_after,
            ) from exc

        try:
            return self.converter(raw.payload, raw.schema_version)
        except ConversionError as exc:
            message = f"failed to convert component descriptor: {exc}"
            raise self._fail(root, ctx, ConditionReason.CONVERSION_FAILED, message) from exc

    def _verify(
        self,
        root: ComponentVersion,
        descriptor: CanonicalDescriptor,
        ctx: ReconcileContext,
    ) -> VerificationOutcome:
        try:
            return self._gate.check(descriptor, root.spec.verify)
        except SignatureMismatchError as exc:
            message = str(exc)
            verified_status = _FALSE
            verified_reason = ConditionReason.SIGNATURE_MISMATCH
            outcome: VerificationOutcome | None = VerificationOutcome(
                verified=False, digest=exc.digest
            )
            cause: VerificationError = exc
        except VerificationError as exc:
            message = f"failed to verify component: {exc}"
            verified_status = ConditionStatus.UNKNOWN
            verified_reason = ConditionReason.VERIFICATION_ERROR
            outcome = None
            cause = exc

        self._commit(
            root,
            StatusPatch(
                observed_generation=root.generation,
                verification=outcome,
                verified=False,
                conditions=(
                    _condition(
                        root, ConditionType.VERIFIED, verified_status, verified_reason, message
                    ),
                    _condition(
                        root,
                        ConditionType.READY,
                        _FALSE,
                        ConditionReason.VERIFICATION_FAILED,
                        message,
                    ),
                ),
            ),
            ctx,
        )
        raise ReconcileError(
            message,
            requeue_after=root.requeue_after,
            reason=verified_reason,
        ) from cause

    def _persist_root(
        self,
        root: ComponentVersion,
        key: str,
        descriptor: CanonicalDescriptor,
        ctx: ReconcileContext,
    ) -> None:
        try:
            result = self._store.upsert(
                key,
                owner=root.name,
                payload=NodePayload(
                    name=descriptor.name,
                    version=descriptor.version,
                    extra_identity=root.spec.config_ref.extra_identity,
                    component_spec=descriptor.component_spec,
                ),
                context=ctx,
            )
        except (ConflictError, OwnershipError) as exc:
            raise ReconcileError(
                f"failed to create or update component descriptor {key}: {exc}",
                requeue_after=root.requeue_after,
            ) from exc
        log.debug("Root component descriptor %s %s", key, result.operation)

    def _expand(
        self,
        root: ComponentVersion,
        root_key: str,
        descriptor: CanonicalDescriptor,
        ctx: ReconcileContext,
    ) -> tuple[Reference, ...]:
        try:
            return self._builder.expand(
                root.name,
                descriptor,
                repository=root.spec.repository,
                context=ctx,
                path=(root_key,),
                only=root.spec.config_ref.reference_path,
            )
        except CycleDetectedError as exc:
            raise self._fail(root, ctx, ConditionReason.CYCLE_DETECTED, str(exc)) from exc
        except ReferenceNotFoundError as exc:
            raise self._fail(root, ctx, ConditionReason.REFERENCE_NOT_FOUND, str(exc)) from exc
        except (ConversionError, NamingError) as exc:
            raise self._fail(root, ctx, ConditionReason.CONVERSION_FAILED, str(exc)) from exc
        except (FetchError, ConflictError, OwnershipError) as exc:
            raise ReconcileError(
                f"failed to get references of {descriptor.name}@{descriptor.version}: {exc}",
                requeue_after=root.requeue_after,
            ) from exc

    def _fail(
        self,
        root: ComponentVersion,
        ctx: ReconcileContext,
        reason: ConditionReason,
        message: str,
    ) -> ReconcileError:
        """Record a structural failure on status and build the error to raise."""

        self._commit(
            root,
            StatusPatch(
                observed_generation=root.generation,
                conditions=(_condition(root, ConditionType.READY, _FALSE, reason, message),),
            ),
            ctx,
        )
        return ReconcileError(
            message,
            requeue_after=root.requeue_after,
            reason=reason,
            retryable=False,
        )

    def _commit(self, root: ComponentVersion, patch: StatusPatch, ctx: ReconcileContext) -> bool:
        try:
            return self._status.commit(root.name, patch, context=ctx)
        except ConflictError as exc:
            raise ReconcileError(
                f"failed to patch resource {root.name}: {exc}",
                requeue_after=root.requeue_after,
            ) from exc


def _condition(
    root: ComponentVersion,
    condition_type: ConditionType,
    status: ConditionStatus,
    reason: ConditionReason,
    message: str,
) -> Condition:
    return Condition(
        type=condition_type,
        status=status,
        reason=reason,
        message=message,
        observed_generation=root.generation,
    )
