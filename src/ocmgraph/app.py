"""Application orchestration entry points."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from ocmgraph.adapters.ocm import (
    DescriptorVerifier,
    FileKeyring,
    build_http_fetcher,
    convert_descriptor,
)
from ocmgraph.adapters.scheduling import InMemoryWorkQueue
from ocmgraph.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyGraphUnitOfWork,
    is_started,
    startup,
)
from ocmgraph.config import (
    get_controller_config,
    get_keyring_config,
    get_repository_client_config,
    get_storage_config,
)
from ocmgraph.domain.model import ComponentVersion, Operation
from ocmgraph.domain.reconciliation import ComponentVersionReconciler, Controller

if TYPE_CHECKING:
    import threading

    from ocmgraph.domain.model import ComponentDescriptor, ComponentVersionSpec
    from ocmgraph.domain.ports import ComponentFetcher, SignatureVerifier, WorkQueue
    from ocmgraph.domain.reconciliation import ReconcileResult
    from ocmgraph.domain.reconciliation.persist import UnitOfWorkFactory

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ApplyResult:
    name: str
    generation: int
    operation: Operation


def _default_unit_of_work_factory(factory: UnitOfWorkFactory | None) -> UnitOfWorkFactory:
    if factory is not None:
        return factory
    if not is_started():
        startup()
    return SqlAlchemyGraphUnitOfWork


def build_verifier() -> DescriptorVerifier:
    keys_dir = get_keyring_config().keys_dir or get_storage_config().resolve_data_dir() / "keys"
    return DescriptorVerifier(FileKeyring(keys_dir))


def build_reconciler(
    *,
    fetcher: ComponentFetcher | None = None,
    verifier: SignatureVerifier | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> ComponentVersionReconciler:
    """Wire the reconcile engine to the configured adapters."""

    return ComponentVersionReconciler(
        fetcher=fetcher or build_http_fetcher(get_repository_client_config()),
        converter=convert_descriptor,
        verifier=verifier or build_verifier(),
        unit_of_work_factory=_default_unit_of_work_factory(unit_of_work_factory),
        max_conflict_attempts=get_controller_config().conflict_retries,
    )


def apply_component_version(
    name: str,
    spec: ComponentVersionSpec,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> ApplyResult:
    """Create or update a root intent; ``generation`` moves only when the spec changes."""

    uow_factory = _default_unit_of_work_factory(unit_of_work_factory)
    with uow_factory() as uow:
        repository = uow.repositories.component_versions
        existing = repository.get(name)
        if existing is None:
            repository.add(ComponentVersion(name=name, spec=spec))
            uow.commit()
            log.info("Component version %s created", name)
            return ApplyResult(name=name, generation=1, operation=Operation.CREATED)
        if existing.spec == spec:
            log.info("Component version %s unchanged", name)
            return ApplyResult(
                name=name, generation=existing.generation, operation=Operation.UNCHANGED
            )
        existing.spec = spec
        existing.generation += 1
        uow.commit()
        log.info("Component version %s updated to generation %d", name, existing.generation)
        return ApplyResult(name=name, generation=existing.generation, operation=Operation.UPDATED)


def reconcile_component_version(
    name: str,
    *,
    reconciler: ComponentVersionReconciler | None = None,
) -> ReconcileResult:
    return (reconciler or build_reconciler()).reconcile(name)


def run_controller(
    stop: threading.Event,
    *,
    reconciler: ComponentVersionReconciler | None = None,
    queue: WorkQueue | None = None,
    workers: int | None = None,
) -> None:
    """Reconcile every stored root intent on its interval until ``stop`` is set."""

    config = get_controller_config()
    effective_reconciler = reconciler or build_reconciler()
    controller = Controller(
        queue=queue or InMemoryWorkQueue(),
        reconciler=effective_reconciler,
        error_requeue_after=config.default_interval,
    )
    names = [
        component_version.name
        for component_version in list_component_versions(
            unit_of_work_factory=effective_reconciler.unit_of_work_factory
        )
    ]
    log.info("Seeding controller with %d component version(s)", len(names))
    controller.enqueue(names)
    controller.run(stop, workers=workers or config.workers)


def get_component_version(
    name: str,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> ComponentVersion | None:
    uow_factory = _default_unit_of_work_factory(unit_of_work_factory)
    with uow_factory() as uow:
        return uow.repositories.component_versions.get(name)


def list_component_versions(
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> list[ComponentVersion]:
    uow_factory = _default_unit_of_work_factory(unit_of_work_factory)
    with uow_factory() as uow:
        return list(uow.repositories.component_versions.list())


def list_component_descriptors(
    owner_name: str,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> list[ComponentDescriptor]:
    uow_factory = _default_unit_of_work_factory(unit_of_work_factory)
    with uow_factory() as uow:
        return list(uow.repositories.descriptors.list_by_owner(owner_name))


def delete_component_version(
    name: str,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> bool:
    """Delete a root intent together with every graph node it owns."""

    uow_factory = _default_unit_of_work_factory(unit_of_work_factory)
    with uow_factory() as uow:
        existing = uow.repositories.component_versions.get(name)
        if existing is None:
            return False
        uow.repositories.component_versions.delete(existing)
        uow.commit()
    log.info("Component version %s deleted", name)
    return True
