from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING

from ocmgraph.domain.model import (
    ComponentDescriptor,
    ComponentVersion,
    Condition,
    ConditionReason,
    ConditionStatus,
    ConditionType,
    Reference,
)
from tests.support.graph import make_spec

if TYPE_CHECKING:
    from collections.abc import Callable

    from ocmgraph.adapters.sqlalchemy.unit_of_work import SqlAlchemyGraphUnitOfWork

    UowFactory = Callable[[], SqlAlchemyGraphUnitOfWork]


def _add_root(factory: UowFactory, name: str = "app") -> None:
    with factory() as uow:
        uow.repositories.component_versions.add(
            ComponentVersion(
                name=name,
                spec=make_spec(
                    "acme.org/app",
                    "1.0.0",
                    extra_identity={"arch": "amd64"},
                    verify=[("acme", "acme-key")],
                ),
            )
        )
        uow.commit()


def _add_node(factory: UowFactory, key: str, owner: str = "app") -> None:
    with factory() as uow:
        uow.repositories.descriptors.add(
            ComponentDescriptor(
                key=key,
                name="acme.org/lib",
                version="1.0.0",
                extra_identity={"arch": "amd64"},
                component_spec={"resources": [], "sources": [], "references": []},
                owner_name=owner,
            )
        )
        uow.commit()


def test_component_version_round_trips_spec_and_status(sqlite_unit_of_work: UowFactory) -> None:
    _add_root(sqlite_unit_of_work)
    graph_root = Reference(
        name="acme.org/app",
        version="1.0.0",
        component_descriptor_ref="root-key",
        references=(
            Reference(
                name="lib",
                version="1.0.0",
                component_descriptor_ref="lib-key",
                extra_identity={"arch": "amd64"},
            ),
        ),
    )
    ready = Condition(
        type=ConditionType.READY,
        status=ConditionStatus.TRUE,
        reason=ConditionReason.SUCCEEDED,
        observed_generation=1,
    )

    with sqlite_unit_of_work() as uow:
        stored = uow.repositories.component_versions.get("app")
        assert stored is not None
        stored.status = replace(
            stored.status.with_condition(ready),
            resolved_graph_root=graph_root,
            verified=True,
            latest_resolved_digest="abc",
        )
        uow.commit()
        expected_status = stored.status

    with sqlite_unit_of_work() as uow:
        loaded = uow.repositories.component_versions.get("app")

    assert loaded is not None
    assert loaded.spec == make_spec(
        "acme.org/app", "1.0.0", extra_identity={"arch": "amd64"}, verify=[("acme", "acme-key")]
    )
    assert loaded.status == expected_status
    assert loaded.is_ready()
    assert loaded.resource_version == 2


def test_list_returns_component_versions_by_name(sqlite_unit_of_work: UowFactory) -> None:
    _add_root(sqlite_unit_of_work, "zeta")
    _add_root(sqlite_unit_of_work, "alpha")

    with sqlite_unit_of_work() as uow:
        names = [item.name for item in uow.repositories.component_versions.list()]

    assert names == ["alpha", "zeta"]


def test_descriptor_lookup_by_key_and_owner(sqlite_unit_of_work: UowFactory) -> None:
    _add_root(sqlite_unit_of_work, "app")
    _add_root(sqlite_unit_of_work, "other")
    _add_node(sqlite_unit_of_work, "b-key")
    _add_node(sqlite_unit_of_work, "a-key")
    _add_node(sqlite_unit_of_work, "c-key", owner="other")

    with sqlite_unit_of_work() as uow:
        repo = uow.repositories.descriptors
        node = repo.get("a-key")
        owned = [item.key for item in repo.list_by_owner("app")]
        total = repo.count()

    assert node is not None
    assert node.extra_identity == {"arch": "amd64"}
    assert node.resource_version == 1
    assert owned == ["a-key", "b-key"]
    assert total == 3


def test_deleting_component_version_cascades_to_owned_descriptors(
    sqlite_unit_of_work: UowFactory,
) -> None:
    _add_root(sqlite_unit_of_work, "app")
    _add_root(sqlite_unit_of_work, "other")
    _add_node(sqlite_unit_of_work, "a-key")
    _add_node(sqlite_unit_of_work, "b-key")
    _add_node(sqlite_unit_of_work, "c-key", owner="other")

    with sqlite_unit_of_work() as uow:
        root = uow.repositories.component_versions.get("app")
        assert root is not None
        uow.repositories.component_versions.delete(root)
        uow.commit()

    with sqlite_unit_of_work() as uow:
        assert uow.repositories.component_versions.get("app") is None
        assert uow.repositories.descriptors.list_by_owner("app") == []
        assert uow.repositories.descriptors.count() == 1
