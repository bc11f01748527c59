from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from ocmgraph.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyGraphUnitOfWork,
    StartupError,
    configured_engine,
    create_database_engine,
    is_started,
    shutdown,
    startup,
)
from ocmgraph.domain.errors import ConflictError
from ocmgraph.domain.model import ComponentDescriptor, ComponentVersion
from tests.support.graph import make_spec

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator
    from pathlib import Path


@pytest.fixture(autouse=True)
def reset_unit_of_work_state() -> Iterator[None]:
    shutdown()
    yield
    shutdown()


@pytest.fixture
def file_unit_of_work(tmp_path: Path) -> Callable[[], SqlAlchemyGraphUnitOfWork]:
    engine = create_database_engine(f"sqlite+pysqlite:///{tmp_path / 'graph.db'}")
    startup(engine=engine, force=True)
    with SqlAlchemyGraphUnitOfWork() as uow:
        uow.repositories.component_versions.add(
            ComponentVersion(name="app", spec=make_spec("acme.org/app", "1.0.0"))
        )
        uow.commit()
    return SqlAlchemyGraphUnitOfWork


def test_unit_of_work_requires_startup() -> None:
    with pytest.raises(StartupError):
        SqlAlchemyGraphUnitOfWork()


def test_startup_requires_force_for_reconfiguration() -> None:
    engine_a = create_database_engine("sqlite+pysqlite:///:memory:")
    engine_b = create_database_engine("sqlite+pysqlite:///:memory:")

    startup(engine=engine_a, force=True)
    assert is_started()

    with pytest.raises(StartupError):
        startup(engine=engine_b)

    startup(engine=engine_b, force=True)
    assert configured_engine() is engine_b


def test_stale_write_is_reported_as_conflict(
    file_unit_of_work: Callable[[], SqlAlchemyGraphUnitOfWork],
) -> None:
    with file_unit_of_work() as first, file_unit_of_work() as second:
        winner = first.repositories.component_versions.get("app")
        loser = second.repositories.component_versions.get("app")
        assert winner is not None
        assert loser is not None

        winner.generation = 2
        first.commit()

        loser.generation = 3
        with pytest.raises(ConflictError, match="concurrent modification"):
            second.commit()

    with file_unit_of_work() as uow:
        stored = uow.repositories.component_versions.get("app")
        assert stored is not None
        assert stored.generation == 2
        assert stored.resource_version == 2


def test_concurrent_insert_of_same_key_is_reported_as_conflict(
    file_unit_of_work: Callable[[], SqlAlchemyGraphUnitOfWork],
) -> None:
    def node() -> ComponentDescriptor:
        return ComponentDescriptor(
            key="acme.org-lib-1.0.0-1", name="acme.org/lib", version="1.0.0", owner_name="app"
        )

    with file_unit_of_work() as first, file_unit_of_work() as second:
        assert second.repositories.descriptors.get("acme.org-lib-1.0.0-1") is None
        first.repositories.descriptors.add(node())
        first.commit()

        second.repositories.descriptors.add(node())
        with pytest.raises(ConflictError):
            second.commit()

    with file_unit_of_work() as uow:
        assert uow.repositories.descriptors.count() == 1


def test_exception_inside_block_rolls_back(
    file_unit_of_work: Callable[[], SqlAlchemyGraphUnitOfWork],
) -> None:
    with pytest.raises(RuntimeError), file_unit_of_work() as uow:
        stored = uow.repositories.component_versions.get("app")
        assert stored is not None
        stored.generation = 9
        raise RuntimeError("boom")

    with file_unit_of_work() as uow:
        stored = uow.repositories.component_versions.get("app")
        assert stored is not None
        assert stored.generation == 1
