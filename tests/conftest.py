from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest

from ocmgraph.adapters.sqlalchemy import start_mappers
from ocmgraph.adapters.sqlalchemy.migrations import upgrade_head
from ocmgraph.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyGraphUnitOfWork,
    create_database_engine,
    shutdown,
    startup,
)
from tests.support.graph import FakeComponentFetcher, FakeVerifier, InMemoryGraphStore

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from sqlalchemy.engine import Engine


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_database_engine("sqlite+pysqlite:///:memory:")
    start_mappers()
    upgrade_head(engine=engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def sqlite_unit_of_work(
    sqlite_engine: Engine,
) -> Iterator[Callable[[], SqlAlchemyGraphUnitOfWork]]:
    startup(engine=sqlite_engine, force=True)

    def factory() -> SqlAlchemyGraphUnitOfWork:
        return SqlAlchemyGraphUnitOfWork()

    try:
        yield factory
    finally:
        shutdown()


@pytest.fixture
def graph_store() -> InMemoryGraphStore:
    return InMemoryGraphStore()


@pytest.fixture
def fetcher() -> FakeComponentFetcher:
    return FakeComponentFetcher()


@pytest.fixture
def verifier() -> FakeVerifier:
    return FakeVerifier()
