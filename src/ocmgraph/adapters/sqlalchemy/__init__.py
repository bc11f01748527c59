"""SQLAlchemy adapter package for ocmgraph."""

from __future__ import annotations

from .mappings import mapper_registry, start_mappers
from .repositories import (
    SqlAlchemyComponentDescriptorRepository,
    SqlAlchemyComponentVersionRepository,
)
from .unit_of_work import (
    SqlAlchemyGraphUnitOfWork,
    StartupError,
    create_database_engine,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyComponentDescriptorRepository",
    "SqlAlchemyComponentVersionRepository",
    "SqlAlchemyGraphUnitOfWork",
    "StartupError",
    "create_database_engine",
    "mapper_registry",
    "shutdown",
    "startup",
    "start_mappers",
]
