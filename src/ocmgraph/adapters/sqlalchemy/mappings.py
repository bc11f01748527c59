"""SQLAlchemy mapping metadata for the component graph model."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from functools import cache
from typing import Any, ClassVar

from pydantic import TypeAdapter
from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Dialect,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    TypeDecorator,
    orm,
)
from sqlalchemy.orm import configure_mappers, relationship

from ocmgraph.domain.model import (
    ComponentDescriptor,
    ComponentVersion,
    ComponentVersionSpec,
    ComponentVersionStatus,
)

log = logging.getLogger(__name__)


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


class _DataclassJSON[T](TypeDecorator[T]):
    """Store a frozen domain value as JSON, validated back through pydantic."""

    impl = JSON
    cache_ok = True
    adapter: ClassVar[TypeAdapter[Any]]

    def process_bind_param(self, value: T | None, dialect: Dialect) -> Any:
        _ = dialect
        if value is None:
            return None
        return self.adapter.dump_python(value, mode="json")

    def process_result_value(self, value: Any, dialect: Dialect) -> T | None:
        _ = dialect
        if value is None:
            return None
        return self.adapter.validate_python(value)


class ComponentVersionSpecType(_DataclassJSON[ComponentVersionSpec]):
    cache_ok = True
    adapter = TypeAdapter(ComponentVersionSpec)


class ComponentVersionStatusType(_DataclassJSON[ComponentVersionStatus]):
    cache_ok = True
    adapter = TypeAdapter(ComponentVersionStatus)


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

component_version_table = Table(
    "component_version",
    mapper_registry.metadata,
    Column("name", String(253), primary_key=True),
    Column("generation", Integer, nullable=False, default=1),
    Column("resource_version", Integer, nullable=False),
    Column("spec", ComponentVersionSpecType(), nullable=False),
    Column("status", ComponentVersionStatusType(), nullable=False),
    Column("created_at", UTCDateTime(), nullable=False),
)

component_descriptor_table = Table(
    "component_descriptor",
    mapper_registry.metadata,
    Column("key", String(512), primary_key=True),
    Column(
        "owner_name",
        String(253),
        ForeignKey("component_version.name", ondelete="CASCADE"),
        nullable=True,
    ),
    Column("name", String(512), nullable=False),
    Column("version", String(128), nullable=False),
    Column("extra_identity", JSON, nullable=False),
    Column("component_spec", JSON, nullable=False),
    Column("resource_version", Integer, nullable=False),
    Column("created_at", UTCDateTime(), nullable=False),
    Index("ix_component_descriptor_owner_name", "owner_name"),
)


@cache
def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for the domain model."""

    log.info("Starting SQLAlchemy mappers")

    mapper_registry.map_imperatively(
        ComponentVersion,
        component_version_table,
        version_id_col=component_version_table.c.resource_version,
        properties={
            "_descriptors": relationship(
                ComponentDescriptor,
                cascade="all, delete-orphan",
                foreign_keys=[component_descriptor_table.c.owner_name],
            ),
        },
    )

    mapper_registry.map_imperatively(
        ComponentDescriptor,
        component_descriptor_table,
        version_id_col=component_descriptor_table.c.resource_version,
    )

    configure_mappers()
    return mapper_registry
