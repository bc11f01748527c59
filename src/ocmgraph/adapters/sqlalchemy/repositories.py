"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import func, select

from ocmgraph.adapters.sqlalchemy.mappings import (
    component_descriptor_table,
    component_version_table,
)
from ocmgraph.domain.model import ComponentDescriptor, ComponentVersion

if TYPE_CHECKING:
    from sqlalchemy.orm import Session


class SqlAlchemyComponentVersionRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: ComponentVersion) -> None:
        self.session.add(entity)

    def get(self, name: str) -> ComponentVersion | None:
        return self.session.get(ComponentVersion, name)

    def list(self) -> list[ComponentVersion]:
        stmt = select(ComponentVersion).order_by(component_version_table.c.name)
        return list(self.session.execute(stmt).scalars())

    def delete(self, entity: ComponentVersion) -> None:
        self.session.delete(entity)


class SqlAlchemyComponentDescriptorRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: ComponentDescriptor) -> None:
        self.session.add(entity)

    def get(self, key: str) -> ComponentDescriptor | None:
        return self.session.get(ComponentDescriptor, key)

    def list_by_owner(self, owner_name: str) -> list[ComponentDescriptor]:
        stmt = (
            select(ComponentDescriptor)
            .where(component_descriptor_table.c.owner_name == owner_name)
            .order_by(component_descriptor_table.c.key)
        )
        return list(self.session.execute(stmt).scalars())

    def count(self) -> int:
        stmt = select(func.count()).select_from(component_descriptor_table)
        return int(self.session.execute(stmt).scalar_one())


if TYPE_CHECKING:
    from ocmgraph.domain.ports import ComponentDescriptorRepository, ComponentVersionRepository

    def _check_versions(session: Session) -> ComponentVersionRepository:
        return SqlAlchemyComponentVersionRepository(session)

    def _check_descriptors(session: Session) -> ComponentDescriptorRepository:
        return SqlAlchemyComponentDescriptorRepository(session)
