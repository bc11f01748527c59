"""Create component version and component descriptor tables.

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "component_version",
        sa.Column("name", sa.String(length=253), nullable=False),
        sa.Column("generation", sa.Integer(), nullable=False),
        sa.Column("resource_version", sa.Integer(), nullable=False),
        sa.Column("spec", sa.JSON(), nullable=False),
        sa.Column("status", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("name", name=op.f("pk_component_version")),
    )
    op.create_table(
        "component_descriptor",
        sa.Column("key", sa.String(length=512), nullable=False),
        sa.Column("owner_name", sa.String(length=253), nullable=True),
        sa.Column("name", sa.String(length=512), nullable=False),
        sa.Column("version", sa.String(length=128), nullable=False),
        sa.Column("extra_identity", sa.JSON(), nullable=False),
        sa.Column("component_spec", sa.JSON(), nullable=False),
        sa.Column("resource_version", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["owner_name"],
            ["component_version.name"],
            name=op.f("fk_component_descriptor_owner_name_component_version"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("key", name=op.f("pk_component_descriptor")),
    )
    op.create_index(
        "ix_component_descriptor_owner_name",
        "component_descriptor",
        ["owner_name"],
    )


def downgrade() -> None:
    op.drop_index("ix_component_descriptor_owner_name", table_name="component_descriptor")
    op.drop_table("component_descriptor")
    op.drop_table("component_version")
