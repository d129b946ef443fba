"""Create metric registry tables.

Revision ID: 20261017_0001_metric_registry
Revises:
Create Date: 2026-10-17

Registry versions, append-only registry entries and per-bank pins.
"""

from __future__ import annotations

import os
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "20261017_0001_metric_registry"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None

SCHEMA = os.getenv("DATABASE_SCHEMA", "metrics")


def upgrade() -> None:
    op.execute(sa.text(f'CREATE SCHEMA IF NOT EXISTS "{SCHEMA}"'))

    op.create_table(
        "metric_registry_versions",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("version_name", sa.String(length=128), nullable=False),
        sa.Column("version_number", sa.Integer, nullable=False),
        sa.Column("content_hash", sa.String(length=64), nullable=True),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="draft"),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.Column("created_by", sa.String(length=255), nullable=True),
        sa.UniqueConstraint("version_number", name="uq_metric_registry_versions_version_number"),
        sa.CheckConstraint(
            "status IN ('draft', 'published', 'deprecated')",
            name="ck_metric_registry_versions_status_valid",
        ),
        schema=SCHEMA,
    )
    op.create_index(
        "ix_metric_registry_versions_status_published_at",
        "metric_registry_versions",
        ["status", "published_at"],
        schema=SCHEMA,
    )

    op.create_table(
        "metric_registry_entries",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column(
            "registry_version_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey(f"{SCHEMA}.metric_registry_versions.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("metric_key", sa.String(length=128), nullable=False),
        sa.Column("definition_json", postgresql.JSONB, nullable=False),
        sa.Column("definition_hash", sa.String(length=64), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.UniqueConstraint(
            "registry_version_id",
            "metric_key",
            name="uq_metric_registry_entries_version_metric_key",
        ),
        schema=SCHEMA,
    )
    op.create_index(
        "ix_metric_registry_entries_registry_version_id",
        "metric_registry_entries",
        ["registry_version_id"],
        schema=SCHEMA,
    )

    op.create_table(
        "bank_registry_pins",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("bank_id", sa.String(length=128), nullable=False),
        sa.Column(
            "registry_version_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey(f"{SCHEMA}.metric_registry_versions.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column(
            "pinned_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.Column("pinned_by", sa.String(length=255), nullable=True),
        sa.Column("reason", sa.Text, nullable=True),
        sa.UniqueConstraint("bank_id", name="uq_bank_registry_pins_bank_id"),
        schema=SCHEMA,
    )


def downgrade() -> None:
    op.drop_table("bank_registry_pins", schema=SCHEMA)
    op.drop_index(
        "ix_metric_registry_entries_registry_version_id",
        table_name="metric_registry_entries",
        schema=SCHEMA,
    )
    op.drop_table("metric_registry_entries", schema=SCHEMA)
    op.drop_index(
        "ix_metric_registry_versions_status_published_at",
        table_name="metric_registry_versions",
        schema=SCHEMA,
    )
    op.drop_table("metric_registry_versions", schema=SCHEMA)
