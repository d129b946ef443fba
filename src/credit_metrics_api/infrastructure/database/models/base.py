# src/credit_metrics_api/infrastructure/database/models/base.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Declarative Base and persistence helpers for the credit metrics service.

This module defines:
    - A project-wide SQLAlchemy Declarative Base with deterministic naming
      conventions (for stable Alembic diffs).
    - The schema holding the registry tables (``DATABASE_SCHEMA``).
    - Portable column types: a JSON type that becomes JSONB on PostgreSQL.

Design Goals:
    * UTC everywhere.
    * Deterministic schema: Alembic-friendly naming conventions prevent churn.
    * Persistence-only; no domain behavior.
"""

from __future__ import annotations

import os
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import JSON, MetaData
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase

from credit_metrics_api.config.settings import get_settings

__all__ = [
    "Base",
    "DEFAULT_DB_SCHEMA",
    "JSONDocument",
    "metadata",
    "now_utc",
    "qualified",
]

# ======================================================================================
# Configuration
# ======================================================================================

try:
    DEFAULT_DB_SCHEMA: str = get_settings().database_schema
except RuntimeError:  # pragma: no cover - invalid env during tooling/migrations
    DEFAULT_DB_SCHEMA = os.getenv("DATABASE_SCHEMA", "metrics")

#: Deterministic naming conventions for Alembic-friendly diffs.
#: Ref: https://alembic.sqlalchemy.org/en/latest/naming.html
NAMING_CONVENTIONS: dict[str, str] = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

metadata = MetaData(naming_convention=NAMING_CONVENTIONS)

#: JSON column type; JSONB on PostgreSQL, generic JSON elsewhere.
JSONDocument: Any = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
    """Declarative Base for all ORM models."""

    metadata = metadata


def qualified(table: str, column: str) -> str:
    """Return a schema-qualified ``table.column`` reference for foreign keys."""
    return f"{DEFAULT_DB_SCHEMA}.{table}.{column}"


def now_utc() -> datetime:
    """Return the current UTC time with timezone info."""
    return datetime.now(UTC)
