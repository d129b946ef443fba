# src/credit_metrics_api/infrastructure/database/models/metric_registry.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Metric registry ORM models.

Purpose:
    SQLAlchemy ORM mappings for the registry store:

    * ``metric_registry_versions``: versions with governance status and the
      content hash stamped at publish.
    * ``metric_registry_entries``: append-only metric definitions, unique on
      ``(registry_version_id, metric_key)``.
    * ``bank_registry_pins``: at most one live pin per bank.

Layer:
    infrastructure / database / models
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column

from credit_metrics_api.infrastructure.database.models.base import (
    DEFAULT_DB_SCHEMA,
    Base,
    JSONDocument,
    now_utc,
    qualified,
)


class MetricRegistryVersion(Base):
    """Registry version (``metric_registry_versions``)."""

    __tablename__ = "metric_registry_versions"
    __table_args__ = (
        UniqueConstraint("version_number", name="uq_metric_registry_versions_version_number"),
        CheckConstraint(
            "status IN ('draft', 'published', 'deprecated')",
            name="status_valid",
        ),
        Index("ix_metric_registry_versions_status_published_at", "status", "published_at"),
        {"schema": DEFAULT_DB_SCHEMA},
    )

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    version_name: Mapped[str] = mapped_column(String(128), nullable=False)
    version_number: Mapped[int] = mapped_column(Integer, nullable=False)
    content_hash: Mapped[str | None] = mapped_column(String(64), nullable=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="draft")
    published_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=now_utc
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=now_utc
    )
    created_by: Mapped[str | None] = mapped_column(String(255), nullable=True)


class MetricRegistryEntry(Base):
    """Registry entry (``metric_registry_entries``). Rows are never updated."""

    __tablename__ = "metric_registry_entries"
    __table_args__ = (
        UniqueConstraint(
            "registry_version_id",
            "metric_key",
            name="uq_metric_registry_entries_version_metric_key",
        ),
        {"schema": DEFAULT_DB_SCHEMA},
    )

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    registry_version_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey(qualified("metric_registry_versions", "id"), ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    metric_key: Mapped[str] = mapped_column(String(128), nullable=False)
    definition_json: Mapped[dict[str, Any]] = mapped_column(JSONDocument, nullable=False)
    definition_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=now_utc
    )


class BankRegistryPinRow(Base):
    """Bank pin (``bank_registry_pins``)."""

    __tablename__ = "bank_registry_pins"
    __table_args__ = (
        UniqueConstraint("bank_id", name="uq_bank_registry_pins_bank_id"),
        {"schema": DEFAULT_DB_SCHEMA},
    )

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    bank_id: Mapped[str] = mapped_column(String(128), nullable=False)
    registry_version_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey(qualified("metric_registry_versions", "id"), ondelete="RESTRICT"),
        nullable=False,
    )
    pinned_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=now_utc
    )
    pinned_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)


__all__ = ["BankRegistryPinRow", "MetricRegistryEntry", "MetricRegistryVersion"]
