# src/credit_metrics_api/adapters/repositories/metric_registry_repository.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Metric registry repository (SQLAlchemy).

Purpose:
    Persistence for registry versions, entries and bank pins in the
    ``metric_registry_versions``, ``metric_registry_entries`` and
    ``bank_registry_pins`` tables.

Layer:
    adapters/repositories

Design:
    * SQLAlchemy ORM with AsyncSession; the use case owns the transaction.
    * Publish and deprecate are compare-and-swap updates:
      ``UPDATE ... WHERE id = :id AND status = :expected RETURNING *``.
      Zero rows means the status changed underneath us; the method returns
      ``None`` and the caller raises the named conflict.
    * Entries are append-only; there is no update or delete statement. The
      append takes ``FOR UPDATE`` on the version row and inserts only while
      the version is still a draft.
    * Identifiers that are not valid UUIDs are treated as unknown rows.
    * Emits Prometheus metrics for latency and failures.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import delete, func, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from credit_metrics_api.adapters.repositories.base_repository import BaseRepository
from credit_metrics_api.domain.entities.metric_registry import (
    BankRegistryPin,
    RegistryEntry,
    RegistryVersion,
)
from credit_metrics_api.domain.enums.metric_registry import RegistryVersionStatus
from credit_metrics_api.domain.exceptions.metric_registry import (
    RegistryImmutableError,
    RegistryVersionNumberConflict,
)
from credit_metrics_api.domain.interfaces.repositories.metric_registry_repository import (
    MetricRegistryRepository as MetricRegistryRepositoryPort,
)
from credit_metrics_api.infrastructure.database.models.metric_registry import (
    BankRegistryPinRow,
    MetricRegistryEntry,
    MetricRegistryVersion,
)

# --------------------------------------------------------------------------- #
# Row <-> domain mapping                                                      #
# --------------------------------------------------------------------------- #


def parse_id(value: str) -> UUID | None:
    """Return ``value`` as a UUID, or ``None`` when it is not one."""
    try:
        return UUID(str(value))
    except ValueError:
        return None


def to_version(row: MetricRegistryVersion) -> RegistryVersion:
    """Map a version row to the domain entity."""
    return RegistryVersion(
        id=str(row.id),
        name=row.version_name,
        version_number=row.version_number,
        status=RegistryVersionStatus(row.status),
        content_hash=row.content_hash,
        published_at=row.published_at,
        created_at=row.created_at,
        updated_at=row.updated_at,
        created_by=row.created_by,
    )


def to_entry(row: MetricRegistryEntry) -> RegistryEntry:
    """Map an entry row to the domain entity."""
    return RegistryEntry(
        id=str(row.id),
        registry_version_id=str(row.registry_version_id),
        metric_key=row.metric_key,
        definition_json=dict(row.definition_json),
        definition_hash=row.definition_hash,
        created_at=row.created_at,
    )


def to_pin(row: BankRegistryPinRow) -> BankRegistryPin:
    """Map a pin row to the domain entity."""
    return BankRegistryPin(
        id=str(row.id),
        bank_id=row.bank_id,
        registry_version_id=str(row.registry_version_id),
        pinned_at=row.pinned_at,
        pinned_by=row.pinned_by,
        reason=row.reason,
    )


class SqlAlchemyMetricRegistryRepository(
    BaseRepository[MetricRegistryVersion],
    MetricRegistryRepositoryPort,
):
    """SQLAlchemy-backed registry store."""

    _MODEL_NAME = "metric_registry_versions"
    _CREATE_ATTEMPTS = 3

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the repository.

        Args:
            session: Async SQLAlchemy session bound to the database.
        """
        super().__init__(session=session)

    # ------------------------------------------------------------------
    # VERSIONS
    # ------------------------------------------------------------------

    async def get_version(
        self, version_id: str, *, for_update: bool = False
    ) -> RegistryVersion | None:
        """Return the version with ``version_id`` or ``None``.

        ``for_update`` issues ``SELECT ... FOR UPDATE`` so the row stays locked
        until the surrounding transaction commits or rolls back.
        """
        vid = parse_id(version_id)
        if vid is None:
            return None
        stmt = select(MetricRegistryVersion).where(MetricRegistryVersion.id == vid)
        if for_update:
            stmt = stmt.with_for_update()
        async with self._timed("get_version"):
            row = await self.fetch_optional(stmt)
        return to_version(row) if row is not None else None

    async def get_latest_published_version(self) -> RegistryVersion | None:
        """Return the published version with the latest ``published_at``."""
        async with self._timed("get_latest_published_version"):
            stmt = self.order_by_latest(
                select(MetricRegistryVersion).where(
                    MetricRegistryVersion.status == RegistryVersionStatus.PUBLISHED.value
                ),
                MetricRegistryVersion.published_at,
                MetricRegistryVersion.id,
            ).limit(1)
            row = await self.fetch_optional(stmt)
        return to_version(row) if row is not None else None

    async def list_published_versions(self) -> Sequence[RegistryVersion]:
        """Return published versions, newest publish first."""
        async with self._timed("list_published_versions"):
            stmt = self.order_by_latest(
                select(MetricRegistryVersion).where(
                    MetricRegistryVersion.status == RegistryVersionStatus.PUBLISHED.value
                ),
                MetricRegistryVersion.published_at,
                MetricRegistryVersion.id,
            )
            rows = await self.fetch_all(stmt)
        return [to_version(r) for r in rows]

    async def create_version(self, *, name: str, created_by: str | None) -> RegistryVersion:
        """Insert an empty draft with the next version number.

        Concurrent creations race on ``uq_metric_registry_versions_version_number``.
        The loser re-reads the maximum inside a savepoint and retries a bounded
        number of times.

        Raises:
            RegistryVersionNumberConflict: If every attempt lost the race.
        """
        async with self._timed("create_version"):
            for _ in range(self._CREATE_ATTEMPTS):
                res = await self._session.execute(
                    select(func.coalesce(func.max(MetricRegistryVersion.version_number), 0))
                )
                next_number = int(res.scalar_one()) + 1
                now = self.utc_now()
                row = MetricRegistryVersion(
                    id=uuid4(),
                    version_name=name,
                    version_number=next_number,
                    status=RegistryVersionStatus.DRAFT.value,
                    content_hash=None,
                    published_at=None,
                    created_at=now,
                    updated_at=now,
                    created_by=created_by,
                )
                try:
                    async with self._session.begin_nested():
                        self._session.add(row)
                except IntegrityError:
                    continue
                return to_version(row)
        raise RegistryVersionNumberConflict(
            f"Could not allocate a version number after {self._CREATE_ATTEMPTS} attempts.",
            details={"version_name": name, "attempts": self._CREATE_ATTEMPTS},
        )

    async def publish_version(
        self,
        version_id: str,
        *,
        content_hash: str,
        published_at: datetime,
    ) -> RegistryVersion | None:
        """CAS draft -> published, stamping ``content_hash`` and ``published_at``."""
        return await self._transition(
            "publish_version",
            version_id,
            expected=RegistryVersionStatus.DRAFT,
            values={
                "status": RegistryVersionStatus.PUBLISHED.value,
                "content_hash": content_hash,
                "published_at": published_at,
                "updated_at": published_at,
            },
        )

    async def deprecate_version(
        self,
        version_id: str,
        *,
        deprecated_at: datetime,
    ) -> RegistryVersion | None:
        """CAS published -> deprecated. Entries are left untouched."""
        return await self._transition(
            "deprecate_version",
            version_id,
            expected=RegistryVersionStatus.PUBLISHED,
            values={
                "status": RegistryVersionStatus.DEPRECATED.value,
                "updated_at": deprecated_at,
            },
        )

    async def _transition(
        self,
        operation: str,
        version_id: str,
        *,
        expected: RegistryVersionStatus,
        values: Mapping[str, Any],
    ) -> RegistryVersion | None:
        vid = parse_id(version_id)
        if vid is None:
            return None
        async with self._timed(operation):
            stmt = (
                update(MetricRegistryVersion)
                .where(
                    MetricRegistryVersion.id == vid,
                    MetricRegistryVersion.status == expected.value,
                )
                .values(**values)
                .returning(MetricRegistryVersion)
                .execution_options(synchronize_session=False)
            )
            res = await self._session.execute(stmt)
            row = res.scalars().first()
        return to_version(row) if row is not None else None

    # ------------------------------------------------------------------
    # ENTRIES
    # ------------------------------------------------------------------

    async def list_entries(self, version_id: str) -> Sequence[RegistryEntry]:
        """Return entries ordered by metric key, regardless of version status."""
        vid = parse_id(version_id)
        if vid is None:
            return []
        async with self._timed("list_entries"):
            res = await self._session.execute(
                select(MetricRegistryEntry)
                .where(MetricRegistryEntry.registry_version_id == vid)
                .order_by(MetricRegistryEntry.metric_key.asc())
            )
            rows = list(res.scalars().all())
        return [to_entry(r) for r in rows]

    async def add_entry(
        self,
        *,
        version_id: str,
        metric_key: str,
        definition_json: Mapping[str, Any],
        definition_hash: str,
    ) -> RegistryEntry | None:
        """Insert an entry into a draft; return ``None`` if the key already exists.

        The version row is locked and its status re-read before the insert, so
        an append can never land after a concurrent publish has hashed the
        entries.

        Raises:
            RegistryImmutableError: If the version is no longer a draft.
        """
        vid = parse_id(version_id)
        if vid is None:
            return None
        async with self._timed("add_entry"):
            status_res = await self._session.execute(
                select(MetricRegistryVersion.status)
                .where(MetricRegistryVersion.id == vid)
                .with_for_update()
            )
            status = status_res.scalar_one_or_none()
            if status != RegistryVersionStatus.DRAFT.value:
                raise RegistryImmutableError(
                    f"Registry version {version_id} is {status}; entries are immutable.",
                    details={"version_id": version_id, "status": status},
                )

            res = await self._session.execute(
                select(MetricRegistryEntry.id).where(
                    MetricRegistryEntry.registry_version_id == vid,
                    MetricRegistryEntry.metric_key == metric_key,
                )
            )
            if res.scalar_one_or_none() is not None:
                return None

            row = MetricRegistryEntry(
                id=uuid4(),
                registry_version_id=vid,
                metric_key=metric_key,
                definition_json=dict(definition_json),
                definition_hash=definition_hash,
                created_at=self.utc_now(),
            )
            try:
                async with self._session.begin_nested():
                    self._session.add(row)
            except IntegrityError:
                # Concurrent insert of the same key won the unique constraint.
                return None
        return to_entry(row)

    # ------------------------------------------------------------------
    # BANK PINS
    # ------------------------------------------------------------------

    async def get_bank_pin(self, bank_id: str) -> BankRegistryPin | None:
        """Return the live pin for ``bank_id`` or ``None``."""
        async with self._timed("get_bank_pin"):
            res = await self._session.execute(
                select(BankRegistryPinRow).where(BankRegistryPinRow.bank_id == bank_id)
            )
            row = res.scalars().first()
        return to_pin(row) if row is not None else None

    async def upsert_bank_pin(
        self,
        *,
        bank_id: str,
        version_id: str,
        pinned_by: str | None,
        reason: str | None,
    ) -> BankRegistryPin:
        """Insert or replace the pin for ``bank_id`` (unique on ``bank_id``)."""
        vid = parse_id(version_id)
        if vid is None:
            raise ValueError(f"Invalid registry version id: {version_id!r}")
        now = self.utc_now()
        async with self._timed("upsert_bank_pin"):
            stmt = pg_insert(BankRegistryPinRow).values(
                id=uuid4(),
                bank_id=bank_id,
                registry_version_id=vid,
                pinned_at=now,
                pinned_by=pinned_by,
                reason=reason,
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=[BankRegistryPinRow.bank_id],
                set_={
                    "registry_version_id": stmt.excluded.registry_version_id,
                    "pinned_at": stmt.excluded.pinned_at,
                    "pinned_by": stmt.excluded.pinned_by,
                    "reason": stmt.excluded.reason,
                },
            ).returning(BankRegistryPinRow)
            res = await self._session.execute(
                stmt.execution_options(populate_existing=True)
            )
            row = res.scalars().one()
        return to_pin(row)

    async def delete_bank_pin(self, bank_id: str) -> bool:
        """Delete the pin for ``bank_id``; True if a row was removed."""
        async with self._timed("delete_bank_pin"):
            res = await self._session.execute(
                delete(BankRegistryPinRow)
                .where(BankRegistryPinRow.bank_id == bank_id)
                .returning(BankRegistryPinRow.id)
            )
            return res.first() is not None


__all__ = [
    "SqlAlchemyMetricRegistryRepository",
    "parse_id",
    "to_entry",
    "to_pin",
    "to_version",
]
