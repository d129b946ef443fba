# tests/factories.py
"""In-memory doubles and builders shared by the test suite."""

from __future__ import annotations

import itertools
from collections.abc import Mapping, Sequence
from dataclasses import replace
from datetime import UTC, date, datetime
from decimal import Decimal
from typing import Any

from credit_metrics_api.domain.entities.financial_period import FinancialPeriod
from credit_metrics_api.domain.entities.metric_registry import (
    BankRegistryPin,
    RegistryEntry,
    RegistryVersion,
)
from credit_metrics_api.domain.enums.credit_analysis import PeriodType
from credit_metrics_api.domain.enums.metric_registry import RegistryVersionStatus
from credit_metrics_api.domain.exceptions.metric_registry import RegistryImmutableError
from credit_metrics_api.domain.interfaces.repositories.metric_registry_repository import (
    MetricRegistryRepository,
)

T0 = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)


class FakeMetricRegistryRepository:
    """In-memory registry store with the same CAS semantics as the SQL adapter."""

    def __init__(self) -> None:
        self.versions: dict[str, RegistryVersion] = {}
        self.entries: dict[str, list[RegistryEntry]] = {}
        self.pins: dict[str, BankRegistryPin] = {}
        self._ids = itertools.count(1)
        self.lose_next_transition = False
        self.locked: list[str] = []

    # Seeding helpers -------------------------------------------------- #

    def seed_version(
        self,
        *,
        name: str = "v1",
        status: RegistryVersionStatus = RegistryVersionStatus.DRAFT,
        content_hash: str | None = None,
        published_at: datetime | None = None,
        version_id: str | None = None,
    ) -> RegistryVersion:
        number = next(self._ids)
        version = RegistryVersion(
            id=version_id or f"ver-{number}",
            name=name,
            version_number=number,
            status=status,
            content_hash=content_hash,
            published_at=published_at,
            created_at=T0,
            updated_at=T0,
            created_by="tester",
        )
        self.versions[version.id] = version
        self.entries.setdefault(version.id, [])
        return version

    def seed_entry(
        self, version_id: str, metric_key: str, definition_json: Mapping[str, Any]
    ) -> RegistryEntry:
        entry = RegistryEntry(
            id=f"ent-{next(self._ids)}",
            registry_version_id=version_id,
            metric_key=metric_key,
            definition_json=dict(definition_json),
            definition_hash=f"hash-{metric_key}",
            created_at=T0,
        )
        self.entries.setdefault(version_id, []).append(entry)
        return entry

    def seed_pin(self, bank_id: str, version_id: str) -> BankRegistryPin:
        pin = BankRegistryPin(
            id=f"pin-{next(self._ids)}",
            bank_id=bank_id,
            registry_version_id=version_id,
            pinned_at=T0,
        )
        self.pins[bank_id] = pin
        return pin

    # Port ------------------------------------------------------------- #

    async def get_version(
        self, version_id: str, *, for_update: bool = False
    ) -> RegistryVersion | None:
        if for_update:
            self.locked.append(version_id)
        return self.versions.get(version_id)

    async def get_latest_published_version(self) -> RegistryVersion | None:
        published = await self.list_published_versions()
        return published[0] if published else None

    async def list_published_versions(self) -> Sequence[RegistryVersion]:
        published = [
            v
            for v in self.versions.values()
            if v.status is RegistryVersionStatus.PUBLISHED and v.published_at is not None
        ]
        return sorted(published, key=lambda v: v.published_at or T0, reverse=True)

    async def create_version(self, *, name: str, created_by: str | None) -> RegistryVersion:
        number = next(self._ids)
        version = RegistryVersion(
            id=f"ver-{number}",
            name=name,
            version_number=number,
            status=RegistryVersionStatus.DRAFT,
            content_hash=None,
            published_at=None,
            created_at=T0,
            updated_at=T0,
            created_by=created_by,
        )
        self.versions[version.id] = version
        self.entries[version.id] = []
        return version

    async def _transition(
        self,
        version_id: str,
        expected: RegistryVersionStatus,
        **changes: Any,
    ) -> RegistryVersion | None:
        current = self.versions.get(version_id)
        if self.lose_next_transition:
            self.lose_next_transition = False
            return None
        if current is None or current.status is not expected:
            return None
        updated = replace(current, **changes)
        self.versions[version_id] = updated
        return updated

    async def publish_version(
        self, version_id: str, *, content_hash: str, published_at: datetime
    ) -> RegistryVersion | None:
        return await self._transition(
            version_id,
            RegistryVersionStatus.DRAFT,
            status=RegistryVersionStatus.PUBLISHED,
            content_hash=content_hash,
            published_at=published_at,
            updated_at=published_at,
        )

    async def deprecate_version(
        self, version_id: str, *, deprecated_at: datetime
    ) -> RegistryVersion | None:
        return await self._transition(
            version_id,
            RegistryVersionStatus.PUBLISHED,
            status=RegistryVersionStatus.DEPRECATED,
            updated_at=deprecated_at,
        )

    async def list_entries(self, version_id: str) -> Sequence[RegistryEntry]:
        return sorted(self.entries.get(version_id, []), key=lambda e: e.metric_key)

    async def add_entry(
        self,
        *,
        version_id: str,
        metric_key: str,
        definition_json: Mapping[str, Any],
        definition_hash: str,
    ) -> RegistryEntry | None:
        current = self.versions.get(version_id)
        if current is None or not current.is_draft:
            status = current.status.value if current is not None else None
            raise RegistryImmutableError(
                f"Registry version {version_id} is {status}; entries are immutable.",
                details={"version_id": version_id, "status": status},
            )
        existing = self.entries.setdefault(version_id, [])
        if any(e.metric_key == metric_key for e in existing):
            return None
        entry = RegistryEntry(
            id=f"ent-{next(self._ids)}",
            registry_version_id=version_id,
            metric_key=metric_key,
            definition_json=dict(definition_json),
            definition_hash=definition_hash,
            created_at=T0,
        )
        existing.append(entry)
        return entry

    async def get_bank_pin(self, bank_id: str) -> BankRegistryPin | None:
        return self.pins.get(bank_id)

    async def upsert_bank_pin(
        self,
        *,
        bank_id: str,
        version_id: str,
        pinned_by: str | None,
        reason: str | None,
    ) -> BankRegistryPin:
        pin = BankRegistryPin(
            id=f"pin-{next(self._ids)}",
            bank_id=bank_id,
            registry_version_id=version_id,
            pinned_at=T0,
            pinned_by=pinned_by,
            reason=reason,
        )
        self.pins[bank_id] = pin
        return pin

    async def delete_bank_pin(self, bank_id: str) -> bool:
        return self.pins.pop(bank_id, None) is not None


class FakeUow:
    """UnitOfWork double resolving the registry port to an in-memory repo."""

    def __init__(self, repo: FakeMetricRegistryRepository) -> None:
        self.repo = repo
        self.commits = 0
        self.rollbacks = 0

    async def __aenter__(self) -> FakeUow:
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        if exc_type is not None:
            await self.rollback()
        return None

    async def commit(self) -> None:
        self.commits += 1

    async def rollback(self) -> None:
        self.rollbacks += 1

    def get_repository(self, repo_type: type[Any]) -> Any:
        assert repo_type is MetricRegistryRepository
        return self.repo


def make_period(
    period_id: str = "FY2024",
    *,
    period_end: date = date(2024, 12, 31),
    period_type: PeriodType = PeriodType.FYE,
    income: Mapping[str, Decimal] | None = None,
    balance: Mapping[str, Decimal] | None = None,
    cashflow: Mapping[str, Decimal] | None = None,
) -> FinancialPeriod:
    return FinancialPeriod(
        period_id=period_id,
        period_end=period_end,
        period_type=period_type,
        income=income,
        balance=balance,
        cashflow=cashflow,
    )
