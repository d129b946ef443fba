# tests/unit/adapters/repositories/test_metric_registry_mapping.py
from __future__ import annotations

from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

import pytest

from credit_metrics_api.adapters.repositories.metric_registry_repository import (
    SqlAlchemyMetricRegistryRepository,
    parse_id,
    to_entry,
    to_pin,
    to_version,
)
from credit_metrics_api.domain.enums.metric_registry import RegistryVersionStatus
from credit_metrics_api.infrastructure.database.models.metric_registry import (
    BankRegistryPinRow,
    MetricRegistryEntry,
    MetricRegistryVersion,
)

NOW = datetime(2026, 3, 1, 9, 30, tzinfo=UTC)


class _UntouchedSession:
    """Session that fails the test if any statement is executed."""

    async def execute(self, *args: Any, **kwargs: Any) -> Any:
        raise AssertionError("non-UUID identifiers must short-circuit before SQL")


def test_parse_id_accepts_uuid_strings_only() -> None:
    value = uuid4()

    assert parse_id(str(value)) == value
    assert parse_id("ver-1") is None
    assert parse_id("") is None


def test_to_version_maps_row_columns() -> None:
    vid = uuid4()
    row = MetricRegistryVersion(
        id=vid,
        version_name="v3",
        version_number=3,
        content_hash="a" * 64,
        status="published",
        published_at=NOW,
        created_at=NOW,
        updated_at=NOW,
        created_by="analyst",
    )

    version = to_version(row)

    assert version.id == str(vid)
    assert version.name == "v3"
    assert version.version_number == 3
    assert version.status is RegistryVersionStatus.PUBLISHED
    assert version.content_hash == "a" * 64
    assert version.published_at == NOW
    assert version.created_by == "analyst"


def test_to_entry_copies_definition_document() -> None:
    vid, eid = uuid4(), uuid4()
    definition = {"expr": "NOI / DEBT_SERVICE"}
    row = MetricRegistryEntry(
        id=eid,
        registry_version_id=vid,
        metric_key="DSCR",
        definition_json=definition,
        definition_hash="b" * 64,
        created_at=NOW,
    )

    entry = to_entry(row)

    assert entry.id == str(eid)
    assert entry.registry_version_id == str(vid)
    assert entry.metric_key == "DSCR"
    assert entry.definition_json == definition
    assert entry.definition_json is not definition


def test_to_pin_maps_row_columns() -> None:
    pid, vid = uuid4(), uuid4()
    row = BankRegistryPinRow(
        id=pid,
        bank_id="bank-7",
        registry_version_id=vid,
        pinned_at=NOW,
        pinned_by="ops",
        reason="freeze",
    )

    pin = to_pin(row)

    assert pin.id == str(pid)
    assert pin.bank_id == "bank-7"
    assert pin.registry_version_id == str(vid)
    assert pin.reason == "freeze"


@pytest.mark.anyio
async def test_non_uuid_identifiers_are_unknown_without_querying() -> None:
    repo = SqlAlchemyMetricRegistryRepository(session=_UntouchedSession())  # type: ignore[arg-type]

    assert await repo.get_version("ver-1") is None
    assert await repo.list_entries("ver-1") == []
    assert await repo.get_version("ver-1", for_update=True) is None
    assert await repo.publish_version("ver-1", content_hash="x", published_at=NOW) is None
    assert await repo.deprecate_version("ver-1", deprecated_at=NOW) is None
