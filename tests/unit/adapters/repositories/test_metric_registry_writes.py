# tests/unit/adapters/repositories/test_metric_registry_writes.py
from __future__ import annotations

from typing import Any
from uuid import uuid4

import pytest
from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import IntegrityError

from credit_metrics_api.adapters.repositories.metric_registry_repository import (
    SqlAlchemyMetricRegistryRepository,
)
from credit_metrics_api.domain.enums.metric_registry import RegistryVersionStatus
from credit_metrics_api.domain.exceptions.metric_registry import (
    RegistryImmutableError,
    RegistryVersionNumberConflict,
)


class _ScriptedResult:
    def __init__(self, value: Any) -> None:
        self._value = value

    def scalar_one_or_none(self) -> Any:
        return self._value

    def scalar_one(self) -> Any:
        return self._value

    def scalars(self) -> _ScriptedResult:
        return self

    def first(self) -> Any:
        return self._value


class _Savepoint:
    def __init__(self, session: _ScriptedSession) -> None:
        self._session = session

    async def __aenter__(self) -> _Savepoint:
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, tb: Any) -> bool:
        if exc_type is None and self._session.failing_savepoints > 0:
            self._session.failing_savepoints -= 1
            self._session.added.pop()
            raise IntegrityError("INSERT", {}, Exception("unique violation"))
        return False


class _ScriptedSession:
    """Async-session stand-in returning scripted scalar results in order."""

    def __init__(self, *results: Any, failing_savepoints: int = 0) -> None:
        self._results = list(results)
        self.failing_savepoints = failing_savepoints
        self.statements: list[Any] = []
        self.added: list[Any] = []

    async def execute(self, stmt: Any, *args: Any, **kwargs: Any) -> _ScriptedResult:
        self.statements.append(stmt)
        return _ScriptedResult(self._results.pop(0))

    def begin_nested(self) -> _Savepoint:
        return _Savepoint(self)

    def add(self, row: Any) -> None:
        self.added.append(row)


def _sql(stmt: Any) -> str:
    return str(stmt.compile(dialect=postgresql.dialect()))


def _repo(session: _ScriptedSession) -> SqlAlchemyMetricRegistryRepository:
    return SqlAlchemyMetricRegistryRepository(session=session)  # type: ignore[arg-type]


@pytest.mark.anyio
async def test_get_version_for_update_locks_the_row() -> None:
    session = _ScriptedSession(None, None)
    repo = _repo(session)

    assert await repo.get_version(str(uuid4()), for_update=True) is None
    assert await repo.get_version(str(uuid4())) is None

    locked, plain = session.statements
    assert "FOR UPDATE" in _sql(locked)
    assert "FOR UPDATE" not in _sql(plain)


@pytest.mark.anyio
async def test_add_entry_rejects_version_published_under_the_lock() -> None:
    session = _ScriptedSession(RegistryVersionStatus.PUBLISHED.value)
    repo = _repo(session)

    with pytest.raises(RegistryImmutableError) as excinfo:
        await repo.add_entry(
            version_id=str(uuid4()),
            metric_key="DSCR",
            definition_json={"expr": "NOI / DEBT_SERVICE"},
            definition_hash="h",
        )

    assert excinfo.value.details["status"] == "published"
    [status_read] = session.statements
    assert "FOR UPDATE" in _sql(status_read)
    assert session.added == []


@pytest.mark.anyio
async def test_add_entry_inserts_while_still_draft() -> None:
    vid = uuid4()
    session = _ScriptedSession(RegistryVersionStatus.DRAFT.value, None)
    repo = _repo(session)

    entry = await repo.add_entry(
        version_id=str(vid),
        metric_key="DSCR",
        definition_json={"expr": "NOI / DEBT_SERVICE"},
        definition_hash="h",
    )

    assert entry is not None
    assert entry.registry_version_id == str(vid)
    assert entry.metric_key == "DSCR"
    assert len(session.added) == 1


@pytest.mark.anyio
async def test_create_version_retries_after_version_number_collision() -> None:
    session = _ScriptedSession(2, 3, failing_savepoints=1)
    repo = _repo(session)

    version = await repo.create_version(name="v4", created_by="analyst")

    assert version.version_number == 4
    assert version.status is RegistryVersionStatus.DRAFT
    assert len(session.statements) == 2
    assert len(session.added) == 1


@pytest.mark.anyio
async def test_create_version_gives_up_with_named_conflict() -> None:
    session = _ScriptedSession(1, 2, 3, failing_savepoints=3)
    repo = _repo(session)

    with pytest.raises(RegistryVersionNumberConflict) as excinfo:
        await repo.create_version(name="v2", created_by=None)

    assert excinfo.value.code == "version_number_conflict"
    assert session.added == []
