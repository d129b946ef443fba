# src/credit_metrics_api/adapters/repositories/base_repository.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""
BaseRepository: shared repository foundation.

Purpose:
    Shared mechanics for SQLAlchemy repositories:
      * Deterministic ordering helper (NULLS LAST + PK tie-breaker).
      * Safe fetch helpers (one, optional, all).
      * UTC timestamp helper for audit fields.
      * Latency/error instrumentation around a single DB operation.

Layer: adapters / repositories

Notes:
    * No business logic, no domain decisions.
    * Repositories never commit; use cases own transactions.
"""

from __future__ import annotations

import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager, suppress
from datetime import UTC, datetime
from typing import Any, Generic, TypeVar

from sqlalchemy import Select, nulls_last
from sqlalchemy.ext.asyncio import AsyncSession

from credit_metrics_api.infrastructure.observability.metrics import (
    get_db_errors_total,
    get_db_operation_duration_seconds,
)

TModel = TypeVar("TModel")


class BaseRepository(Generic[TModel]):  # noqa: UP046
    """Base class for SQLAlchemy repositories.

    Subclasses set ``_MODEL_NAME`` to the table name used in metric labels.
    """

    _MODEL_NAME = "unknown"

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the repository.

        Args:
            session: Async SQLAlchemy session bound to the target database.
        """
        self._session: AsyncSession = session
        self._metrics_hist = get_db_operation_duration_seconds()
        self._metrics_err = get_db_errors_total()

    @staticmethod
    def utc_now() -> datetime:
        """Return current UTC time with timezone info."""
        return datetime.now(UTC)

    @staticmethod
    def order_by_latest(stmt: Select[Any], timestamp_col: Any, pk_col: Any) -> Select[Any]:
        """Apply deterministic latest-first ordering.

        The resulting query orders by:

            timestamp DESC NULLS LAST, pk ASC
        """
        return stmt.order_by(nulls_last(timestamp_col.desc()), pk_col.asc())

    @asynccontextmanager
    async def _timed(self, operation: str) -> AsyncIterator[None]:
        """Observe latency of ``operation`` and count its failures."""
        start = time.perf_counter()
        outcome = "success"
        try:
            yield
        except Exception as exc:
            outcome = "error"
            with suppress(Exception):
                self._metrics_err.labels(
                    operation=operation,
                    model=self._MODEL_NAME,
                    reason=type(exc).__name__,
                ).inc()
            raise
        finally:
            with suppress(Exception):
                self._metrics_hist.labels(
                    operation=operation,
                    model=self._MODEL_NAME,
                    outcome=outcome,
                ).observe(time.perf_counter() - start)

    async def fetch_one(self, stmt: Select[Any]) -> TModel:
        """Execute a statement and return a single row or raise."""
        res = await self._session.execute(stmt)
        return res.scalars().one()

    async def fetch_optional(self, stmt: Select[Any]) -> TModel | None:
        """Execute a statement and return zero or one row."""
        res = await self._session.execute(stmt)
        return res.scalars().first()

    async def fetch_all(self, stmt: Select[Any]) -> list[TModel]:
        """Execute a statement and return all rows as a list."""
        res = await self._session.execute(stmt)
        return list(res.scalars().all())


__all__ = ["BaseRepository"]
