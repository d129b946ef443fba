# src/credit_metrics_api/application/uow.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Transaction boundary for registry use cases.

Purpose:
    Registry governance (drafts, entries, publish, deprecate, pins) and
    binding resolution each run inside one ``async with uow as tx`` scope.
    The scope hands out the registry repository, and nothing is persisted
    unless the use case calls ``commit()``. Leaving the scope without a
    commit, or with an exception, rolls back.

    The SQLAlchemy implementation lives in
    ``adapters/uow/sqlalchemy_uow.py``; tests supply an in-memory double.

Layer:
    application
"""

from __future__ import annotations

from types import TracebackType
from typing import Any, Protocol


class UnitOfWork(Protocol):
    """Scope shared by every registry read and write of one use case call."""

    async def __aenter__(self) -> UnitOfWork:
        """Open the scope and return the active unit of work."""
        ...

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> bool | None:
        """Close the scope; uncommitted work is rolled back."""
        ...

    async def commit(self) -> None:
        """Persist the writes made in this scope."""
        ...

    async def rollback(self) -> None:
        """Discard the writes made in this scope."""
        ...

    def get_repository(self, repo_type: type[Any]) -> Any:
        """Return the repository bound to this scope for ``repo_type``.

        Use cases pass the port type, ``MetricRegistryRepository``.
        """
        ...


__all__ = ["UnitOfWork"]
