# src/credit_metrics_api/adapters/uow/sqlalchemy_uow.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""SQLAlchemy-backed Unit of Work implementation.

Purpose:
    Concrete implementation of the application-layer UnitOfWork protocol
    using SQLAlchemy's AsyncSession. One session per ``async with`` scope;
    repositories are created lazily and cached for that scope.

Layer:
    adapters/uow
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from types import TracebackType
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from credit_metrics_api.adapters.repositories.metric_registry_repository import (
    SqlAlchemyMetricRegistryRepository,
)
from credit_metrics_api.application.uow import UnitOfWork
from credit_metrics_api.domain.interfaces.repositories.metric_registry_repository import (
    MetricRegistryRepository as MetricRegistryRepositoryProtocol,
)


class SqlAlchemyUnitOfWork(UnitOfWork):
    """SQLAlchemy-based UnitOfWork implementation.

    Intended usage:

        async with SqlAlchemyUnitOfWork(session_factory=...) as uow:
            repo = uow.get_repository(MetricRegistryRepository)
            ...
            await uow.commit()

    Leaving the scope without ``commit()`` discards pending changes.
    """

    def __init__(
        self,
        *,
        session_factory: async_sessionmaker[AsyncSession],
        repo_factories: Mapping[type[Any], Callable[[AsyncSession], Any]] | None = None,
    ) -> None:
        """Initialize the UnitOfWork.

        Args:
            session_factory: Factory for creating new AsyncSession instances.
            repo_factories: Optional mapping from repository key to a factory
                taking an AsyncSession. Overrides the defaults.
        """
        self._session_factory = session_factory
        self._session: AsyncSession | None = None

        default_factories: dict[type[Any], Callable[[AsyncSession], Any]] = {
            MetricRegistryRepositoryProtocol: lambda s: SqlAlchemyMetricRegistryRepository(
                session=s
            ),
            SqlAlchemyMetricRegistryRepository: lambda s: SqlAlchemyMetricRegistryRepository(
                session=s
            ),
        }
        self._repo_factories: dict[type[Any], Callable[[AsyncSession], Any]] = {
            **default_factories,
            **(dict(repo_factories) if repo_factories is not None else {}),
        }

        self._repos: dict[type[Any], Any] = {}
        self._committed = False
        self._rolled_back = False

    # ------------------------------------------------------------------
    # Async context manager
    # ------------------------------------------------------------------

    async def __aenter__(self) -> SqlAlchemyUnitOfWork:
        """Open a new AsyncSession.

        Raises:
            RuntimeError: If a session is already active (nested usage).
        """
        if self._session is not None:
            raise RuntimeError("UnitOfWork is already active; nested usage is not supported.")

        self._session = self._session_factory()
        self._committed = False
        self._rolled_back = False
        self._repos.clear()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> bool | None:
        """Roll back on error (or missing commit), then close the session."""
        try:
            if not self._committed and not self._rolled_back:
                await self.rollback()
        finally:
            if self._session is not None:
                await self._session.close()
                self._session = None
            self._repos.clear()
        return None

    # ------------------------------------------------------------------
    # Transaction control
    # ------------------------------------------------------------------

    async def commit(self) -> None:
        """Commit the current transaction (no-op if already finished).

        Raises:
            RuntimeError: If called without an active session.
        """
        if self._session is None:
            raise RuntimeError("Cannot commit: UnitOfWork has no active session.")
        if self._committed or self._rolled_back:
            return
        await self._session.commit()
        self._committed = True

    async def rollback(self) -> None:
        """Roll back the current transaction (no-op if already finished)."""
        if self._session is None or self._rolled_back or self._committed:
            return
        await self._session.rollback()
        self._rolled_back = True

    # ------------------------------------------------------------------
    # Repository resolution
    # ------------------------------------------------------------------

    def get_repository(self, repo_type: type[Any]) -> Any:
        """Return the repository registered for ``repo_type``, cached per scope.

        Raises:
            RuntimeError: If called outside of an active UnitOfWork scope.
            KeyError: If no factory is registered for ``repo_type``.
        """
        if self._session is None:
            raise RuntimeError(
                "get_repository() called outside of an active UnitOfWork scope. "
                "Use 'async with uow:' before requesting repositories.",
            )

        if repo_type in self._repos:
            return self._repos[repo_type]

        try:
            factory = self._repo_factories[repo_type]
        except KeyError as exc:
            raise KeyError(f"No repository factory registered for type {repo_type!r}.") from exc

        repo = factory(self._session)
        self._repos[repo_type] = repo
        return repo


__all__ = ["SqlAlchemyUnitOfWork"]
