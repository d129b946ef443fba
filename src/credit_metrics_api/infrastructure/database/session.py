# src/credit_metrics_api/infrastructure/database/session.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Async SQLAlchemy engine/session factory and DI dependency.

This module owns the application-global async SQLAlchemy engine and
``async_sessionmaker``.

Lifecycle:
    * Call ``init_engine_and_sessionmaker(settings)`` at app startup (lifespan).
    * Use ``get_db_session()`` where a bare session is needed.
    * Call ``dispose_engine()`` during shutdown.

Notes:
    * No business logic here; repositories consume the session.
    * ``pool_pre_ping=True`` surfaces dead connections before use.
    * Transports that skip lifespan get lazy initialization from
      ``get_settings()``.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager, suppress

from sqlalchemy.exc import IllegalStateChangeError, InvalidRequestError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from credit_metrics_api.config.settings import Settings, get_settings

_engine: AsyncEngine | None = None
_sessionmaker: async_sessionmaker[AsyncSession] | None = None


def init_engine_and_sessionmaker(settings: Settings) -> None:
    """Initialize the global async engine and sessionmaker (idempotent).

    Args:
        settings: Application settings providing ``database_url``.
    """
    global _engine, _sessionmaker

    if _engine is not None:
        return

    _engine = create_async_engine(
        url=settings.database_url,
        pool_pre_ping=True,
        echo=settings.database_echo,
    )
    _sessionmaker = async_sessionmaker(bind=_engine, expire_on_commit=False, class_=AsyncSession)


async def dispose_engine() -> None:
    """Dispose the global engine at application shutdown."""
    global _engine, _sessionmaker
    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _sessionmaker = None


def get_sessionmaker() -> async_sessionmaker[AsyncSession]:
    """Return the async sessionmaker, initializing it lazily if needed.

    Returns:
        async_sessionmaker[AsyncSession]: The global session factory.
    """
    if _sessionmaker is None:
        init_engine_and_sessionmaker(get_settings())
    assert _sessionmaker is not None  # noqa: S101
    return _sessionmaker


@asynccontextmanager
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield a new ``AsyncSession``.

    Notes:
        Rolls back any open transaction and closes the session on exit.
    """
    session = get_sessionmaker()()
    try:
        yield session
    finally:
        with suppress(InvalidRequestError):
            tx = session.get_transaction()
            if tx and tx.is_active:
                await session.rollback()

        with suppress(InvalidRequestError, IllegalStateChangeError):
            await session.close()


__all__ = [
    "dispose_engine",
    "get_db_session",
    "get_sessionmaker",
    "init_engine_and_sessionmaker",
]
