# src/credit_metrics_api/adapters/dependencies/metric_registry_uow.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Registry UnitOfWork dependency wiring.

Purpose:
    Provide a SQLAlchemy-backed UnitOfWork for registry and credit analysis
    use cases, bound to the global async_sessionmaker.

Layer:
    adapters/dependencies
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from credit_metrics_api.adapters.uow import SqlAlchemyUnitOfWork
from credit_metrics_api.infrastructure.database.session import get_sessionmaker


def get_metric_registry_uow() -> SqlAlchemyUnitOfWork:
    """Construct a fresh UnitOfWork per request."""
    session_factory: async_sessionmaker[AsyncSession] = get_sessionmaker()
    return SqlAlchemyUnitOfWork(session_factory=session_factory)


__all__ = ["get_metric_registry_uow"]
