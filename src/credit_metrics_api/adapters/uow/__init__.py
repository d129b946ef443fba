"""Unit-of-Work adapters."""

from __future__ import annotations

from credit_metrics_api.adapters.uow.sqlalchemy_uow import SqlAlchemyUnitOfWork

__all__ = ["SqlAlchemyUnitOfWork"]
