# src/credit_metrics_api/application/use_cases/metric_registry/_common.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Shared helpers for metric registry use cases.

Layer:
    application/use_cases/metric_registry
"""

from __future__ import annotations

from contextlib import suppress
from datetime import UTC, datetime
from typing import Any, cast

from credit_metrics_api.domain.entities.metric_registry import RegistryVersion
from credit_metrics_api.domain.exceptions.metric_registry import RegistryVersionNotFound
from credit_metrics_api.domain.interfaces.repositories.metric_registry_repository import (
    MetricRegistryRepository as MetricRegistryRepositoryProtocol,
)
from credit_metrics_api.infrastructure.observability.metrics import (
    get_metric_registry_transitions_total,
)


def utc_now() -> datetime:
    """Return the current UTC time (default clock for use cases)."""
    return datetime.now(UTC)


def get_registry_repository(tx: Any) -> MetricRegistryRepositoryProtocol:
    """Resolve the registry repository from a UnitOfWork/transaction.

    Args:
        tx: Active UnitOfWork transaction context (real or test double).

    Returns:
        Repository port for registry versions, entries and pins.
    """
    repo_any = tx.get_repository(MetricRegistryRepositoryProtocol)
    return cast(MetricRegistryRepositoryProtocol, repo_any)


async def require_version(
    repo: MetricRegistryRepositoryProtocol, version_id: str, *, for_update: bool = False
) -> RegistryVersion:
    """Load a version or raise :class:`RegistryVersionNotFound`.

    Pass ``for_update`` when the caller goes on to write entries or change the
    status; the row then stays locked until the transaction ends.
    """
    version = await repo.get_version(version_id, for_update=for_update)
    if version is None:
        raise RegistryVersionNotFound(
            f"Registry version {version_id} not found.",
            details={"version_id": version_id},
        )
    return version


def record_transition(transition: str, outcome: str) -> None:
    """Increment the governance transition counter (best effort)."""
    with suppress(Exception):
        get_metric_registry_transitions_total().labels(
            transition=transition, outcome=outcome
        ).inc()


__all__ = ["get_registry_repository", "record_transition", "require_version", "utc_now"]
