# src/credit_metrics_api/application/use_cases/metric_registry/deprecate_registry_version.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Use case: Deprecate a published registry version.

Purpose:
    Govern the ``published -> deprecated`` transition as a compare-and-swap
    on ``status = published``. Entries are retained so any computation tied
    to the version's content hash stays reproducible, and existing pins keep
    resolving to it.

Layer:
    application/use_cases/metric_registry
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from credit_metrics_api.application.uow import UnitOfWork
from credit_metrics_api.application.use_cases.metric_registry._common import (
    get_registry_repository,
    record_transition,
    require_version,
    utc_now,
)
from credit_metrics_api.domain.entities.metric_registry import RegistryVersion
from credit_metrics_api.domain.exceptions.base import DomainError
from credit_metrics_api.domain.exceptions.metric_registry import RegistryTransitionConflict
from credit_metrics_api.domain.services.registry_state_machine import ensure_deprecatable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeprecateRegistryVersionRequest:
    """Request parameters for deprecating a version."""

    version_id: str
    actor: str | None = None


class DeprecateRegistryVersionUseCase:
    """Deprecate a published registry version.

    Raises:
        RegistryVersionNotFound: If the version does not exist.
        RegistryAlreadyDeprecatedError: If the version is already deprecated.
        RegistryNotDeprecatableError: If the version is still a draft.
        RegistryTransitionConflict: If a concurrent transition won the race.
    """

    def __init__(self, uow: UnitOfWork, clock: Callable[[], datetime] = utc_now) -> None:
        """Initialize the use case."""
        self._uow = uow
        self._clock = clock

    async def execute(self, req: DeprecateRegistryVersionRequest) -> RegistryVersion:
        """Execute the deprecate transition."""
        logger.info(
            "metric_registry.deprecate.start",
            extra={"version_id": req.version_id, "actor": req.actor},
        )
        try:
            async with self._uow as tx:
                repo = get_registry_repository(tx)
                version = await require_version(repo, req.version_id)
                ensure_deprecatable(version)
                deprecated = await repo.deprecate_version(
                    req.version_id, deprecated_at=self._clock()
                )
                if deprecated is None:
                    raise RegistryTransitionConflict("deprecate", version_id=req.version_id)
                await tx.commit()
        except DomainError as exc:
            record_transition("deprecate", exc.code)
            logger.warning(
                "metric_registry.deprecate.rejected",
                extra={"version_id": req.version_id, "code": exc.code},
            )
            raise

        record_transition("deprecate", "success")
        logger.info(
            "metric_registry.deprecate.success",
            extra={"version_id": deprecated.id, "content_hash": deprecated.content_hash},
        )
        return deprecated


__all__ = ["DeprecateRegistryVersionRequest", "DeprecateRegistryVersionUseCase"]
