# src/credit_metrics_api/application/use_cases/metric_registry/publish_registry_version.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Use case: Publish a registry version.

Purpose:
    Govern the ``draft -> published`` transition:

        * Only drafts with at least one entry may be published.
        * Every entry must map to a valid metric definition and the
          definitions must not form a dependency cycle.
        * The content hash is computed over all entries (sorted by metric
          key, canonicalized) and stamped together with ``published_at``.
        * The version row is locked before the entries are hashed, so no
          append can slip in between the hash and the status change.
        * The status change is a compare-and-swap on ``status = draft``; a
          lost race surfaces as ``publish_failed``.

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
from credit_metrics_api.domain.services.canonical_hash import hash_registry
from credit_metrics_api.domain.services.formula_mapper import registry_entries_to_metric_defs
from credit_metrics_api.domain.services.metric_graph import topological_sort
from credit_metrics_api.domain.services.registry_state_machine import ensure_publishable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PublishRegistryVersionRequest:
    """Request parameters for publishing a draft.

    Attributes:
        version_id: Draft registry version identifier.
        actor: Optional identity of the publisher (logged only).
    """

    version_id: str
    actor: str | None = None


class PublishRegistryVersionUseCase:
    """Publish a draft registry version.

    Args:
        uow: Unit-of-work used to access the registry repository.
        clock: Source of the ``published_at`` timestamp.

    Raises:
        RegistryVersionNotFound: If the version does not exist.
        RegistryImmutableError: If the version is not a draft.
        RegistryNoEntriesError: If the draft holds no entries.
        FormulaValidationError: If an entry has no usable formula.
        MetricGraphCycleError: If the definitions depend on each other cyclically.
        RegistryTransitionConflict: If a concurrent transition won the race.
    """

    def __init__(self, uow: UnitOfWork, clock: Callable[[], datetime] = utc_now) -> None:
        """Initialize the use case."""
        self._uow = uow
        self._clock = clock

    async def execute(self, req: PublishRegistryVersionRequest) -> RegistryVersion:
        """Execute the publish transition.

        Returns:
            The published version carrying its content hash.
        """
        logger.info(
            "metric_registry.publish.start",
            extra={"version_id": req.version_id, "actor": req.actor},
        )
        try:
            async with self._uow as tx:
                repo = get_registry_repository(tx)
                version = await require_version(repo, req.version_id, for_update=True)
                entries = await repo.list_entries(req.version_id)
                ensure_publishable(version, len(entries))

                definitions = registry_entries_to_metric_defs(entries)
                topological_sort(definitions)

                content_hash = hash_registry(entries)
                published = await repo.publish_version(
                    req.version_id,
                    content_hash=content_hash,
                    published_at=self._clock(),
                )
                if published is None:
                    raise RegistryTransitionConflict("publish", version_id=req.version_id)
                await tx.commit()
        except DomainError as exc:
            record_transition("publish", exc.code)
            logger.warning(
                "metric_registry.publish.rejected",
                extra={"version_id": req.version_id, "code": exc.code, "details": exc.details},
            )
            raise

        record_transition("publish", "success")
        logger.info(
            "metric_registry.publish.success",
            extra={
                "version_id": published.id,
                "version_name": published.name,
                "content_hash": published.content_hash,
                "entry_count": len(entries),
            },
        )
        return published


__all__ = ["PublishRegistryVersionRequest", "PublishRegistryVersionUseCase"]
