# src/credit_metrics_api/application/use_cases/metric_registry/create_registry_draft.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Use case: Create a draft registry version.

Purpose:
    Create an empty draft with the next version number and optionally seed
    it with entries in the same transaction. Any invalid seed entry rolls
    back the whole draft.

Layer:
    application/use_cases/metric_registry
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from credit_metrics_api.application.uow import UnitOfWork
from credit_metrics_api.application.use_cases.metric_registry._common import (
    get_registry_repository,
)
from credit_metrics_api.application.use_cases.metric_registry.add_registry_entry import (
    append_entry,
)
from credit_metrics_api.domain.entities.metric_registry import RegistryEntry, RegistryVersion

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CreateRegistryDraftRequest:
    """Request parameters for draft creation.

    Attributes:
        name: Human-readable version name.
        created_by: Actor creating the draft.
        entries: Optional seed entries keyed by metric key.
    """

    name: str
    created_by: str | None = None
    entries: Mapping[str, Mapping[str, Any]] = field(default_factory=dict)


@dataclass(frozen=True)
class CreateRegistryDraftResult:
    """Created draft and its seed entries (ordered by metric key)."""

    version: RegistryVersion
    entries: tuple[RegistryEntry, ...] = ()


class CreateRegistryDraftUseCase:
    """Create a draft registry version."""

    def __init__(self, uow: UnitOfWork) -> None:
        """Initialize the use case."""
        self._uow = uow

    async def execute(self, req: CreateRegistryDraftRequest) -> CreateRegistryDraftResult:
        """Execute draft creation and commit."""
        async with self._uow as tx:
            repo = get_registry_repository(tx)
            version = await repo.create_version(name=req.name, created_by=req.created_by)
            created: list[RegistryEntry] = []
            for metric_key in sorted(req.entries):
                created.append(
                    await append_entry(repo, version, metric_key, req.entries[metric_key])
                )
            await tx.commit()

        logger.info(
            "metric_registry.draft.created",
            extra={
                "version_id": version.id,
                "version_name": version.name,
                "version_number": version.version_number,
                "entry_count": len(created),
            },
        )
        return CreateRegistryDraftResult(version=version, entries=tuple(created))


__all__ = [
    "CreateRegistryDraftRequest",
    "CreateRegistryDraftResult",
    "CreateRegistryDraftUseCase",
]
