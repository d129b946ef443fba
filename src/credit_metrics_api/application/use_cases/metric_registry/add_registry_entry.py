# src/credit_metrics_api/application/use_cases/metric_registry/add_registry_entry.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Use case: Append a metric definition to a draft registry version.

Purpose:
    Validate a raw definition through the formula mapper, stamp its
    ``definition_hash`` and append it to a draft. Published and deprecated
    versions are immutable and reject appends. The version row is read with
    a lock and the store re-checks the draft status at insert time.

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
    require_version,
)
from credit_metrics_api.domain.entities.metric_registry import RegistryEntry, RegistryVersion
from credit_metrics_api.domain.exceptions.metric_registry import DuplicateMetricKeyError
from credit_metrics_api.domain.interfaces.repositories.metric_registry_repository import (
    MetricRegistryRepository,
)
from credit_metrics_api.domain.services.canonical_hash import hash_entry
from credit_metrics_api.domain.services.formula_mapper import definition_to_metric_def
from credit_metrics_api.domain.services.registry_state_machine import ensure_appendable

logger = logging.getLogger(__name__)


async def append_entry(
    repo: MetricRegistryRepository,
    version: RegistryVersion,
    metric_key: str,
    definition_json: Mapping[str, Any],
) -> RegistryEntry:
    """Validate and append one entry inside an open transaction.

    Raises:
        RegistryImmutableError: If the version is not a draft.
        FormulaValidationError: If the definition has no usable formula.
        DuplicateMetricKeyError: If the key already exists in the version.
    """
    ensure_appendable(version)
    definition_to_metric_def(metric_key, definition_json)
    entry = await repo.add_entry(
        version_id=version.id,
        metric_key=metric_key,
        definition_json=dict(definition_json),
        definition_hash=hash_entry(metric_key, definition_json),
    )
    if entry is None:
        raise DuplicateMetricKeyError(
            f"Metric {metric_key!r} already exists in registry version {version.id}.",
            details={"version_id": version.id, "metric_key": metric_key},
        )
    return entry


@dataclass(frozen=True)
class AddRegistryEntryRequest:
    """Request parameters for appending an entry.

    Attributes:
        version_id: Draft registry version identifier.
        metric_key: Metric key, unique within the version.
        definition_json: Formula plus metadata (``formula`` or legacy ``expr``,
            optional ``dependsOn``, ``description``, ``regulatoryReference``).
    """

    version_id: str
    metric_key: str
    definition_json: Mapping[str, Any] = field(default_factory=dict)


class AddRegistryEntryUseCase:
    """Append a validated entry to a draft registry version."""

    def __init__(self, uow: UnitOfWork) -> None:
        """Initialize the use case."""
        self._uow = uow

    async def execute(self, req: AddRegistryEntryRequest) -> RegistryEntry:
        """Execute the append and commit."""
        async with self._uow as tx:
            repo = get_registry_repository(tx)
            version = await require_version(repo, req.version_id, for_update=True)
            entry = await append_entry(repo, version, req.metric_key, req.definition_json)
            await tx.commit()

        logger.info(
            "metric_registry.entry.added",
            extra={
                "version_id": req.version_id,
                "metric_key": entry.metric_key,
                "definition_hash": entry.definition_hash,
            },
        )
        return entry


__all__ = ["AddRegistryEntryRequest", "AddRegistryEntryUseCase", "append_entry"]
