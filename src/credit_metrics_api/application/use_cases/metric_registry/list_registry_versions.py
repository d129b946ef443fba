# src/credit_metrics_api/application/use_cases/metric_registry/list_registry_versions.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Use cases: List selectable versions and load a version's definitions.

Purpose:
    Read-only registry queries:

        * Selectable versions are the published ones, newest publish first.
        * Loading a version returns its entries ordered by metric key with no
          status filter, so deprecated versions stay loadable for replay,
          together with the mapped metric definitions.

Layer:
    application/use_cases/metric_registry
"""

from __future__ import annotations

from dataclasses import dataclass

from credit_metrics_api.application.uow import UnitOfWork
from credit_metrics_api.application.use_cases.metric_registry._common import (
    get_registry_repository,
    require_version,
)
from credit_metrics_api.domain.entities.metric_definition import MetricDefinition
from credit_metrics_api.domain.entities.metric_registry import RegistryEntry, RegistryVersion
from credit_metrics_api.domain.services.formula_mapper import registry_entries_to_metric_defs


@dataclass(frozen=True)
class LoadVersionEntriesRequest:
    """Request parameters for loading one version."""

    version_id: str


@dataclass(frozen=True)
class LoadVersionEntriesResult:
    """A version with its raw entries and mapped definitions."""

    version: RegistryVersion
    entries: tuple[RegistryEntry, ...]
    definitions: tuple[MetricDefinition, ...]


class ListSelectableVersionsUseCase:
    """Return published versions ordered by publish time descending."""

    def __init__(self, uow: UnitOfWork) -> None:
        """Initialize the use case."""
        self._uow = uow

    async def execute(self) -> tuple[RegistryVersion, ...]:
        """Execute the listing."""
        async with self._uow as tx:
            repo = get_registry_repository(tx)
            versions = await repo.list_published_versions()
        return tuple(versions)


class LoadVersionEntriesUseCase:
    """Load a version, its entries and their metric definitions.

    Raises:
        RegistryVersionNotFound: If the version does not exist.
        FormulaValidationError: If a stored entry no longer maps to a definition.
    """

    def __init__(self, uow: UnitOfWork) -> None:
        """Initialize the use case."""
        self._uow = uow

    async def execute(self, req: LoadVersionEntriesRequest) -> LoadVersionEntriesResult:
        """Execute the load."""
        async with self._uow as tx:
            repo = get_registry_repository(tx)
            version = await require_version(repo, req.version_id)
            entries = tuple(await repo.list_entries(req.version_id))
        return LoadVersionEntriesResult(
            version=version,
            entries=entries,
            definitions=tuple(registry_entries_to_metric_defs(entries)),
        )


__all__ = [
    "ListSelectableVersionsUseCase",
    "LoadVersionEntriesRequest",
    "LoadVersionEntriesResult",
    "LoadVersionEntriesUseCase",
]
