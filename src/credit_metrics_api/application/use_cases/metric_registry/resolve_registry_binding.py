# src/credit_metrics_api/application/use_cases/metric_registry/resolve_registry_binding.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Use case: Resolve the registry binding for a bank.

Purpose:
    Select the registry version a computation is bound to:

        1. The bank's live pin, loaded verbatim even when the pinned version
           is deprecated.
        2. Otherwise the latest published version by publish time.
        3. Otherwise ``None``. Callers decide the policy for "no registry
           bound"; nothing defaults to an implicit version.

Layer:
    application/use_cases/metric_registry

Notes:
    - The pin lookup is sequenced before the version load it decides.
    - A pinned version that lacks a stored content hash gets one computed
      from its entries. The computed hash is cached per resolver instance,
      never in a process-wide singleton.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from credit_metrics_api.application.uow import UnitOfWork
from credit_metrics_api.application.use_cases.metric_registry._common import (
    get_registry_repository,
)
from credit_metrics_api.domain.entities.metric_registry import RegistryBinding
from credit_metrics_api.domain.interfaces.repositories.metric_registry_repository import (
    MetricRegistryRepository,
)
from credit_metrics_api.domain.services.canonical_hash import hash_registry

logger = logging.getLogger(__name__)


class RegistryBindingResolver:
    """Pin-aware binding resolution over an already-open repository.

    Args:
        hash_cache: Optional mapping of version id to computed content hash.
            Shared by callers that want to reuse hashes across resolutions.
    """

    def __init__(self, hash_cache: dict[str, str] | None = None) -> None:
        """Initialize the resolver with an optional hash cache."""
        self._hash_cache: dict[str, str] = hash_cache if hash_cache is not None else {}

    async def resolve(
        self, repo: MetricRegistryRepository, bank_id: str | None = None
    ) -> RegistryBinding | None:
        """Resolve the binding for ``bank_id`` (or the global default).

        Args:
            repo: Registry repository inside an active transaction.
            bank_id: Tenant identifier; ``None`` skips the pin lookup.

        Returns:
            The binding, or ``None`` when no registry is bound.
        """
        if bank_id:
            pin = await repo.get_bank_pin(bank_id)
            if pin is not None:
                version = await repo.get_version(pin.registry_version_id)
                if version is not None:
                    content_hash = version.content_hash or await self._computed_hash(
                        repo, version.id
                    )
                    return RegistryBinding(
                        version_id=version.id,
                        version_name=version.name,
                        content_hash=content_hash,
                        pinned=True,
                    )
                logger.warning(
                    "metric_registry.binding.dangling_pin",
                    extra={"bank_id": bank_id, "version_id": pin.registry_version_id},
                )

        latest = await repo.get_latest_published_version()
        if latest is None:
            return None
        content_hash = latest.content_hash or await self._computed_hash(repo, latest.id)
        return RegistryBinding(
            version_id=latest.id,
            version_name=latest.name,
            content_hash=content_hash,
            pinned=False,
        )

    async def _computed_hash(self, repo: MetricRegistryRepository, version_id: str) -> str:
        cached = self._hash_cache.get(version_id)
        if cached is not None:
            return cached
        entries = await repo.list_entries(version_id)
        computed = hash_registry(entries)
        self._hash_cache[version_id] = computed
        return computed


@dataclass(frozen=True)
class ResolveRegistryBindingRequest:
    """Request parameters for binding resolution.

    Attributes:
        bank_id: Tenant identifier, or ``None`` for the global default.
    """

    bank_id: str | None = None


class ResolveRegistryBindingUseCase:
    """Resolve the active registry binding for a bank.

    Args:
        uow: Unit-of-work used to access the registry repository.
        resolver: Optional resolver (shares its hash cache across calls).
    """

    def __init__(self, uow: UnitOfWork, resolver: RegistryBindingResolver | None = None) -> None:
        """Initialize the use case."""
        self._uow = uow
        self._resolver = resolver or RegistryBindingResolver()

    async def execute(self, req: ResolveRegistryBindingRequest) -> RegistryBinding | None:
        """Execute binding resolution.

        Returns:
            The binding, or ``None`` when no version is pinned or published.
        """
        async with self._uow as tx:
            repo = get_registry_repository(tx)
            binding = await self._resolver.resolve(repo, req.bank_id)

        logger.info(
            "metric_registry.binding.resolved",
            extra={
                "bank_id": req.bank_id,
                "version_id": binding.version_id if binding else None,
                "pinned": binding.pinned if binding else False,
            },
        )
        return binding


__all__ = [
    "RegistryBindingResolver",
    "ResolveRegistryBindingRequest",
    "ResolveRegistryBindingUseCase",
]
