# src/credit_metrics_api/domain/interfaces/repositories/metric_registry_repository.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Metric registry repository interface.

Purpose:
    Domain-level contract for the version/entry/pin store consumed by
    registry governance and binding resolution.

Layer:
    domain/interfaces/repositories

Notes:
    - Storage-agnostic: no SQLAlchemy or infrastructure imports.
    - ``publish_version`` and ``deprecate_version`` are compare-and-swap
      transitions. The store applies the update only when the row still has
      the expected prior status and returns ``None`` otherwise. The domain
      only requests the guard; the store enforces it.
    - Entries are append-only; there is no update or delete path. Appends
      are refused once the version has left draft status.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import Any, Protocol

from credit_metrics_api.domain.entities.metric_registry import (
    BankRegistryPin,
    RegistryEntry,
    RegistryVersion,
)

__all__ = ["MetricRegistryRepository"]


class MetricRegistryRepository(Protocol):
    """Repository interface for registry versions, entries and bank pins."""

    # ------------------------------------------------------------------ #
    # Versions                                                           #
    # ------------------------------------------------------------------ #

    async def get_version(
        self, version_id: str, *, for_update: bool = False
    ) -> RegistryVersion | None:
        """Return the version with ``version_id`` or ``None``.

        With ``for_update`` the store locks the row until the transaction ends,
        so appends and publish on the same version are serialized.
        """
        ...

    async def get_latest_published_version(self) -> RegistryVersion | None:
        """Return the published version with the most recent ``published_at``."""
        ...

    async def list_published_versions(self) -> Sequence[RegistryVersion]:
        """Return published versions ordered by ``published_at`` descending."""
        ...

    async def create_version(self, *, name: str, created_by: str | None) -> RegistryVersion:
        """Create an empty draft with the next version number."""
        ...

    async def publish_version(
        self,
        version_id: str,
        *,
        content_hash: str,
        published_at: datetime,
    ) -> RegistryVersion | None:
        """Transition draft -> published, stamping the hash and publish time.

        Returns:
            The updated version, or ``None`` if the row was no longer a draft.
        """
        ...

    async def deprecate_version(
        self,
        version_id: str,
        *,
        deprecated_at: datetime,
    ) -> RegistryVersion | None:
        """Transition published -> deprecated.

        Returns:
            The updated version, or ``None`` if the row was no longer published.
        """
        ...

    # ------------------------------------------------------------------ #
    # Entries                                                            #
    # ------------------------------------------------------------------ #

    async def list_entries(self, version_id: str) -> Sequence[RegistryEntry]:
        """Return all entries of a version ordered by ``metric_key``.

        No status filter is applied, so deprecated versions remain loadable.
        """
        ...

    async def add_entry(
        self,
        *,
        version_id: str,
        metric_key: str,
        definition_json: Mapping[str, Any],
        definition_hash: str,
    ) -> RegistryEntry | None:
        """Append an entry to a draft.

        The store re-checks the version status under a row lock and applies the
        insert only while the version is still a draft.

        Returns:
            The created entry, or ``None`` if ``metric_key`` already exists in
            the version.

        Raises:
            RegistryImmutableError: If the version is no longer a draft.
        """
        ...

    # ------------------------------------------------------------------ #
    # Bank pins                                                          #
    # ------------------------------------------------------------------ #

    async def get_bank_pin(self, bank_id: str) -> BankRegistryPin | None:
        """Return the live pin for ``bank_id`` or ``None``."""
        ...

    async def upsert_bank_pin(
        self,
        *,
        bank_id: str,
        version_id: str,
        pinned_by: str | None,
        reason: str | None,
    ) -> BankRegistryPin:
        """Create or replace the single live pin for ``bank_id``."""
        ...

    async def delete_bank_pin(self, bank_id: str) -> bool:
        """Remove the pin for ``bank_id``. Returns True if a row was removed."""
        ...
