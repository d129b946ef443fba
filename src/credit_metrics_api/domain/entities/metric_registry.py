# src/credit_metrics_api/domain/entities/metric_registry.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Metric registry domain entities.

Purpose:
    Immutable representations of registry versions, their entries, bank pins
    and the resolved binding a computation is tied to.

Layer:
    domain/entities

Notes:
    - ``content_hash`` is assigned exactly once, at publish, from the
      canonicalized entries. Entries of published and deprecated versions are
      never mutated.
    - A bank pin may deliberately reference a deprecated version.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from credit_metrics_api.domain.enums.metric_registry import RegistryVersionStatus


@dataclass(frozen=True)
class RegistryVersion:
    """A versioned, content-addressed collection of metric formulas.

    Attributes:
        id: Version identifier.
        name: Human-readable version name (e.g. ``"v1"``).
        version_number: Monotonic sequence number.
        status: Governance status.
        content_hash: SHA-256 over canonicalized entries; ``None`` until published.
        published_at: Publish timestamp, if published.
        created_at: Creation timestamp.
        updated_at: Last status change timestamp.
        created_by: Actor that created the draft.
    """

    id: str
    name: str
    version_number: int
    status: RegistryVersionStatus
    content_hash: str | None
    published_at: datetime | None
    created_at: datetime
    updated_at: datetime
    created_by: str | None = None

    @property
    def is_draft(self) -> bool:
        """Return True if entries may still be appended."""
        return self.status is RegistryVersionStatus.DRAFT


@dataclass(frozen=True)
class RegistryEntry:
    """One metric's formula definition within a registry version."""

    id: str
    registry_version_id: str
    metric_key: str
    definition_json: Mapping[str, Any]
    definition_hash: str
    created_at: datetime


@dataclass(frozen=True)
class BankRegistryPin:
    """Tenant-specific override binding a bank to a registry version."""

    id: str
    bank_id: str
    registry_version_id: str
    pinned_at: datetime
    pinned_by: str | None = None
    reason: str | None = None


@dataclass(frozen=True)
class RegistryBinding:
    """The registry version a computation is bound to.

    Attributes:
        version_id: Registry version identifier.
        version_name: Human-readable version name.
        content_hash: Content hash identifying the exact formula set.
        pinned: True when the binding came from a bank pin.
    """

    version_id: str
    version_name: str
    content_hash: str
    pinned: bool = False


__all__ = ["BankRegistryPin", "RegistryBinding", "RegistryEntry", "RegistryVersion"]
