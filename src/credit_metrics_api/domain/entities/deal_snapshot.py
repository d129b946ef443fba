# src/credit_metrics_api/domain/entities/deal_snapshot.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Deal financial snapshot as handed to report renderers.

Purpose:
    A flat, render-ready map of named snapshot metrics (``dscr``,
    ``annual_debt_service``, ``noi_ttm`` ...) and the result of validating it
    before rendering.

Layer:
    domain/entities
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from credit_metrics_api.domain.enums.credit_analysis import SnapshotIssueKind


@dataclass(frozen=True)
class SnapshotMetricValue:
    """One named value in a deal snapshot.

    ``value_num`` is ``None`` when the value is unavailable. It may be a float
    carrying NaN or infinity when an upstream computation misbehaved; the
    validator reports those.
    """

    value_num: Decimal | float | int | None
    value_text: str | None = None
    as_of_date: date | None = None
    confidence: float | None = None
    source_type: str | None = None
    source_ref: str | None = None


@dataclass(frozen=True)
class DealFinancialSnapshot:
    """Render-ready metric map for a deal."""

    deal_id: str
    metrics: Mapping[str, SnapshotMetricValue] = field(default_factory=dict)
    as_of_date: date | None = None

    def value_of(self, metric: str) -> Decimal | float | int | None:
        """Return the numeric value of ``metric`` or ``None`` when missing."""
        entry = self.metrics.get(metric)
        return entry.value_num if entry is not None else None


@dataclass(frozen=True)
class SnapshotIssue:
    """A single validation finding."""

    metric: str
    issue: SnapshotIssueKind
    message: str


@dataclass(frozen=True)
class SnapshotValidationResult:
    """Outcome of the pre-render gate. ``valid`` is True iff there are no errors."""

    valid: bool
    errors: tuple[SnapshotIssue, ...] = ()
    warnings: tuple[SnapshotIssue, ...] = ()


__all__ = [
    "DealFinancialSnapshot",
    "SnapshotIssue",
    "SnapshotMetricValue",
    "SnapshotValidationResult",
]
