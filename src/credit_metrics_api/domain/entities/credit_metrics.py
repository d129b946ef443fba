# src/credit_metrics_api/domain/entities/credit_metrics.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Credit analysis results.

Purpose:
    Outcome types of the evaluation path: period selection, harmonized debt
    service, per-ratio metric results with their full audit trail, and the
    composed credit snapshot.

Layer:
    domain/entities

Notes:
    - ``MetricResult.value`` is present if and only if every required input
      is present and no denominator was zero. It is never coerced from absent
      to zero.
    - Snapshots are computed fresh per request and are not cached across a
      registry-version change.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime

from credit_metrics_api.domain.entities.amount import ABSENT, Amount, Present
from credit_metrics_api.domain.entities.financial_period import FinancialPeriod
from credit_metrics_api.domain.enums.credit_analysis import (
    CreditRatio,
    DebtServiceAlignment,
    DebtServiceSource,
    PeriodSelectionStrategy,
    PeriodType,
)

# --------------------------------------------------------------------------- #
# Period selection                                                            #
# --------------------------------------------------------------------------- #


@dataclass(frozen=True)
class PeriodSelectionOptions:
    """How to choose the analysis period.

    Attributes:
        strategy: Selection strategy.
        period_id: Required when ``strategy`` is ``EXPLICIT``; ignored otherwise.
    """

    strategy: PeriodSelectionStrategy = PeriodSelectionStrategy.LATEST_FY
    period_id: str | None = None


@dataclass(frozen=True)
class PeriodSelectionDiagnostics:
    """Explains which periods were considered and why one was chosen."""

    strategy: PeriodSelectionStrategy
    candidate_period_ids: tuple[str, ...]
    excluded_period_ids: tuple[str, ...]
    reason: str


@dataclass(frozen=True)
class SelectedPeriod:
    """The chosen period plus selection diagnostics."""

    period: FinancialPeriod
    diagnostics: PeriodSelectionDiagnostics

    @property
    def period_id(self) -> str:
        return self.period.period_id

    @property
    def period_end(self) -> date:
        return self.period.period_end

    @property
    def period_type(self) -> PeriodType:
        return self.period.period_type


# --------------------------------------------------------------------------- #
# Debt service                                                                #
# --------------------------------------------------------------------------- #


@dataclass(frozen=True)
class DebtServiceBreakdown:
    """Split of total debt service into existing and proposed debt."""

    existing: Amount = ABSENT
    proposed: Amount = ABSENT


@dataclass(frozen=True)
class DebtServiceDiagnostics:
    """Provenance of a debt service figure.

    Attributes:
        source: Proxy (``income.interest``) or instrument portfolio.
        missing_components: Names of absent inputs or invalid instrument ids.
        notes: Free-text notes (interest-only periods, balloons, proration).
        alignment: Cadence alignment applied on the instrument path.
    """

    source: DebtServiceSource
    missing_components: tuple[str, ...] = ()
    notes: tuple[str, ...] = ()
    alignment: DebtServiceAlignment | None = None


@dataclass(frozen=True)
class DebtServiceResult:
    """Harmonized annual debt service for one period."""

    period_id: str
    total_debt_service: Amount
    breakdown: DebtServiceBreakdown
    diagnostics: DebtServiceDiagnostics


# --------------------------------------------------------------------------- #
# Ratio results                                                               #
# --------------------------------------------------------------------------- #


@dataclass(frozen=True)
class MetricDiagnostics:
    """Why a metric has no value.

    Attributes:
        missing_inputs: Names of absent inputs, in evaluation order.
        divide_by_zero: True when the denominator was exactly zero.
    """

    missing_inputs: tuple[str, ...] = ()
    divide_by_zero: bool = False


@dataclass(frozen=True)
class MetricResult:
    """Outcome of evaluating one metric for one period.

    Attributes:
        value: Computed value or ``ABSENT``.
        inputs: Snapshot of every named input used by the formula.
        formula: Human-readable formula string.
        diagnostics: Present when the value could not be computed.
    """

    value: Amount
    inputs: Mapping[str, Amount]
    formula: str
    diagnostics: MetricDiagnostics | None = None

    @property
    def is_available(self) -> bool:
        """Return True when the metric has a value."""
        return isinstance(self.value, Present)


@dataclass(frozen=True)
class CoreCreditMetrics:
    """Period-tagged bundle of the seven canonical ratios.

    An unknown period yields a bundle with no metrics.
    """

    period_id: str
    metrics: Mapping[CreditRatio, MetricResult] = field(default_factory=dict)

    def __getitem__(self, ratio: CreditRatio) -> MetricResult:
        return self.metrics[ratio]

    def get(self, ratio: CreditRatio) -> MetricResult | None:
        return self.metrics.get(ratio)

    @property
    def is_empty(self) -> bool:
        return not self.metrics


# --------------------------------------------------------------------------- #
# Snapshot                                                                    #
# --------------------------------------------------------------------------- #


@dataclass(frozen=True)
class CreditSnapshot:
    """Credit analysis of one deal for one selected period."""

    deal_id: str
    selected_period: SelectedPeriod
    debt_service: DebtServiceResult
    ratios: CoreCreditMetrics
    generated_at: datetime


__all__ = [
    "CoreCreditMetrics",
    "CreditSnapshot",
    "DebtServiceBreakdown",
    "DebtServiceDiagnostics",
    "DebtServiceResult",
    "MetricDiagnostics",
    "MetricResult",
    "PeriodSelectionDiagnostics",
    "PeriodSelectionOptions",
    "SelectedPeriod",
]
