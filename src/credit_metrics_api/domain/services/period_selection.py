# src/credit_metrics_api/domain/services/period_selection.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Analysis period selection.

Purpose:
    Deterministically pick one financial period from a candidate set.

Layer:
    domain/services

Notes:
    - No clock and no randomness: the same periods and options always yield
      the same selection.
    - Ties on ``period_end`` resolve to the greatest ``period_id`` so that
      input order never influences the result.
"""

from __future__ import annotations

from collections.abc import Sequence

from credit_metrics_api.domain.entities.credit_metrics import (
    PeriodSelectionDiagnostics,
    PeriodSelectionOptions,
    SelectedPeriod,
)
from credit_metrics_api.domain.entities.financial_period import FinancialPeriod
from credit_metrics_api.domain.enums.credit_analysis import PeriodSelectionStrategy, PeriodType

_TYPE_FILTERS: dict[PeriodSelectionStrategy, PeriodType] = {
    PeriodSelectionStrategy.LATEST_FY: PeriodType.FYE,
    PeriodSelectionStrategy.LATEST_TTM: PeriodType.TTM,
}

_REASONS: dict[PeriodSelectionStrategy, str] = {
    PeriodSelectionStrategy.LATEST_FY: "Latest FYE period by period end date",
    PeriodSelectionStrategy.LATEST_TTM: "Latest TTM period by period end date",
    PeriodSelectionStrategy.LATEST_AVAILABLE: "Selected most recent period regardless of type",
    PeriodSelectionStrategy.EXPLICIT: "Explicitly requested period",
}


def _latest(periods: Sequence[FinancialPeriod]) -> FinancialPeriod:
    return max(periods, key=lambda p: (p.period_end.isoformat(), p.period_id))


def select_analysis_period(
    periods: Sequence[FinancialPeriod],
    options: PeriodSelectionOptions | None = None,
) -> SelectedPeriod | None:
    """Select the analysis period.

    Strategies:
        * ``LATEST_FY`` / ``LATEST_TTM``: keep periods of that type, pick the
          greatest period end. No matching period yields ``None``.
        * ``LATEST_AVAILABLE``: no type filter; ``None`` only for an empty
          collection.
        * ``EXPLICIT``: exact ``period_id`` match or ``None``.

    Args:
        periods: Candidate periods.
        options: Selection options (defaults to ``LATEST_FY``).

    Returns:
        The selected period with diagnostics, or ``None``.
    """
    opts = options or PeriodSelectionOptions()
    strategy = opts.strategy

    if strategy is PeriodSelectionStrategy.EXPLICIT:
        candidates = [p for p in periods if p.period_id == opts.period_id]
    elif strategy in _TYPE_FILTERS:
        wanted = _TYPE_FILTERS[strategy]
        candidates = [p for p in periods if p.period_type is wanted]
    else:
        candidates = list(periods)

    if not candidates:
        return None

    chosen = _latest(candidates)
    candidate_ids = tuple(p.period_id for p in candidates)
    excluded_ids = tuple(p.period_id for p in periods if p.period_id not in candidate_ids)

    reason = _REASONS[strategy]
    if strategy is PeriodSelectionStrategy.EXPLICIT:
        reason = f"{reason}: {chosen.period_id}"

    return SelectedPeriod(
        period=chosen,
        diagnostics=PeriodSelectionDiagnostics(
            strategy=strategy,
            candidate_period_ids=candidate_ids,
            excluded_period_ids=excluded_ids,
            reason=reason,
        ),
    )


__all__ = ["select_analysis_period"]
