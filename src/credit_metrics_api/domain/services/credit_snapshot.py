# src/credit_metrics_api/domain/services/credit_snapshot.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Credit snapshot composition.

Purpose:
    Run the evaluation path end to end for one deal: select the period,
    resolve debt service, evaluate the seven ratios. Also flatten a snapshot
    into the render-ready metric map checked by the snapshot validator.

Layer:
    domain/services
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from datetime import UTC, datetime

from credit_metrics_api.domain.entities.amount import Amount, value_or_none
from credit_metrics_api.domain.entities.credit_metrics import (
    CreditSnapshot,
    PeriodSelectionOptions,
)
from credit_metrics_api.domain.entities.deal_snapshot import (
    DealFinancialSnapshot,
    SnapshotMetricValue,
)
from credit_metrics_api.domain.entities.debt_instrument import DebtInstrument
from credit_metrics_api.domain.entities.financial_period import FactGroup, FinancialModel
from credit_metrics_api.domain.enums.credit_analysis import CreditRatio
from credit_metrics_api.domain.services.credit_ratio_engine import (
    compute_core_credit_metrics,
    ebitda_of,
)
from credit_metrics_api.domain.services.debt_service import compute_debt_service_for_period
from credit_metrics_api.domain.services.period_selection import select_analysis_period

#: Render-snapshot metric name for each canonical ratio.
RATIO_SNAPSHOT_NAMES: dict[CreditRatio, str] = {
    CreditRatio.DSCR: "dscr",
    CreditRatio.LEVERAGE_DEBT_TO_EBITDA: "leverage_debt_to_ebitda",
    CreditRatio.CURRENT_RATIO: "current_ratio",
    CreditRatio.QUICK_RATIO: "quick_ratio",
    CreditRatio.WORKING_CAPITAL: "working_capital",
    CreditRatio.EBITDA_MARGIN: "ebitda_margin",
    CreditRatio.NET_MARGIN: "net_margin",
}


def _utc_now() -> datetime:
    return datetime.now(UTC)


def compute_credit_snapshot(
    model: FinancialModel,
    options: PeriodSelectionOptions | None = None,
    instruments: Sequence[DebtInstrument] | None = None,
    *,
    clock: Callable[[], datetime] = _utc_now,
) -> CreditSnapshot | None:
    """Compute a credit snapshot for a deal.

    Args:
        model: Financial model with candidate periods.
        options: Period selection options (defaults to ``LATEST_FY``).
        instruments: Optional debt instruments; switches debt service to the
            instrument-portfolio path.
        clock: Source of the generation timestamp.

    Returns:
        The snapshot, or ``None`` when no period matches the selection.
    """
    selected = select_analysis_period(model.periods, options)
    if selected is None:
        return None
    debt_service = compute_debt_service_for_period(model.periods, selected.period_id, instruments)
    ratios = compute_core_credit_metrics(model.periods, selected.period_id, debt_service)
    return CreditSnapshot(
        deal_id=model.deal_id,
        selected_period=selected,
        debt_service=debt_service,
        ratios=ratios,
        generated_at=clock(),
    )


def to_deal_snapshot(snapshot: CreditSnapshot) -> DealFinancialSnapshot:
    """Flatten a credit snapshot into the render-ready metric map."""
    period = snapshot.selected_period.period
    as_of = period.period_end
    source_ref = f"period:{period.period_id}"

    def entry(raw: Amount, source_type: str) -> SnapshotMetricValue:
        return SnapshotMetricValue(
            value_num=value_or_none(raw),
            as_of_date=as_of,
            source_type=source_type,
            source_ref=source_ref,
        )

    metrics: dict[str, SnapshotMetricValue] = {
        "revenue": entry(period.fact(FactGroup.INCOME, "revenue"), "FINANCIAL_MODEL"),
        "net_income": entry(period.fact(FactGroup.INCOME, "netIncome"), "FINANCIAL_MODEL"),
        "ebitda": entry(ebitda_of(period), "FINANCIAL_MODEL"),
        "annual_debt_service": entry(
            snapshot.debt_service.total_debt_service,
            snapshot.debt_service.diagnostics.source.value,
        ),
    }
    for ratio, result in snapshot.ratios.metrics.items():
        metrics[RATIO_SNAPSHOT_NAMES[ratio]] = entry(result.value, "CREDIT_METRICS")

    return DealFinancialSnapshot(deal_id=snapshot.deal_id, metrics=metrics, as_of_date=as_of)


__all__ = ["RATIO_SNAPSHOT_NAMES", "compute_credit_snapshot", "to_deal_snapshot"]
