# tests/unit/domain/services/test_credit_snapshot.py
from __future__ import annotations

from datetime import date
from decimal import Decimal

from factories import T0, make_period

from credit_metrics_api.domain.entities.amount import Present
from credit_metrics_api.domain.entities.credit_metrics import PeriodSelectionOptions
from credit_metrics_api.domain.entities.financial_period import FinancialModel, FinancialPeriod
from credit_metrics_api.domain.enums.credit_analysis import (
    CreditRatio,
    PeriodSelectionStrategy,
    PeriodType,
)
from credit_metrics_api.domain.services.credit_snapshot import (
    compute_credit_snapshot,
    to_deal_snapshot,
)


def test_compute_credit_snapshot_composes_selection_debt_service_and_ratios(
    operating_period: FinancialPeriod,
) -> None:
    ttm = make_period("TTM", period_end=date(2025, 6, 30), period_type=PeriodType.TTM)
    model = FinancialModel(deal_id="deal-1", periods=(ttm, operating_period))

    snapshot = compute_credit_snapshot(model, clock=lambda: T0)

    assert snapshot is not None
    assert snapshot.deal_id == "deal-1"
    assert snapshot.generated_at == T0
    assert snapshot.selected_period.period_id == "FY2024"
    assert snapshot.debt_service.total_debt_service == Present(Decimal("500000"))
    assert snapshot.ratios.period_id == "FY2024"
    assert snapshot.ratios.metrics[CreditRatio.DSCR].value == Present(Decimal("4"))


def test_compute_credit_snapshot_without_matching_period() -> None:
    model = FinancialModel(deal_id="deal-1", periods=())

    assert compute_credit_snapshot(model, clock=lambda: T0) is None
    assert (
        compute_credit_snapshot(
            FinancialModel(deal_id="d", periods=(make_period(),)),
            PeriodSelectionOptions(strategy=PeriodSelectionStrategy.LATEST_TTM),
            clock=lambda: T0,
        )
        is None
    )


def test_to_deal_snapshot_flattens_render_metrics(operating_period: FinancialPeriod) -> None:
    model = FinancialModel(deal_id="deal-1", periods=(operating_period,))
    snapshot = compute_credit_snapshot(model, clock=lambda: T0)
    assert snapshot is not None

    deal = to_deal_snapshot(snapshot)

    assert deal.as_of_date == date(2024, 12, 31)
    assert deal.value_of("revenue") == Decimal("10000000")
    assert deal.value_of("annual_debt_service") == Decimal("500000")
    assert deal.value_of("dscr") == Decimal("4")
    assert deal.value_of("leverage_debt_to_ebitda") == Decimal("3")
    assert deal.metrics["annual_debt_service"].source_type == "income.interest"
    assert deal.metrics["dscr"].source_ref == "period:FY2024"
