# tests/unit/domain/services/test_credit_ratio_engine.py
"""Unit tests for the seven core credit ratios."""

from __future__ import annotations

from decimal import Decimal

from factories import make_period

from credit_metrics_api.domain.entities.amount import ABSENT, Present
from credit_metrics_api.domain.entities.financial_period import FactGroup, FinancialPeriod
from credit_metrics_api.domain.enums.credit_analysis import CreditRatio
from credit_metrics_api.domain.services.credit_ratio_engine import (
    FORMULAS,
    compute_core_credit_metrics,
)
from credit_metrics_api.domain.services.debt_service import compute_debt_service_for_period


def _ratios(period: FinancialPeriod):
    debt_service = compute_debt_service_for_period([period], period.period_id)
    return compute_core_credit_metrics([period], period.period_id, debt_service).metrics


def test_dscr_from_ebitda_and_interest() -> None:
    period = make_period(income={"ebitda": Decimal("400000"), "interest": Decimal("120000")})

    dscr = _ratios(period)[CreditRatio.DSCR]

    assert isinstance(dscr.value, Present)
    assert round(dscr.value.value, 4) == Decimal("3.3333")
    assert dscr.formula == "EBITDA / TotalDebtService"
    assert dscr.diagnostics is None
    assert dscr.inputs == {
        "ebitda": Present(Decimal("400000")),
        "totalDebtService": Present(Decimal("120000")),
    }


def test_dscr_absent_when_interest_missing() -> None:
    period = make_period(income={"ebitda": Decimal("400000")})

    dscr = _ratios(period)[CreditRatio.DSCR]

    assert dscr.value is ABSENT
    assert dscr.diagnostics is not None
    assert "totalDebtService" in dscr.diagnostics.missing_inputs


def test_current_ratio_zero_short_term_debt_is_divide_by_zero() -> None:
    period = make_period(
        balance={
            "cash": Decimal("100"),
            "accountsReceivable": Decimal("50"),
            "inventory": Decimal("25"),
            "shortTermDebt": Decimal("0"),
            "longTermDebt": Decimal("500"),
        },
    )

    current = _ratios(period)[CreditRatio.CURRENT_RATIO]

    assert current.value is ABSENT
    assert current.diagnostics is not None
    assert current.diagnostics.divide_by_zero is True
    assert current.inputs["currentAssets"] == Present(Decimal("175"))


def test_all_seven_ratios_on_complete_period(operating_period: FinancialPeriod) -> None:
    metrics = _ratios(operating_period)

    assert set(metrics) == set(CreditRatio)
    assert metrics[CreditRatio.DSCR].value == Present(Decimal("4"))
    assert metrics[CreditRatio.LEVERAGE_DEBT_TO_EBITDA].value == Present(Decimal("3"))
    assert metrics[CreditRatio.CURRENT_RATIO].value == Present(Decimal("1.5"))
    assert metrics[CreditRatio.QUICK_RATIO].value == Present(Decimal("1"))
    assert metrics[CreditRatio.WORKING_CAPITAL].value == Present(Decimal("500000"))
    assert metrics[CreditRatio.EBITDA_MARGIN].value == Present(Decimal("0.2"))
    assert metrics[CreditRatio.NET_MARGIN].value == Present(Decimal("0.08"))
    assert all(m.formula == FORMULAS[ratio] for ratio, m in metrics.items())


def test_incomplete_sum_reports_component_names() -> None:
    period = make_period(
        balance={
            "cash": Decimal("100"),
            "inventory": Decimal("25"),
            "shortTermDebt": Decimal("50"),
        },
    )

    metrics = _ratios(period)

    current = metrics[CreditRatio.CURRENT_RATIO]
    assert current.value is ABSENT
    assert current.diagnostics is not None
    assert current.diagnostics.missing_inputs == ("accountsReceivable",)
    working = metrics[CreditRatio.WORKING_CAPITAL]
    assert working.diagnostics is not None
    assert working.diagnostics.missing_inputs == ("accountsReceivable",)


def test_cashflow_ebitda_wins_over_income_ebitda() -> None:
    period = make_period(
        income={"ebitda": Decimal("100"), "revenue": Decimal("1000")},
        cashflow={"ebitda": Decimal("300")},
    )

    margin = _ratios(period)[CreditRatio.EBITDA_MARGIN]

    assert margin.value == Present(Decimal("0.3"))


def test_unknown_period_yields_empty_bundle(operating_period: FinancialPeriod) -> None:
    debt_service = compute_debt_service_for_period([operating_period], "missing")

    bundle = compute_core_credit_metrics([operating_period], "missing", debt_service)

    assert bundle.period_id == "missing"
    assert dict(bundle.metrics) == {}


def test_float_facts_are_read_as_decimals() -> None:
    period = make_period(
        income={"revenue": 1000.5, "netIncome": 100.05},  # type: ignore[dict-item]
        balance={
            "cash": 10.5,
            "accountsReceivable": 4.5,
            "inventory": 5,
            "shortTermDebt": 10,
        },  # type: ignore[dict-item]
    )

    metrics = _ratios(period)

    assert period.fact(FactGroup.INCOME, "revenue") == Present(Decimal("1000.5"))
    assert metrics[CreditRatio.NET_MARGIN].value == Present(Decimal("0.1"))
    assert metrics[CreditRatio.CURRENT_RATIO].value == Present(Decimal("2"))
    assert metrics[CreditRatio.WORKING_CAPITAL].value == Present(Decimal("10"))
