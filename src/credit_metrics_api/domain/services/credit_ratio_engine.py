# src/credit_metrics_api/domain/services/credit_ratio_engine.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Core credit ratio evaluation.

Purpose:
    Compute the seven canonical credit ratios for one period using the
    null-safe primitives in :mod:`credit_metrics_api.domain.services.safe_arithmetic`.

Layer:
    domain

Notes:
    - This module is pure domain logic:
        * No logging.
        * No HTTP concerns.
        * No Prometheus metrics.
    - Missing inputs and zero denominators become diagnostics on each
      :class:`MetricResult`; computation never raises for them.
    - When a summed numerator is incomplete, ``missing_inputs`` names the
      absent components (``accountsReceivable``), not the aggregate.
    - Formulas:
        DSCR            = EBITDA / TotalDebtService
        Leverage        = (ShortTermDebt + LongTermDebt) / EBITDA
        Current ratio   = (Cash + AccountsReceivable + Inventory) / ShortTermDebt
        Quick ratio     = (Cash + AccountsReceivable) / ShortTermDebt
        Working capital = (Cash + AccountsReceivable + Inventory) - ShortTermDebt
        EBITDA margin   = EBITDA / Revenue
        Net margin      = NetIncome / Revenue
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from credit_metrics_api.domain.entities.amount import ABSENT, Amount, Present
from credit_metrics_api.domain.entities.credit_metrics import (
    CoreCreditMetrics,
    DebtServiceResult,
    MetricDiagnostics,
    MetricResult,
)
from credit_metrics_api.domain.entities.financial_period import (
    FactGroup,
    FinancialPeriod,
    find_period,
)
from credit_metrics_api.domain.enums.credit_analysis import CreditRatio
from credit_metrics_api.domain.services.safe_arithmetic import safe_divide, safe_subtract, safe_sum

FORMULAS: dict[CreditRatio, str] = {
    CreditRatio.DSCR: "EBITDA / TotalDebtService",
    CreditRatio.LEVERAGE_DEBT_TO_EBITDA: "(ShortTermDebt + LongTermDebt) / EBITDA",
    CreditRatio.CURRENT_RATIO: "(Cash + AccountsReceivable + Inventory) / ShortTermDebt",
    CreditRatio.QUICK_RATIO: "(Cash + AccountsReceivable) / ShortTermDebt",
    CreditRatio.WORKING_CAPITAL: "(Cash + AccountsReceivable + Inventory) - ShortTermDebt",
    CreditRatio.EBITDA_MARGIN: "EBITDA / Revenue",
    CreditRatio.NET_MARGIN: "NetIncome / Revenue",
}


def ebitda_of(period: FinancialPeriod) -> Amount:
    """Return EBITDA from the cashflow group, falling back to the income group."""
    for group in (FactGroup.CASHFLOW, FactGroup.INCOME):
        amount = period.fact(group, "ebitda")
        if isinstance(amount, Present):
            return amount
    return ABSENT


def _over_sum(
    components: Mapping[str, Amount],
    aggregate_name: str,
    den_name: str,
    den: Amount,
    formula: str,
) -> MetricResult:
    total = safe_sum(components)
    inputs: dict[str, Amount] = {**components, aggregate_name: total.value, den_name: den}
    if total.missing:
        missing = total.missing + (() if isinstance(den, Present) else (den_name,))
        return MetricResult(
            value=ABSENT,
            inputs=inputs,
            formula=formula,
            diagnostics=MetricDiagnostics(missing_inputs=missing),
        )
    return safe_divide(aggregate_name, total.value, den_name, den, inputs, formula)


def _working_capital(components: Mapping[str, Amount], short_term_debt: Amount) -> MetricResult:
    formula = FORMULAS[CreditRatio.WORKING_CAPITAL]
    total = safe_sum(components)
    inputs: dict[str, Amount] = {
        **components,
        "currentAssets": total.value,
        "shortTermDebt": short_term_debt,
    }
    if total.missing:
        missing = total.missing + (
            () if isinstance(short_term_debt, Present) else ("shortTermDebt",)
        )
        return MetricResult(
            value=ABSENT,
            inputs=inputs,
            formula=formula,
            diagnostics=MetricDiagnostics(missing_inputs=missing),
        )
    return safe_subtract(
        "currentAssets", total.value, "shortTermDebt", short_term_debt, inputs, formula
    )


def compute_core_credit_metrics(
    periods: Sequence[FinancialPeriod],
    period_id: str,
    debt_service: DebtServiceResult,
) -> CoreCreditMetrics:
    """Compute the seven canonical ratios for ``period_id``.

    Args:
        periods: All periods of the financial model.
        period_id: Period to evaluate.
        debt_service: Harmonized debt service for the period.

    Returns:
        Period-tagged bundle of all seven ratios. An unknown period yields an
        empty bundle.
    """
    period = find_period(periods, period_id)
    if period is None:
        return CoreCreditMetrics(period_id=period_id)

    ebitda = ebitda_of(period)
    revenue = period.fact(FactGroup.INCOME, "revenue")
    net_income = period.fact(FactGroup.INCOME, "netIncome")
    cash = period.fact(FactGroup.BALANCE, "cash")
    receivables = period.fact(FactGroup.BALANCE, "accountsReceivable")
    inventory = period.fact(FactGroup.BALANCE, "inventory")
    short_term_debt = period.fact(FactGroup.BALANCE, "shortTermDebt")
    long_term_debt = period.fact(FactGroup.BALANCE, "longTermDebt")
    total_debt_service = debt_service.total_debt_service

    current_components = {"cash": cash, "accountsReceivable": receivables, "inventory": inventory}
    quick_components = {"cash": cash, "accountsReceivable": receivables}

    metrics: dict[CreditRatio, MetricResult] = {
        CreditRatio.DSCR: safe_divide(
            "ebitda",
            ebitda,
            "totalDebtService",
            total_debt_service,
            {"ebitda": ebitda, "totalDebtService": total_debt_service},
            FORMULAS[CreditRatio.DSCR],
        ),
        CreditRatio.LEVERAGE_DEBT_TO_EBITDA: _over_sum(
            {"shortTermDebt": short_term_debt, "longTermDebt": long_term_debt},
            "totalDebt",
            "ebitda",
            ebitda,
            FORMULAS[CreditRatio.LEVERAGE_DEBT_TO_EBITDA],
        ),
        CreditRatio.CURRENT_RATIO: _over_sum(
            current_components,
            "currentAssets",
            "shortTermDebt",
            short_term_debt,
            FORMULAS[CreditRatio.CURRENT_RATIO],
        ),
        CreditRatio.QUICK_RATIO: _over_sum(
            quick_components,
            "quickAssets",
            "shortTermDebt",
            short_term_debt,
            FORMULAS[CreditRatio.QUICK_RATIO],
        ),
        CreditRatio.WORKING_CAPITAL: _working_capital(current_components, short_term_debt),
        CreditRatio.EBITDA_MARGIN: safe_divide(
            "ebitda",
            ebitda,
            "revenue",
            revenue,
            {"ebitda": ebitda, "revenue": revenue},
            FORMULAS[CreditRatio.EBITDA_MARGIN],
        ),
        CreditRatio.NET_MARGIN: safe_divide(
            "netIncome",
            net_income,
            "revenue",
            revenue,
            {"netIncome": net_income, "revenue": revenue},
            FORMULAS[CreditRatio.NET_MARGIN],
        ),
    }
    return CoreCreditMetrics(period_id=period_id, metrics=metrics)


__all__ = ["FORMULAS", "compute_core_credit_metrics", "ebitda_of"]
