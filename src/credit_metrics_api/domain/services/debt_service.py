# src/credit_metrics_api/domain/services/debt_service.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Debt service resolution for a financial period.

Purpose:
    Harmonize one annual debt-service figure per period from either the
    income-statement interest proxy or a debt-instrument portfolio.

Layer:
    domain/services

Notes:
    - Proxy path: ``total = existing = income.interest``; ``proposed`` is
      always absent because proposed debt cannot be derived from historical
      interest.
    - Instrument path: portfolio totals aligned to the period cadence and
      split by instrument tag; invalid instruments are listed by id in
      ``missing_components``.
    - Neither path fabricates a figure from absent data.
"""

from __future__ import annotations

from collections.abc import Sequence

from credit_metrics_api.domain.entities.amount import ABSENT, Present
from credit_metrics_api.domain.entities.credit_metrics import (
    DebtServiceBreakdown,
    DebtServiceDiagnostics,
    DebtServiceResult,
)
from credit_metrics_api.domain.entities.debt_instrument import DebtInstrument
from credit_metrics_api.domain.entities.financial_period import (
    FactGroup,
    FinancialPeriod,
    find_period,
)
from credit_metrics_api.domain.enums.credit_analysis import DebtServiceSource
from credit_metrics_api.domain.services.debt_engine import (
    align_debt_service_to_period,
    compute_debt_portfolio_service,
)

INTEREST_COMPONENT = "income.interest"


def _unknown_period(period_id: str, source: DebtServiceSource) -> DebtServiceResult:
    return DebtServiceResult(
        period_id=period_id,
        total_debt_service=ABSENT,
        breakdown=DebtServiceBreakdown(),
        diagnostics=DebtServiceDiagnostics(
            source=source,
            missing_components=(f"period:{period_id}",),
        ),
    )


def _from_interest(period: FinancialPeriod) -> DebtServiceResult:
    interest = period.fact(FactGroup.INCOME, "interest")
    missing = () if isinstance(interest, Present) else (INTEREST_COMPONENT,)
    return DebtServiceResult(
        period_id=period.period_id,
        total_debt_service=interest,
        breakdown=DebtServiceBreakdown(existing=interest, proposed=ABSENT),
        diagnostics=DebtServiceDiagnostics(
            source=DebtServiceSource.INCOME_INTEREST,
            missing_components=missing,
        ),
    )


def _from_instruments(
    period: FinancialPeriod,
    instruments: Sequence[DebtInstrument],
) -> DebtServiceResult:
    portfolio = compute_debt_portfolio_service(instruments)
    aligned = align_debt_service_to_period(portfolio, period.period_type)
    missing = list(portfolio.invalid_instruments)
    if not instruments:
        missing.append("instruments")
    return DebtServiceResult(
        period_id=period.period_id,
        total_debt_service=aligned.total_debt_service,
        breakdown=DebtServiceBreakdown(existing=aligned.existing, proposed=aligned.proposed),
        diagnostics=DebtServiceDiagnostics(
            source=DebtServiceSource.DEBT_ENGINE,
            missing_components=tuple(missing),
            notes=aligned.notes,
            alignment=aligned.alignment_type,
        ),
    )


def compute_debt_service_for_period(
    periods: Sequence[FinancialPeriod],
    period_id: str,
    instruments: Sequence[DebtInstrument] | None = None,
) -> DebtServiceResult:
    """Resolve annual debt service for ``period_id``.

    Args:
        periods: All periods of the financial model.
        period_id: Period to resolve.
        instruments: Optional instrument portfolio. When supplied (even
            empty) the instrument path is used.

    Returns:
        Debt service result. An unknown period or absent interest yields an
        absent total with a named missing component, never an exception.
    """
    source = (
        DebtServiceSource.INCOME_INTEREST if instruments is None else DebtServiceSource.DEBT_ENGINE
    )
    period = find_period(periods, period_id)
    if period is None:
        return _unknown_period(period_id, source)
    if instruments is None:
        return _from_interest(period)
    return _from_instruments(period, instruments)


__all__ = ["INTEREST_COMPONENT", "compute_debt_service_for_period"]
