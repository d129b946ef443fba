# src/credit_metrics_api/domain/services/debt_engine.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Debt instrument amortization engine.

Purpose:
    Annualize scheduled debt service for individual instruments and for a
    portfolio, and align the result with the cadence of a financial period.

Layer:
    domain/services

Notes:
    - Pure domain logic. All money is :class:`decimal.Decimal`, rounded to
      cents with banker's rounding.
    - Level-payment amortization: ``P * r / (1 - (1 + r) ** -n)`` with ``r``
      the periodic rate and ``n`` the number of amortizing payments. A zero
      rate amortizes straight-line (``P / n``).
    - Interest-only loans report the post-IO amortizing payment, and the
      principal/interest split is that of the first amortizing year. Balloon
      loans exclude the balloon. Both add a note.
    - Unsupported structures (negative principal or rate, non-positive
      amortization) produce an absent figure and are listed as invalid by
      the portfolio aggregate; they never abort the whole portfolio.
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import ROUND_HALF_EVEN, Decimal

from credit_metrics_api.domain.entities.amount import ABSENT, Amount, Present
from credit_metrics_api.domain.entities.debt_instrument import (
    AlignedDebtService,
    DebtInstrument,
    DebtPortfolioService,
    InstrumentDebtService,
)
from credit_metrics_api.domain.enums.credit_analysis import (
    DebtServiceAlignment,
    InstrumentSource,
    PeriodType,
)

CENTS = Decimal("0.01")
DECIMAL_ZERO = Decimal("0")
DECIMAL_ONE = Decimal("1")


def _money(value: Decimal) -> Decimal:
    return value.quantize(CENTS, rounding=ROUND_HALF_EVEN)


def _unsupported_reason(instrument: DebtInstrument) -> str | None:
    if instrument.principal < 0:
        return "negative_principal"
    if instrument.rate < 0:
        return "negative_rate"
    if instrument.amortization_months <= 0:
        return "non_positive_amortization"
    if instrument.interest_only_months < 0:
        return "negative_interest_only_period"
    if instrument.amortization_months < instrument.payment_frequency.months_per_payment:
        return "amortization_shorter_than_payment_period"
    return None


def level_payment(principal: Decimal, periodic_rate: Decimal, payments: int) -> Decimal:
    """Return the level periodic payment that fully amortizes ``principal``.

    Args:
        principal: Amount to amortize.
        periodic_rate: Interest rate per payment period.
        payments: Number of payments.

    Returns:
        Unrounded periodic payment.
    """
    if periodic_rate == 0:
        return principal / payments
    return principal * periodic_rate / (DECIMAL_ONE - (DECIMAL_ONE + periodic_rate) ** -payments)


def compute_annual_debt_service(instrument: DebtInstrument) -> InstrumentDebtService:
    """Annualize one instrument's scheduled debt service.

    Args:
        instrument: Instrument to evaluate.

    Returns:
        Annual debt service with a first-year principal/interest split, or an
        absent result carrying ``unsupported_structure``. Interest-only months
        are not modelled: both the annual figure and the split are those of the
        first amortizing year after the IO window.
    """
    reason = _unsupported_reason(instrument)
    if reason is not None:
        return InstrumentDebtService(
            instrument_id=instrument.instrument_id,
            source=instrument.source,
            unsupported_structure=reason,
        )

    notes: list[str] = []
    if instrument.interest_only_months > 0:
        notes.append(
            f"IO period of {instrument.interest_only_months} months; "
            "debt service and its principal/interest split describe the first "
            "post-IO amortizing year"
        )
    if instrument.has_balloon:
        notes.append("Balloon payment at maturity excluded from annual debt service")

    if instrument.principal == 0:
        zero = Present(DECIMAL_ZERO)
        return InstrumentDebtService(
            instrument_id=instrument.instrument_id,
            source=instrument.source,
            annual_debt_service=zero,
            principal=zero,
            interest=zero,
            periodic_payment=zero,
            notes=tuple(notes),
        )

    frequency = instrument.payment_frequency
    per_year = frequency.payments_per_year
    payments = instrument.amortization_months // frequency.months_per_payment
    periodic_rate = instrument.rate / per_year
    payment = level_payment(instrument.principal, periodic_rate, payments)

    first_year = min(per_year, payments)
    balance = instrument.principal
    interest_total = DECIMAL_ZERO
    for _ in range(first_year):
        interest = balance * periodic_rate
        interest_total += interest
        balance -= payment - interest

    annual = _money(payment * first_year)
    interest_paid = _money(interest_total)
    return InstrumentDebtService(
        instrument_id=instrument.instrument_id,
        source=instrument.source,
        annual_debt_service=Present(annual),
        principal=Present(annual - interest_paid),
        interest=Present(interest_paid),
        periodic_payment=Present(_money(payment)),
        notes=tuple(notes),
    )


def _sum_present(values: Sequence[Decimal]) -> Amount:
    if not values:
        return ABSENT
    return Present(sum(values, DECIMAL_ZERO))


def compute_debt_portfolio_service(instruments: Sequence[DebtInstrument]) -> DebtPortfolioService:
    """Aggregate annual debt service over a portfolio.

    Args:
        instruments: Instruments to aggregate, in any order.

    Returns:
        Totals split by existing/proposed, a per-instrument breakdown keyed by
        id and the ids of instruments with unsupported structures. Totals
        are absent when no instrument could be evaluated.
    """
    breakdown: dict[str, InstrumentDebtService] = {}
    invalid: list[str] = []
    notes: list[str] = []
    totals: dict[InstrumentSource, list[Decimal]] = {
        InstrumentSource.EXISTING: [],
        InstrumentSource.PROPOSED: [],
    }

    for instrument in instruments:
        result = compute_annual_debt_service(instrument)
        breakdown[instrument.instrument_id] = result
        notes.extend(f"{instrument.instrument_id}: {note}" for note in result.notes)
        if not isinstance(result.annual_debt_service, Present):
            invalid.append(instrument.instrument_id)
            continue
        totals[instrument.source].append(result.annual_debt_service.value)

    return DebtPortfolioService(
        total_annual_debt_service=_sum_present(
            totals[InstrumentSource.EXISTING] + totals[InstrumentSource.PROPOSED]
        ),
        existing=_sum_present(totals[InstrumentSource.EXISTING]),
        proposed=_sum_present(totals[InstrumentSource.PROPOSED]),
        instrument_breakdown=breakdown,
        invalid_instruments=tuple(invalid),
        notes=tuple(notes),
    )


def align_debt_service_to_period(
    portfolio: DebtPortfolioService,
    period_type: PeriodType,
) -> AlignedDebtService:
    """Align annualized portfolio debt service with a period's cadence.

    FYE and TTM periods cover twelve months and take the annual figure as is.
    YTD periods are flagged ``INTERIM``; the annual figure is kept and no
    proration is applied.
    """
    notes = list(portfolio.notes)
    if period_type is PeriodType.FYE:
        alignment = DebtServiceAlignment.FY
    elif period_type is PeriodType.TTM:
        alignment = DebtServiceAlignment.TTM
    else:
        alignment = DebtServiceAlignment.INTERIM
        notes.append(
            "No proration applied: annualized debt service is compared against an interim period"
        )
    return AlignedDebtService(
        total_debt_service=portfolio.total_annual_debt_service,
        existing=portfolio.existing,
        proposed=portfolio.proposed,
        alignment_type=alignment,
        notes=tuple(notes),
    )


__all__ = [
    "align_debt_service_to_period",
    "compute_annual_debt_service",
    "compute_debt_portfolio_service",
    "level_payment",
]
