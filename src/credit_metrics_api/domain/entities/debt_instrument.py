# src/credit_metrics_api/domain/entities/debt_instrument.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Debt instruments and their computed service.

Purpose:
    Input records supplied by the debt-instrument portfolio engine and the
    results of annualizing their scheduled payments.

Layer:
    domain/entities
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal

from credit_metrics_api.domain.entities.amount import ABSENT, Amount
from credit_metrics_api.domain.enums.credit_analysis import (
    DebtServiceAlignment,
    InstrumentSource,
    PaymentFrequency,
)


@dataclass(frozen=True)
class DebtInstrument:
    """A single loan or facility.

    Attributes:
        instrument_id: Stable identifier.
        source: Existing or proposed debt.
        principal: Outstanding principal.
        rate: Annual nominal interest rate as a fraction (``0.065`` = 6.5%).
        amortization_months: Full amortization schedule length in months.
        payment_frequency: Payment cadence.
        interest_only_months: Leading interest-only months, if any.
        term_months: Contractual term; shorter than amortization implies a balloon.
        balloon: Explicit balloon flag.
    """

    instrument_id: str
    source: InstrumentSource
    principal: Decimal
    rate: Decimal
    amortization_months: int
    payment_frequency: PaymentFrequency = PaymentFrequency.MONTHLY
    interest_only_months: int = 0
    term_months: int | None = None
    balloon: bool = False

    @property
    def has_balloon(self) -> bool:
        """Return True when a balloon payment is due at maturity."""
        if self.balloon:
            return True
        return self.term_months is not None and self.term_months < self.amortization_months


@dataclass(frozen=True)
class InstrumentDebtService:
    """Annual debt service of one instrument.

    ``annual_debt_service`` is absent when the structure is unsupported; the
    first-year split into principal and interest is absent likewise.
    """

    instrument_id: str
    source: InstrumentSource
    annual_debt_service: Amount = ABSENT
    principal: Amount = ABSENT
    interest: Amount = ABSENT
    periodic_payment: Amount = ABSENT
    unsupported_structure: str | None = None
    notes: tuple[str, ...] = ()


@dataclass(frozen=True)
class DebtPortfolioService:
    """Annual debt service aggregated over a portfolio."""

    total_annual_debt_service: Amount
    existing: Amount
    proposed: Amount
    instrument_breakdown: Mapping[str, InstrumentDebtService] = field(default_factory=dict)
    invalid_instruments: tuple[str, ...] = ()
    notes: tuple[str, ...] = ()


@dataclass(frozen=True)
class AlignedDebtService:
    """Portfolio debt service aligned to a period's cadence."""

    total_debt_service: Amount
    existing: Amount
    proposed: Amount
    alignment_type: DebtServiceAlignment
    notes: tuple[str, ...] = ()


__all__ = [
    "AlignedDebtService",
    "DebtInstrument",
    "DebtPortfolioService",
    "InstrumentDebtService",
]
