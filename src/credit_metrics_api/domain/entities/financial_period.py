# src/credit_metrics_api/domain/entities/financial_period.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Financial periods supplied by the upstream financial-model builder.

Purpose:
    Carry one reporting window of borrower facts, grouped into optional
    income, balance and cashflow groups, plus the collection of periods that
    makes up a deal's financial model.

Layer:
    domain/entities

Notes:
    - Fact keys are the upstream producer's identifiers (``interest``,
      ``accountsReceivable``, ``ebitda`` ...). A key that is not present in
      its group is absent; it is never read as zero.
    - A whole group may be missing (``None``).
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum

from credit_metrics_api.domain.entities.amount import ABSENT, Amount, amount_of
from credit_metrics_api.domain.enums.credit_analysis import PeriodType


class FactGroup(str, Enum):
    """Fact groups carried by a financial period."""

    INCOME = "income"
    BALANCE = "balance"
    CASHFLOW = "cashflow"


@dataclass(frozen=True)
class FinancialPeriod:
    """A discrete financial reporting window.

    Attributes:
        period_id: Stable identifier assigned upstream (e.g. ``"p-fye-2024"``).
        period_end: Last day covered by the period.
        period_type: Reporting window type.
        income: Income-statement facts, if any.
        balance: Balance-sheet facts, if any.
        cashflow: Cash-flow facts, if any.
        quality_flags: Upstream data-quality flags (informational).
    """

    period_id: str
    period_end: date
    period_type: PeriodType
    income: Mapping[str, Decimal] | None = None
    balance: Mapping[str, Decimal] | None = None
    cashflow: Mapping[str, Decimal] | None = None
    quality_flags: tuple[str, ...] = ()

    def group(self, group: FactGroup) -> Mapping[str, Decimal] | None:
        """Return the raw fact mapping for ``group``."""
        if group is FactGroup.INCOME:
            return self.income
        if group is FactGroup.BALANCE:
            return self.balance
        return self.cashflow

    def fact(self, group: FactGroup, key: str) -> Amount:
        """Return a single fact as an :data:`Amount`.

        Args:
            group: Fact group to read from.
            key: Fact key inside the group.

        Returns:
            ``Present(value)`` with the value converted to Decimal when the group
            exists and holds a non-null value for ``key``; ``ABSENT`` otherwise.
        """
        facts = self.group(group)
        if facts is None:
            return ABSENT
        return amount_of(facts.get(key))


@dataclass(frozen=True)
class FinancialModel:
    """All periods produced for a deal by the financial-model builder."""

    deal_id: str
    periods: Sequence[FinancialPeriod] = field(default_factory=tuple)

    def find_period(self, period_id: str) -> FinancialPeriod | None:
        """Return the period with ``period_id`` or ``None``."""
        return find_period(self.periods, period_id)


def find_period(periods: Sequence[FinancialPeriod], period_id: str) -> FinancialPeriod | None:
    """Return the first period whose id matches ``period_id`` exactly."""
    for period in periods:
        if period.period_id == period_id:
            return period
    return None


__all__ = ["FactGroup", "FinancialModel", "FinancialPeriod", "find_period"]
