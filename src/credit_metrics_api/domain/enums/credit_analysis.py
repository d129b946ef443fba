# src/credit_metrics_api/domain/enums/credit_analysis.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Credit analysis enumerations.

Purpose:
    Define the stable identifiers used by the evaluation path: period
    types and selection strategies, the seven canonical credit ratios,
    debt-service sources and instrument attributes, business models used by
    the snapshot validator, and diagnostic codes.

Layer:
    domain

Notes:
    - Values are string identifiers suitable for JSON and external contracts.
    - Ratio identifiers are camelCase because downstream memo builders key
      their citation tables on them.
"""

from __future__ import annotations

from enum import Enum


class PeriodType(str, Enum):
    """Reporting window of a financial period."""

    FYE = "FYE"
    TTM = "TTM"
    YTD = "YTD"


class PeriodSelectionStrategy(str, Enum):
    """Strategy used to pick the analysis period from a candidate set."""

    LATEST_FY = "LATEST_FY"
    LATEST_TTM = "LATEST_TTM"
    LATEST_AVAILABLE = "LATEST_AVAILABLE"
    EXPLICIT = "EXPLICIT"


class CreditRatio(str, Enum):
    """The seven canonical credit ratios."""

    DSCR = "dscr"
    LEVERAGE_DEBT_TO_EBITDA = "leverageDebtToEbitda"
    CURRENT_RATIO = "currentRatio"
    QUICK_RATIO = "quickRatio"
    WORKING_CAPITAL = "workingCapital"
    EBITDA_MARGIN = "ebitdaMargin"
    NET_MARGIN = "netMargin"


class DebtServiceSource(str, Enum):
    """Where a harmonized debt-service figure came from."""

    INCOME_INTEREST = "income.interest"
    DEBT_ENGINE = "debtEngine"


class InstrumentSource(str, Enum):
    """Whether an instrument is already on the books or proposed."""

    EXISTING = "existing"
    PROPOSED = "proposed"


class PaymentFrequency(str, Enum):
    """Scheduled payment cadence of a debt instrument."""

    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    ANNUAL = "annual"

    @property
    def payments_per_year(self) -> int:
        """Return the number of scheduled payments in a year."""
        return {"monthly": 12, "quarterly": 4, "annual": 1}[self.value]

    @property
    def months_per_payment(self) -> int:
        """Return the number of months covered by one payment."""
        return 12 // self.payments_per_year


class DebtServiceAlignment(str, Enum):
    """How an annualized debt service figure maps onto a period's cadence."""

    FY = "FY"
    TTM = "TTM"
    INTERIM = "INTERIM"


class BusinessModel(str, Enum):
    """Declared or inferred business model of a borrower."""

    REAL_ESTATE = "REAL_ESTATE"
    OPERATING_COMPANY = "OPERATING_COMPANY"
    MIXED = "MIXED"


class SnapshotIssueKind(str, Enum):
    """Issue categories raised by the pre-render snapshot validator."""

    MISSING = "missing"
    NAN = "nan"
    INFINITE = "infinite"
    DIVIDE_BY_ZERO = "divide_by_zero"


class FormulaDiagnosticCode(str, Enum):
    """Diagnostic codes emitted by metric graph evaluation."""

    MISSING_DEPENDENCY = "MISSING_DEPENDENCY"
    DIVIDE_BY_ZERO = "DIVIDE_BY_ZERO"
    CYCLE_DETECTED = "CYCLE_DETECTED"


__all__ = [
    "BusinessModel",
    "CreditRatio",
    "DebtServiceAlignment",
    "DebtServiceSource",
    "FormulaDiagnosticCode",
    "InstrumentSource",
    "PaymentFrequency",
    "PeriodSelectionStrategy",
    "PeriodType",
    "SnapshotIssueKind",
]
