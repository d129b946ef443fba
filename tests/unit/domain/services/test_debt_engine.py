# tests/unit/domain/services/test_debt_engine.py
"""Unit tests for instrument amortization and portfolio aggregation."""

from __future__ import annotations

from decimal import Decimal

import pytest

from credit_metrics_api.domain.entities.amount import ABSENT, Present
from credit_metrics_api.domain.entities.debt_instrument import DebtInstrument
from credit_metrics_api.domain.enums.credit_analysis import (
    DebtServiceAlignment,
    InstrumentSource,
    PaymentFrequency,
    PeriodType,
)
from credit_metrics_api.domain.services.debt_engine import (
    align_debt_service_to_period,
    compute_annual_debt_service,
    compute_debt_portfolio_service,
    level_payment,
)


def _loan(
    instrument_id: str = "L1",
    *,
    source: InstrumentSource = InstrumentSource.EXISTING,
    principal: str = "1200000",
    rate: str = "0",
    months: int = 120,
    frequency: PaymentFrequency = PaymentFrequency.MONTHLY,
    **kwargs: object,
) -> DebtInstrument:
    return DebtInstrument(
        instrument_id=instrument_id,
        source=source,
        principal=Decimal(principal),
        rate=Decimal(rate),
        amortization_months=months,
        payment_frequency=frequency,
        **kwargs,  # type: ignore[arg-type]
    )


def test_zero_rate_amortizes_straight_line() -> None:
    result = compute_annual_debt_service(_loan())

    assert result.annual_debt_service == Present(Decimal("120000.00"))
    assert result.periodic_payment == Present(Decimal("10000.00"))
    assert result.interest == Present(Decimal("0.00"))
    assert result.principal == Present(Decimal("120000.00"))


def test_annual_payment_single_period_loan() -> None:
    result = compute_annual_debt_service(
        _loan(principal="1000", rate="0.10", months=12, frequency=PaymentFrequency.ANNUAL)
    )

    assert result.annual_debt_service == Present(Decimal("1100.00"))
    assert result.interest == Present(Decimal("100.00"))
    assert result.principal == Present(Decimal("1000.00"))


def test_monthly_level_payment_matches_annuity_formula() -> None:
    payment = level_payment(Decimal("100000"), Decimal("0.06") / 12, 360)

    assert payment.quantize(Decimal("0.01")) == Decimal("599.55")


@pytest.mark.parametrize(
    ("kwargs", "reason"),
    [
        ({"principal": "-1"}, "negative_principal"),
        ({"rate": "-0.01"}, "negative_rate"),
        ({"months": 0}, "non_positive_amortization"),
        (
            {"months": 6, "frequency": PaymentFrequency.ANNUAL},
            "amortization_shorter_than_payment_period",
        ),
    ],
)
def test_unsupported_structures_are_absent(kwargs: dict, reason: str) -> None:
    result = compute_annual_debt_service(_loan(**kwargs))

    assert result.annual_debt_service is ABSENT
    assert result.unsupported_structure == reason


def test_interest_only_and_balloon_add_notes() -> None:
    result = compute_annual_debt_service(
        _loan(rate="0.05", interest_only_months=12, term_months=60)
    )

    assert isinstance(result.annual_debt_service, Present)
    assert any("IO period of 12 months" in note for note in result.notes)
    assert any("Balloon" in note for note in result.notes)


def test_interest_only_split_matches_first_amortizing_year() -> None:
    io_loan = compute_annual_debt_service(_loan(rate="0.06", interest_only_months=24))
    amortizing = compute_annual_debt_service(_loan(rate="0.06"))

    assert io_loan.annual_debt_service == amortizing.annual_debt_service
    assert io_loan.principal == amortizing.principal
    assert io_loan.interest == amortizing.interest
    assert isinstance(io_loan.principal, Present)
    assert io_loan.principal.value > 0
    assert any("principal/interest split" in note for note in io_loan.notes)


def test_portfolio_splits_existing_and_proposed_and_skips_invalid() -> None:
    portfolio = compute_debt_portfolio_service(
        [
            _loan("E1"),
            _loan("P1", source=InstrumentSource.PROPOSED, principal="600000", months=60),
            _loan("BAD", principal="-5"),
        ]
    )

    assert portfolio.existing == Present(Decimal("120000.00"))
    assert portfolio.proposed == Present(Decimal("120000.00"))
    assert portfolio.total_annual_debt_service == Present(Decimal("240000.00"))
    assert portfolio.invalid_instruments == ("BAD",)
    assert set(portfolio.instrument_breakdown) == {"E1", "P1", "BAD"}


def test_empty_portfolio_is_absent() -> None:
    portfolio = compute_debt_portfolio_service([])

    assert portfolio.total_annual_debt_service is ABSENT
    assert portfolio.existing is ABSENT
    assert portfolio.proposed is ABSENT


@pytest.mark.parametrize(
    ("period_type", "alignment", "prorated_note"),
    [
        (PeriodType.FYE, DebtServiceAlignment.FY, False),
        (PeriodType.TTM, DebtServiceAlignment.TTM, False),
        (PeriodType.YTD, DebtServiceAlignment.INTERIM, True),
    ],
)
def test_alignment_keeps_annual_figure(
    period_type: PeriodType, alignment: DebtServiceAlignment, prorated_note: bool
) -> None:
    portfolio = compute_debt_portfolio_service([_loan()])

    aligned = align_debt_service_to_period(portfolio, period_type)

    assert aligned.alignment_type is alignment
    assert aligned.total_debt_service == Present(Decimal("120000.00"))
    assert any(n.startswith("No proration applied") for n in aligned.notes) is prorated_note
