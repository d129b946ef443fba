# tests/unit/domain/services/test_safe_arithmetic.py
from __future__ import annotations

from decimal import Decimal

from credit_metrics_api.domain.entities.amount import ABSENT, Present
from credit_metrics_api.domain.services.safe_arithmetic import (
    safe_divide,
    safe_subtract,
    safe_sum,
)

TEN = Present(Decimal("10"))
ZERO = Present(Decimal("0"))


def test_safe_sum_names_every_absent_component() -> None:
    result = safe_sum({"cash": TEN, "accountsReceivable": ABSENT, "inventory": ABSENT})

    assert result.value is ABSENT
    assert result.missing == ("accountsReceivable", "inventory")


def test_safe_sum_counts_zero_as_present() -> None:
    assert safe_sum({"a": TEN, "b": ZERO}).value == Present(Decimal("10"))


def test_safe_divide_success_records_inputs_and_formula() -> None:
    result = safe_divide("num", TEN, "den", Present(Decimal("4")), {"num": TEN}, "num / den")

    assert result.value == Present(Decimal("2.5"))
    assert result.formula == "num / den"
    assert result.inputs == {"num": TEN}
    assert result.diagnostics is None


def test_safe_divide_missing_names_only_absent_operands() -> None:
    result = safe_divide("num", ABSENT, "den", TEN, {}, "f")

    assert result.value is ABSENT
    assert result.diagnostics is not None
    assert result.diagnostics.missing_inputs == ("num",)
    assert result.diagnostics.divide_by_zero is False


def test_safe_divide_zero_denominator_sets_flag() -> None:
    result = safe_divide("num", TEN, "den", ZERO, {}, "f")

    assert result.value is ABSENT
    assert result.diagnostics is not None
    assert result.diagnostics.divide_by_zero is True
    assert result.diagnostics.missing_inputs == ()


def test_safe_subtract() -> None:
    assert safe_subtract("a", TEN, "b", Present(Decimal("3")), {}, "a - b").value == Present(
        Decimal("7")
    )
    missing = safe_subtract("a", TEN, "b", ABSENT, {}, "a - b")
    assert missing.value is ABSENT
    assert missing.diagnostics is not None
    assert missing.diagnostics.missing_inputs == ("b",)
