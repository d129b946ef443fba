# src/credit_metrics_api/domain/services/safe_arithmetic.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Null-safe arithmetic primitives.

Purpose:
    Sum, subtract and divide possibly-absent amounts while recording exactly
    which named inputs were absent and whether a denominator was zero.

Layer:
    domain/services

Notes:
    - Absent never reads as zero.
    - A zero denominator with both operands present yields an absent value
      flagged ``divide_by_zero``; it is not an exception.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal

from credit_metrics_api.domain.entities.amount import ABSENT, Amount, Present
from credit_metrics_api.domain.entities.credit_metrics import MetricDiagnostics, MetricResult


@dataclass(frozen=True)
class SafeSum:
    """Result of :func:`safe_sum`."""

    value: Amount
    missing: tuple[str, ...] = ()


def safe_sum(named: Mapping[str, Amount]) -> SafeSum:
    """Sum named components when every one is present.

    Args:
        named: Components keyed by input name, in reporting order.

    Returns:
        The total, or ``ABSENT`` with the names of the absent components.
    """
    missing = tuple(name for name, amount in named.items() if not isinstance(amount, Present))
    if missing:
        return SafeSum(value=ABSENT, missing=missing)
    values = (amount.value for amount in named.values() if isinstance(amount, Present))
    total = sum(values, Decimal(0))
    return SafeSum(value=Present(total))


def _missing_result(
    missing: tuple[str, ...],
    audit_inputs: Mapping[str, Amount],
    formula_label: str,
) -> MetricResult:
    return MetricResult(
        value=ABSENT,
        inputs=dict(audit_inputs),
        formula=formula_label,
        diagnostics=MetricDiagnostics(missing_inputs=missing),
    )


def safe_divide(
    num_name: str,
    num: Amount,
    den_name: str,
    den: Amount,
    audit_inputs: Mapping[str, Amount],
    formula_label: str,
) -> MetricResult:
    """Divide two possibly-absent amounts.

    Args:
        num_name: Name reported when the numerator is absent.
        num: Numerator.
        den_name: Name reported when the denominator is absent.
        den: Denominator.
        audit_inputs: Full named-input snapshot recorded on the result.
        formula_label: Human-readable formula string.

    Returns:
        ``num / den``; otherwise ``ABSENT`` with ``missing_inputs`` naming
        exactly the absent operand(s), or with ``divide_by_zero`` set.
    """
    missing = tuple(
        name
        for name, amount in ((num_name, num), (den_name, den))
        if not isinstance(amount, Present)
    )
    if missing or not isinstance(num, Present) or not isinstance(den, Present):
        return _missing_result(missing, audit_inputs, formula_label)
    if den.value == 0:
        return MetricResult(
            value=ABSENT,
            inputs=dict(audit_inputs),
            formula=formula_label,
            diagnostics=MetricDiagnostics(divide_by_zero=True),
        )
    return MetricResult(
        value=Present(num.value / den.value),
        inputs=dict(audit_inputs),
        formula=formula_label,
    )


def safe_subtract(
    left_name: str,
    left: Amount,
    right_name: str,
    right: Amount,
    audit_inputs: Mapping[str, Amount],
    formula_label: str,
) -> MetricResult:
    """Subtract ``right`` from ``left``; absent only if either term is absent."""
    missing = tuple(
        name
        for name, amount in ((left_name, left), (right_name, right))
        if not isinstance(amount, Present)
    )
    if missing or not isinstance(left, Present) or not isinstance(right, Present):
        return _missing_result(missing, audit_inputs, formula_label)
    return MetricResult(
        value=Present(left.value - right.value),
        inputs=dict(audit_inputs),
        formula=formula_label,
    )


__all__ = ["SafeSum", "safe_divide", "safe_subtract", "safe_sum"]
