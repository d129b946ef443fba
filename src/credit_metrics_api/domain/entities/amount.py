# src/credit_metrics_api/domain/entities/amount.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Possibly-absent numeric values.

Purpose:
    Represent every value that may be missing as an explicit sum type,
    ``Present(value) | Absent``. A present zero and an absent value are
    different things and must never be confused: ratio evaluation, debt
    service and the snapshot validator all branch on this distinction.

Layer:
    domain/entities

Notes:
    - ``ABSENT`` is the single shared instance of :class:`Absent`.
    - Numbers are :class:`decimal.Decimal`. Inputs arriving as ``int`` or
      ``float`` are converted through ``str`` so that ``0.1`` stays ``0.1``.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any


@dataclass(frozen=True, slots=True)
class Present:
    """A known numeric value (zero included)."""

    value: Decimal


@dataclass(frozen=True, slots=True)
class Absent:
    """A value that is not known."""

    def __repr__(self) -> str:
        return "ABSENT"


ABSENT = Absent()

Amount = Present | Absent


def to_decimal(raw: Any) -> Decimal:
    """Convert an int/float/str/Decimal into a Decimal.

    Args:
        raw: Numeric value. ``bool`` is rejected.

    Returns:
        Decimal representation of ``raw``.

    Raises:
        TypeError: If ``raw`` is not numeric.
    """
    if isinstance(raw, Decimal):
        return raw
    if isinstance(raw, bool):
        raise TypeError("bool is not a numeric amount")
    if isinstance(raw, int):
        return Decimal(raw)
    if isinstance(raw, (float, str)):
        return Decimal(str(raw))
    raise TypeError(f"Unsupported numeric type: {type(raw).__name__}")


def amount_of(raw: Any) -> Amount:
    """Lift a raw optional number into an :data:`Amount`.

    ``None`` and an already-absent value map to ``ABSENT``; anything else is
    converted with :func:`to_decimal` and wrapped in :class:`Present`.
    """
    if raw is None or isinstance(raw, Absent):
        return ABSENT
    if isinstance(raw, Present):
        return raw
    return Present(to_decimal(raw))


def value_or_none(amount: Amount) -> Decimal | None:
    """Unwrap an amount for serialization boundaries (JSON ``null`` when absent)."""
    return amount.value if isinstance(amount, Present) else None


__all__ = [
    "ABSENT",
    "Absent",
    "Amount",
    "Present",
    "amount_of",
    "to_decimal",
    "value_or_none",
]
