# src/credit_metrics_api/domain/enums/metric_registry.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Metric registry enumerations.

Purpose:
    Stable identifiers for the registry governance state machine and the
    closed set of binary formula operations a registry entry may use.

Layer:
    domain

Notes:
    - Values are persisted verbatim in ``metric_registry_versions.status`` and
      inside ``definition_json``; never rename an existing value.
"""

from __future__ import annotations

from enum import Enum


class RegistryVersionStatus(str, Enum):
    """Governance status of a registry version.

    Lifecycle:
        DRAFT -> PUBLISHED -> DEPRECATED
    """

    DRAFT = "draft"
    PUBLISHED = "published"
    DEPRECATED = "deprecated"


class FormulaOperation(str, Enum):
    """Binary operations supported by structured registry formulas."""

    DIVIDE = "divide"
    MULTIPLY = "multiply"
    ADD = "add"
    SUBTRACT = "subtract"

    @property
    def symbol(self) -> str:
        """Return the infix symbol used in human-readable formula strings."""
        return _SYMBOLS[self]

    @classmethod
    def from_symbol(cls, symbol: str) -> FormulaOperation:
        """Return the operation for an infix symbol (``/``, ``*``, ``+``, ``-``).

        Raises:
            ValueError: If the symbol is not a supported operator.
        """
        for op, sym in _SYMBOLS.items():
            if sym == symbol:
                return op
        raise ValueError(f"Unsupported operator symbol: {symbol!r}")


_SYMBOLS: dict[FormulaOperation, str] = {
    FormulaOperation.DIVIDE: "/",
    FormulaOperation.MULTIPLY: "*",
    FormulaOperation.ADD: "+",
    FormulaOperation.SUBTRACT: "-",
}


__all__ = ["FormulaOperation", "RegistryVersionStatus"]
