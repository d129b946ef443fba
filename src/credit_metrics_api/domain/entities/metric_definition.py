# src/credit_metrics_api/domain/entities/metric_definition.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Typed metric definitions.

Purpose:
    Closed tagged union for registry formulas: a binary operation over two
    operand slots, where each operand is either a reference to another metric
    or a numeric literal. Definitions are validated once, at the mapping
    boundary, so evaluators never re-examine untyped JSON.

Layer:
    domain/entities
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from credit_metrics_api.domain.enums.metric_registry import FormulaOperation


@dataclass(frozen=True)
class MetricRef:
    """Reference to another metric or base fact by key."""

    name: str

    def render(self) -> str:
        return self.name


@dataclass(frozen=True)
class NumericLiteral:
    """A constant operand such as ``100`` or ``-0.5``."""

    value: Decimal

    def render(self) -> str:
        return format(self.value, "f")


Operand = MetricRef | NumericLiteral


@dataclass(frozen=True)
class FormulaNode:
    """Binary formula ``left <op> right``."""

    op: FormulaOperation
    left: Operand
    right: Operand

    def render(self) -> str:
        """Return the human-readable infix form (e.g. ``"A / B"``)."""
        return f"{self.left.render()} {self.op.symbol} {self.right.render()}"


@dataclass(frozen=True)
class MetricDefinition:
    """Validated form of a registry entry.

    Attributes:
        key: Metric key; always identical to the entry's ``metric_key``.
        depends_on: Ordered, de-duplicated dependency keys.
        formula: Structured binary formula.
        description: Optional human description.
        regulatory_reference: Optional citation of the governing rule.
    """

    key: str
    depends_on: tuple[str, ...]
    formula: FormulaNode
    description: str | None = None
    regulatory_reference: str | None = None


__all__ = ["FormulaNode", "MetricDefinition", "MetricRef", "NumericLiteral", "Operand"]
