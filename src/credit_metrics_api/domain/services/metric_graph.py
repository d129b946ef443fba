# src/credit_metrics_api/domain/services/metric_graph.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Metric graph evaluation.

Purpose:
    Evaluate a set of registry metric definitions against base values for one
    period, in dependency order, with per-metric diagnostics.

Layer:
    domain/services

Notes:
    - Pure domain logic: no logging, no metrics, no I/O.
    - Missing operands and zero denominators produce ``ABSENT`` plus a
      diagnostic; they never raise and never read as zero.
    - Only dependencies that are themselves defined metrics constrain the
      ordering; anything else is a base value.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from decimal import Decimal

from credit_metrics_api.domain.entities.amount import ABSENT, Amount, Present, amount_of
from credit_metrics_api.domain.entities.financial_period import FactGroup, FinancialPeriod
from credit_metrics_api.domain.entities.metric_definition import (
    FormulaNode,
    MetricDefinition,
    MetricRef,
    Operand,
)
from credit_metrics_api.domain.enums.credit_analysis import FormulaDiagnosticCode
from credit_metrics_api.domain.enums.metric_registry import FormulaOperation
from credit_metrics_api.domain.exceptions.metric_registry import MetricGraphCycleError


@dataclass(frozen=True)
class FormulaDiagnostic:
    """A problem found while evaluating a metric."""

    code: FormulaDiagnosticCode
    metric: str
    message: str
    operand: str | None = None


@dataclass(frozen=True)
class FormulaEvaluation:
    """Value of a single formula plus any diagnostics."""

    value: Amount
    diagnostics: tuple[FormulaDiagnostic, ...] = ()


@dataclass(frozen=True)
class MetricGraphResult:
    """Values of base facts and computed metrics, plus diagnostics."""

    values: Mapping[str, Amount] = field(default_factory=dict)
    diagnostics: tuple[FormulaDiagnostic, ...] = ()

    def value(self, key: str) -> Amount:
        return self.values.get(key, ABSENT)


def topological_sort(definitions: Sequence[MetricDefinition]) -> list[MetricDefinition]:
    """Order definitions so every metric follows the metrics it depends on.

    Ties are broken by input order, so the result is deterministic.

    Raises:
        MetricGraphCycleError: If the definitions form a dependency cycle.
    """
    by_key = {d.key: d for d in definitions}
    ordered: list[MetricDefinition] = []
    state: dict[str, str] = {}

    def visit(key: str, path: tuple[str, ...]) -> None:
        mark = state.get(key)
        if mark == "done":
            return
        if mark == "visiting":
            cycle = " -> ".join((*path, key))
            raise MetricGraphCycleError(
                f"Cycle detected in metric definitions: {cycle}",
                details={"cycle": [*path, key]},
            )
        state[key] = "visiting"
        for dep in by_key[key].depends_on:
            if dep in by_key:
                visit(dep, (*path, key))
        state[key] = "done"
        ordered.append(by_key[key])

    for definition in definitions:
        visit(definition.key, ())
    return ordered


def _operand_value(operand: Operand, values: Mapping[str, Amount]) -> Amount:
    if isinstance(operand, MetricRef):
        return values.get(operand.name, ABSENT)
    return Present(operand.value)


def _apply(op: FormulaOperation, left: Decimal, right: Decimal) -> Decimal:
    if op is FormulaOperation.ADD:
        return left + right
    if op is FormulaOperation.SUBTRACT:
        return left - right
    if op is FormulaOperation.MULTIPLY:
        return left * right
    return left / right


def evaluate_formula(
    metric_key: str,
    formula: FormulaNode,
    values: Mapping[str, Amount],
) -> FormulaEvaluation:
    """Evaluate one formula against known values.

    Args:
        metric_key: Metric being evaluated (used in diagnostics).
        formula: Structured formula.
        values: Known base and computed values by key.

    Returns:
        The value, or ``ABSENT`` with ``MISSING_DEPENDENCY`` /
        ``DIVIDE_BY_ZERO`` diagnostics.
    """
    diagnostics: list[FormulaDiagnostic] = []
    operands: list[Decimal] = []
    for operand in (formula.left, formula.right):
        amount = _operand_value(operand, values)
        if isinstance(amount, Present):
            operands.append(amount.value)
            continue
        name = operand.render()
        diagnostics.append(
            FormulaDiagnostic(
                code=FormulaDiagnosticCode.MISSING_DEPENDENCY,
                metric=metric_key,
                operand=name,
                message=f"Missing dependency {name!r} for metric {metric_key!r}",
            )
        )
    if diagnostics:
        return FormulaEvaluation(value=ABSENT, diagnostics=tuple(diagnostics))

    left, right = operands
    if formula.op is FormulaOperation.DIVIDE and right == 0:
        return FormulaEvaluation(
            value=ABSENT,
            diagnostics=(
                FormulaDiagnostic(
                    code=FormulaDiagnosticCode.DIVIDE_BY_ZERO,
                    metric=metric_key,
                    operand=formula.right.render(),
                    message=f"Division by zero evaluating {metric_key!r}: {formula.render()}",
                ),
            ),
        )
    return FormulaEvaluation(value=Present(_apply(formula.op, left, right)))


def evaluate_metric_graph(
    definitions: Sequence[MetricDefinition],
    base_values: Mapping[str, Amount | Decimal | int | float | None],
) -> MetricGraphResult:
    """Evaluate all definitions in dependency order.

    A dependency cycle does not raise here; it is reported as a single
    ``CYCLE_DETECTED`` diagnostic and no metrics are computed.

    Args:
        definitions: Metric definitions (typically one registry version).
        base_values: Base facts keyed by name; ``None`` means absent.

    Returns:
        Base values merged with computed metric values, and diagnostics.
    """
    values: dict[str, Amount] = {key: amount_of(raw) for key, raw in base_values.items()}
    try:
        ordered = topological_sort(definitions)
    except MetricGraphCycleError as exc:
        return MetricGraphResult(
            values=values,
            diagnostics=(
                FormulaDiagnostic(
                    code=FormulaDiagnosticCode.CYCLE_DETECTED,
                    metric=",".join(exc.details.get("cycle", [])),
                    message=str(exc),
                ),
            ),
        )

    diagnostics: list[FormulaDiagnostic] = []
    for definition in ordered:
        evaluation = evaluate_formula(definition.key, definition.formula, values)
        values[definition.key] = evaluation.value
        diagnostics.extend(evaluation.diagnostics)
    return MetricGraphResult(values=values, diagnostics=tuple(diagnostics))


def _upper_snake(name: str) -> str:
    out: list[str] = []
    for i, ch in enumerate(name):
        if ch.isupper() and i > 0 and not name[i - 1].isupper():
            out.append("_")
        out.append(ch.upper())
    return "".join(out)


def extract_base_values(period: FinancialPeriod) -> dict[str, Amount]:
    """Flatten a period's fact groups into registry base values.

    Fact keys are upper-snaked (``accountsReceivable`` becomes
    ``ACCOUNTS_RECEIVABLE``). When two groups carry the same key the later
    group (income, balance, cashflow order) wins, but only with a present
    value: a null never shadows a figure reported by an earlier group.
    """
    values: dict[str, Amount] = {}
    for group in (FactGroup.INCOME, FactGroup.BALANCE, FactGroup.CASHFLOW):
        facts = period.group(group)
        if not facts:
            continue
        for key in facts:
            amount = period.fact(group, key)
            name = _upper_snake(key)
            if isinstance(amount, Present) or name not in values:
                values[name] = amount
    return values


__all__ = [
    "FormulaDiagnostic",
    "FormulaEvaluation",
    "MetricGraphResult",
    "evaluate_formula",
    "evaluate_metric_graph",
    "extract_base_values",
    "topological_sort",
]
