# src/credit_metrics_api/domain/services/formula_mapper.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Registry entry to metric definition mapping.

Purpose:
    Convert raw registry entries (loosely-typed ``definition_json``) into
    validated :class:`MetricDefinition` objects carrying a structured formula
    and an ordered dependency list.

Layer:
    domain/services

Design:
    Dependency precedence, applied exactly and without nested inference:

        1. An explicit ``dependsOn`` array on the definition is authoritative,
           even when it names keys beyond the formula's operands.
        2. Otherwise every formula operand that is not a numeric literal
           (``-?digits(.digits)?``) is a dependency.
        3. Without a structured ``formula``, the legacy ``expr`` text is parsed
           into one, then rule 2 applies.

    The legacy parser is deprecated and deliberately narrow: exactly one
    binary operator between two operands. It is not an expression language.

    The returned ``key`` always equals ``entry.metric_key`` verbatim.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping, Sequence
from decimal import Decimal
from typing import Any

from credit_metrics_api.domain.entities.metric_definition import (
    FormulaNode,
    MetricDefinition,
    MetricRef,
    NumericLiteral,
    Operand,
)
from credit_metrics_api.domain.entities.metric_registry import RegistryEntry
from credit_metrics_api.domain.enums.metric_registry import FormulaOperation
from credit_metrics_api.domain.exceptions.metric_registry import FormulaValidationError

NUMERIC_LITERAL_RE = re.compile(r"^-?\d+(\.\d+)?$")

_TOKEN_RE = re.compile(
    r"\s*(?:"
    r"(?P<number>\d+(?:\.\d+)?)"
    r"|(?P<name>[A-Za-z_][A-Za-z0-9_.]*)"
    r"|(?P<op>[-+*/]))"
)


def is_numeric_literal(raw: str) -> bool:
    """Return True if ``raw`` is a numeric literal such as ``"100"`` or ``"-0.5"``."""
    return NUMERIC_LITERAL_RE.match(raw) is not None


def _dedupe(names: Iterable[str]) -> tuple[str, ...]:
    seen: dict[str, None] = {}
    for name in names:
        seen.setdefault(name, None)
    return tuple(seen)


# --------------------------------------------------------------------------- #
# Structured formula parsing                                                  #
# --------------------------------------------------------------------------- #


def _parse_operand(metric_key: str, raw: Any) -> Operand:
    if isinstance(raw, bool):
        raise FormulaValidationError(metric_key, "boolean operands are not supported")
    if isinstance(raw, (int, float, Decimal)):
        return NumericLiteral(Decimal(str(raw)))
    if isinstance(raw, str) and raw.strip():
        text = raw.strip()
        if is_numeric_literal(text):
            return NumericLiteral(Decimal(text))
        return MetricRef(text)
    raise FormulaValidationError(metric_key, f"operand must be a metric key or number, got {raw!r}")


def parse_structured_formula(metric_key: str, raw: Any) -> FormulaNode:
    """Validate a structured formula object.

    Args:
        metric_key: Metric key used in error messages.
        raw: Mapping of the form ``{"type": "divide", "left": ..., "right": ...}``.

    Returns:
        The validated formula node.

    Raises:
        FormulaValidationError: If the operation or an operand is invalid.
    """
    if not isinstance(raw, Mapping):
        raise FormulaValidationError(metric_key, "formula must be an object")
    op_raw = raw.get("type")
    try:
        op = FormulaOperation(op_raw)
    except ValueError as exc:
        raise FormulaValidationError(metric_key, f"unsupported operation {op_raw!r}") from exc
    if "left" not in raw or "right" not in raw:
        raise FormulaValidationError(metric_key, "formula requires left and right operands")
    return FormulaNode(
        op=op,
        left=_parse_operand(metric_key, raw["left"]),
        right=_parse_operand(metric_key, raw["right"]),
    )


# --------------------------------------------------------------------------- #
# Legacy textual expressions (deprecated)                                     #
# --------------------------------------------------------------------------- #


def _tokenize(metric_key: str, expr: str) -> list[tuple[str, str]]:
    tokens: list[tuple[str, str]] = []
    pos = 0
    text = expr.rstrip()
    while pos < len(text):
        match = _TOKEN_RE.match(text, pos)
        if match is None or match.end() == pos:
            raise FormulaValidationError(metric_key, f"cannot parse legacy expression {expr!r}")
        kind = match.lastgroup or ""
        tokens.append((kind, match.group(kind)))
        pos = match.end()
    return tokens


def parse_legacy_expression(metric_key: str, expr: str) -> FormulaNode:
    """Parse a single-operator expression such as ``"A / B"``.

    Numeric operands may carry a leading minus (``"A * -1"``).

    Args:
        metric_key: Metric key used in error messages.
        expr: Legacy expression text.

    Returns:
        Equivalent structured formula.

    Raises:
        FormulaValidationError: If the text is not exactly
            ``operand operator operand``.
    """
    tokens = _tokenize(metric_key, expr)
    operands: list[Operand] = []
    ops: list[str] = []
    i = 0
    while i < len(tokens):
        kind, value = tokens[i]
        expecting_operand = len(operands) == len(ops)
        if expecting_operand:
            next_is_number = i + 1 < len(tokens) and tokens[i + 1][0] == "number"
            if kind == "op" and value == "-" and next_is_number:
                operands.append(NumericLiteral(Decimal("-" + tokens[i + 1][1])))
                i += 2
                continue
            if kind == "number":
                operands.append(NumericLiteral(Decimal(value)))
            elif kind == "name":
                operands.append(MetricRef(value))
            else:
                raise FormulaValidationError(metric_key, f"unexpected operator in {expr!r}")
        else:
            if kind != "op":
                raise FormulaValidationError(metric_key, f"missing operator in {expr!r}")
            ops.append(value)
        i += 1

    if len(ops) != 1 or len(operands) != 2:
        raise FormulaValidationError(
            metric_key, f"legacy expression must have exactly one operator: {expr!r}"
        )
    return FormulaNode(
        op=FormulaOperation.from_symbol(ops[0]),
        left=operands[0],
        right=operands[1],
    )


# --------------------------------------------------------------------------- #
# Dependencies and mapping                                                    #
# --------------------------------------------------------------------------- #


def extract_dependencies(formula: FormulaNode) -> tuple[str, ...]:
    """Return the non-literal operands of ``formula`` in left-right order."""
    names = [op.name for op in (formula.left, formula.right) if isinstance(op, MetricRef)]
    return _dedupe(names)


def _explicit_depends_on(metric_key: str, raw: Any) -> tuple[str, ...] | None:
    if raw is None:
        return None
    if not isinstance(raw, Sequence) or isinstance(raw, str):
        raise FormulaValidationError(metric_key, "dependsOn must be an array of metric keys")
    if not all(isinstance(name, str) for name in raw):
        raise FormulaValidationError(metric_key, "dependsOn must contain only strings")
    return _dedupe(raw)


def definition_to_metric_def(metric_key: str, definition: Mapping[str, Any]) -> MetricDefinition:
    """Map a raw definition object to a :class:`MetricDefinition`.

    Args:
        metric_key: Key the definition is registered under.
        definition: Raw ``definition_json``.

    Returns:
        Validated metric definition whose ``key`` is ``metric_key``.

    Raises:
        FormulaValidationError: If neither a structured formula nor a legacy
            expression is present, or either is malformed.
    """
    raw_formula = definition.get("formula")
    legacy = definition.get("expr")
    if raw_formula is not None:
        formula = parse_structured_formula(metric_key, raw_formula)
    elif isinstance(legacy, str) and legacy.strip():
        formula = parse_legacy_expression(metric_key, legacy)
    else:
        raise FormulaValidationError(metric_key, "entry has neither a formula nor an expression")

    depends_on = _explicit_depends_on(metric_key, definition.get("dependsOn"))
    if depends_on is None:
        depends_on = extract_dependencies(formula)

    description = definition.get("description") or definition.get("label")
    return MetricDefinition(
        key=metric_key,
        depends_on=depends_on,
        formula=formula,
        description=str(description) if description is not None else None,
        regulatory_reference=definition.get("regulatoryReference"),
    )


def registry_entry_to_metric_def(entry: RegistryEntry) -> MetricDefinition:
    """Map one registry entry to its metric definition."""
    return definition_to_metric_def(entry.metric_key, entry.definition_json)


def registry_entries_to_metric_defs(entries: Iterable[RegistryEntry]) -> list[MetricDefinition]:
    """Map entries in order. An empty input yields an empty list."""
    return [registry_entry_to_metric_def(entry) for entry in entries]


__all__ = [
    "NUMERIC_LITERAL_RE",
    "definition_to_metric_def",
    "extract_dependencies",
    "is_numeric_literal",
    "parse_legacy_expression",
    "parse_structured_formula",
    "registry_entries_to_metric_defs",
    "registry_entry_to_metric_def",
]
