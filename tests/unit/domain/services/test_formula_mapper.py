# tests/unit/domain/services/test_formula_mapper.py
from __future__ import annotations

from decimal import Decimal

import pytest
from factories import T0

from credit_metrics_api.domain.entities.metric_definition import MetricRef, NumericLiteral
from credit_metrics_api.domain.entities.metric_registry import RegistryEntry
from credit_metrics_api.domain.enums.metric_registry import FormulaOperation
from credit_metrics_api.domain.exceptions.metric_registry import FormulaValidationError
from credit_metrics_api.domain.services.formula_mapper import (
    definition_to_metric_def,
    is_numeric_literal,
    parse_legacy_expression,
    registry_entries_to_metric_defs,
)


def test_structured_formula_derives_dependencies_and_skips_literals() -> None:
    definition = definition_to_metric_def(
        "NOI_PCT",
        {"formula": {"type": "multiply", "left": "NOI_MARGIN", "right": 100}},
    )

    assert definition.key == "NOI_PCT"
    assert definition.formula.op is FormulaOperation.MULTIPLY
    assert definition.formula.left == MetricRef("NOI_MARGIN")
    assert definition.formula.right == NumericLiteral(Decimal("100"))
    assert definition.depends_on == ("NOI_MARGIN",)
    assert definition.formula.render() == "NOI_MARGIN * 100"


def test_explicit_depends_on_is_trusted_and_deduplicated() -> None:
    definition = definition_to_metric_def(
        "DSCR",
        {
            "formula": {"type": "divide", "left": "NOI", "right": "DEBT_SERVICE"},
            "dependsOn": ["NOI", "NOI", "ANNUAL_RENT"],
            "label": "Coverage",
            "regulatoryReference": "OCC 2023-1",
        },
    )

    assert definition.depends_on == ("NOI", "ANNUAL_RENT")
    assert definition.description == "Coverage"
    assert definition.regulatory_reference == "OCC 2023-1"


def test_structured_formula_takes_precedence_over_legacy_expr() -> None:
    definition = definition_to_metric_def(
        "X",
        {"formula": {"type": "add", "left": "A", "right": "B"}, "expr": "C / D"},
    )

    assert definition.formula.op is FormulaOperation.ADD
    assert definition.depends_on == ("A", "B")


def test_legacy_expression_is_accepted_when_no_formula() -> None:
    definition = definition_to_metric_def("MARGIN", {"expr": "EBITDA / REVENUE"})

    assert definition.formula.op is FormulaOperation.DIVIDE
    assert definition.depends_on == ("EBITDA", "REVENUE")


@pytest.mark.parametrize(
    ("expr", "op", "right"),
    [
        ("A * -1", FormulaOperation.MULTIPLY, NumericLiteral(Decimal("-1"))),
        ("A - B", FormulaOperation.SUBTRACT, MetricRef("B")),
        ("A+2.5", FormulaOperation.ADD, NumericLiteral(Decimal("2.5"))),
    ],
)
def test_parse_legacy_expression(expr: str, op: FormulaOperation, right: object) -> None:
    node = parse_legacy_expression("K", expr)

    assert node.op is op
    assert node.left == MetricRef("A")
    assert node.right == right


@pytest.mark.parametrize("expr", ["A / B / C", "A", "/ B", "A B", "A % B"])
def test_parse_legacy_expression_rejects_malformed_text(expr: str) -> None:
    with pytest.raises(FormulaValidationError):
        parse_legacy_expression("K", expr)


@pytest.mark.parametrize(
    "definition",
    [
        {},
        {"expr": "   "},
        {"formula": {"type": "modulo", "left": "A", "right": "B"}},
        {"formula": {"type": "divide", "left": "A"}},
        {"formula": {"type": "divide", "left": True, "right": "B"}},
        {"formula": "A / B"},
        {"formula": {"type": "divide", "left": "A", "right": "B"}, "dependsOn": "A"},
    ],
)
def test_invalid_definitions_raise_validation_error(definition: dict) -> None:
    with pytest.raises(FormulaValidationError) as excinfo:
        definition_to_metric_def("BROKEN", definition)

    assert excinfo.value.code == "invalid_formula"
    assert excinfo.value.details["metric_key"] == "BROKEN"


def test_registry_entries_map_in_order() -> None:
    entries = [
        RegistryEntry(
            id=f"e{i}",
            registry_version_id="ver-1",
            metric_key=key,
            definition_json={"expr": expr},
            definition_hash="h",
            created_at=T0,
        )
        for i, (key, expr) in enumerate([("B", "X + Y"), ("A", "B * 2")])
    ]

    definitions = registry_entries_to_metric_defs(entries)

    assert [d.key for d in definitions] == ["B", "A"]
    assert registry_entries_to_metric_defs([]) == []


def test_is_numeric_literal() -> None:
    assert is_numeric_literal("100")
    assert is_numeric_literal("-0.5")
    assert not is_numeric_literal("NOI")
    assert not is_numeric_literal("1e5")
