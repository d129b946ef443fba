# tests/unit/domain/services/test_metric_graph.py
from __future__ import annotations

from decimal import Decimal

import pytest
from factories import make_period

from credit_metrics_api.domain.entities.amount import ABSENT, Present
from credit_metrics_api.domain.enums.credit_analysis import FormulaDiagnosticCode
from credit_metrics_api.domain.exceptions.metric_registry import MetricGraphCycleError
from credit_metrics_api.domain.services.formula_mapper import definition_to_metric_def
from credit_metrics_api.domain.services.metric_graph import (
    evaluate_formula,
    evaluate_metric_graph,
    extract_base_values,
    topological_sort,
)


def _def(key: str, kind: str, left: object, right: object):
    return definition_to_metric_def(key, {"formula": {"type": kind, "left": left, "right": right}})


def test_topological_sort_orders_dependencies_first() -> None:
    margin_pct = _def("MARGIN_PCT", "multiply", "MARGIN", 100)
    margin = _def("MARGIN", "divide", "EBITDA", "REVENUE")

    ordered = topological_sort([margin_pct, margin])

    assert [d.key for d in ordered] == ["MARGIN", "MARGIN_PCT"]


def test_topological_sort_reports_cycle_path() -> None:
    a = _def("A", "add", "B", 1)
    b = _def("B", "add", "A", 1)

    with pytest.raises(MetricGraphCycleError) as excinfo:
        topological_sort([a, b])

    assert excinfo.value.details["cycle"] == ["A", "B", "A"]


def test_evaluate_metric_graph_chains_computed_values() -> None:
    definitions = [
        _def("MARGIN_PCT", "multiply", "MARGIN", 100),
        _def("MARGIN", "divide", "EBITDA", "REVENUE"),
    ]

    result = evaluate_metric_graph(
        definitions, {"EBITDA": Decimal("250"), "REVENUE": Decimal("1000")}
    )

    assert result.value("MARGIN") == Present(Decimal("0.25"))
    assert result.value("MARGIN_PCT") == Present(Decimal("25"))
    assert result.diagnostics == ()


def test_missing_dependency_propagates_as_absent_not_zero() -> None:
    definitions = [
        _def("MARGIN", "divide", "EBITDA", "REVENUE"),
        _def("MARGIN_PCT", "multiply", "MARGIN", 100),
    ]

    result = evaluate_metric_graph(definitions, {"EBITDA": None, "REVENUE": Decimal("1000")})

    assert result.value("MARGIN") is ABSENT
    assert result.value("MARGIN_PCT") is ABSENT
    codes = [(d.code, d.metric, d.operand) for d in result.diagnostics]
    assert codes == [
        (FormulaDiagnosticCode.MISSING_DEPENDENCY, "MARGIN", "EBITDA"),
        (FormulaDiagnosticCode.MISSING_DEPENDENCY, "MARGIN_PCT", "MARGIN"),
    ]


def test_divide_by_zero_is_a_diagnostic() -> None:
    formula = _def("DSCR", "divide", "NOI", "DEBT_SERVICE").formula

    evaluation = evaluate_formula(
        "DSCR", formula, {"NOI": Present(Decimal("10")), "DEBT_SERVICE": Present(Decimal("0"))}
    )

    assert evaluation.value is ABSENT
    assert evaluation.diagnostics[0].code is FormulaDiagnosticCode.DIVIDE_BY_ZERO
    assert evaluation.diagnostics[0].operand == "DEBT_SERVICE"


def test_cycle_is_reported_without_computing() -> None:
    result = evaluate_metric_graph(
        [_def("A", "add", "B", 1), _def("B", "add", "A", 1)], {"X": Decimal("1")}
    )

    assert [d.code for d in result.diagnostics] == [FormulaDiagnosticCode.CYCLE_DETECTED]
    assert result.value("A") is ABSENT
    assert result.value("X") == Present(Decimal("1"))


def test_extract_base_values_upper_snakes_fact_keys() -> None:
    period = make_period(
        income={"revenue": Decimal("100"), "netIncome": Decimal("10")},
        balance={"accountsReceivable": Decimal("5")},
        cashflow={"ebitda": Decimal("20")},
    )

    values = extract_base_values(period)

    assert values == {
        "REVENUE": Present(Decimal("100")),
        "NET_INCOME": Present(Decimal("10")),
        "ACCOUNTS_RECEIVABLE": Present(Decimal("5")),
        "EBITDA": Present(Decimal("20")),
    }


def test_extract_base_values_null_does_not_shadow_earlier_group() -> None:
    period = make_period(
        income={"ebitda": Decimal("400"), "revenue": None},  # type: ignore[dict-item]
        cashflow={"ebitda": None, "revenue": Decimal("900")},  # type: ignore[dict-item]
    )

    values = extract_base_values(period)

    assert values["EBITDA"] == Present(Decimal("400"))
    assert values["REVENUE"] == Present(Decimal("900"))


def test_extract_base_values_keeps_null_only_keys_absent() -> None:
    period = make_period(balance={"inventory": None})  # type: ignore[dict-item]

    assert extract_base_values(period) == {"INVENTORY": ABSENT}
