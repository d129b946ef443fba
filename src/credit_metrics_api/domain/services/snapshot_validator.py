# src/credit_metrics_api/domain/services/snapshot_validator.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Pre-render validation of deal financial snapshots.

Purpose:
    Gate snapshots before a report renders them:
        * Required metrics per business model must have a numeric value.
        * NaN and infinite values are errors.
        * A non-null ratio over a zero denominator is a warning.
        * Registry-applicable metrics that are absent (and not already
          required errors) are warnings.

    ``valid`` is True iff there are no errors; warnings never block.

Layer:
    domain/services

Notes:
    - Business-model inference: real-estate signals (NOI, rental income) and
      operating signals (revenue, EBITDA) together mean MIXED; operating
      signals alone mean OPERATING_COMPANY; neither defaults to REAL_ESTATE.
"""

from __future__ import annotations

import math
from decimal import Decimal

from credit_metrics_api.domain.entities.deal_snapshot import (
    DealFinancialSnapshot,
    SnapshotIssue,
    SnapshotValidationResult,
)
from credit_metrics_api.domain.enums.credit_analysis import BusinessModel, SnapshotIssueKind

_RE = frozenset({BusinessModel.REAL_ESTATE, BusinessModel.MIXED})
_OP = frozenset({BusinessModel.OPERATING_COMPANY, BusinessModel.MIXED})
_ALL = frozenset(BusinessModel)

#: Snapshot metrics and the business models they apply to.
SNAPSHOT_METRIC_APPLICABILITY: dict[str, frozenset[BusinessModel]] = {
    # Real estate
    "total_income_ttm": _RE,
    "opex_ttm": _RE,
    "noi_ttm": _RE,
    "occupancy_pct": _RE,
    "cap_rate": _RE,
    "collateral_gross_value": _RE,
    "collateral_net_value": _RE,
    "ltv_gross": _RE,
    "ltv_net": _RE,
    "debt_yield": _RE,
    # Operating company
    "revenue": _OP,
    "ebitda": _OP,
    "ebitda_margin": _OP,
    "net_income": _OP,
    "net_margin": _OP,
    "working_capital": _OP,
    "current_ratio": _OP,
    "quick_ratio": _OP,
    "leverage_debt_to_ebitda": _OP,
    # Both
    "cash_flow_available": _ALL,
    "annual_debt_service": _ALL,
    "excess_cash_flow": _ALL,
    "dscr": _ALL,
    "dscr_stressed_300bps": _ALL,
    "bank_loan_total": _ALL,
    "collateral_coverage": _ALL,
}

#: Metrics a snapshot must carry before it can render.
REQUIRED_METRICS: dict[BusinessModel, tuple[str, ...]] = {
    BusinessModel.REAL_ESTATE: (
        "noi_ttm",
        "annual_debt_service",
        "dscr",
        "collateral_gross_value",
        "ltv_gross",
    ),
    BusinessModel.OPERATING_COMPANY: ("revenue", "ebitda", "annual_debt_service", "dscr"),
    BusinessModel.MIXED: ("noi_ttm", "revenue", "ebitda", "annual_debt_service", "dscr"),
}

#: Ratio metric -> denominator metric.
RATIO_DENOMINATORS: dict[str, str] = {
    "dscr": "annual_debt_service",
    "dscr_stressed_300bps": "annual_debt_service",
    "ltv_gross": "collateral_gross_value",
    "ltv_net": "collateral_net_value",
    "cap_rate": "collateral_gross_value",
    "collateral_coverage": "bank_loan_total",
    "debt_yield": "bank_loan_total",
    "ebitda_margin": "revenue",
    "net_margin": "revenue",
    "leverage_debt_to_ebitda": "ebitda",
}

_REAL_ESTATE_SIGNALS = ("noi_ttm", "total_income_ttm", "in_place_rent_mo")
_OPERATING_SIGNALS = ("revenue", "ebitda")


def _non_finite_kind(value: object) -> SnapshotIssueKind | None:
    if isinstance(value, Decimal):
        if value.is_nan():
            return SnapshotIssueKind.NAN
        if value.is_infinite():
            return SnapshotIssueKind.INFINITE
        return None
    if isinstance(value, float):
        if math.isnan(value):
            return SnapshotIssueKind.NAN
        if math.isinf(value):
            return SnapshotIssueKind.INFINITE
    return None


def infer_business_model(snapshot: DealFinancialSnapshot) -> BusinessModel:
    """Infer the business model from which signals carry values."""
    has_re = any(snapshot.value_of(m) is not None for m in _REAL_ESTATE_SIGNALS)
    has_op = any(snapshot.value_of(m) is not None for m in _OPERATING_SIGNALS)
    if has_re and has_op:
        return BusinessModel.MIXED
    if has_op:
        return BusinessModel.OPERATING_COMPANY
    return BusinessModel.REAL_ESTATE


def validate_snapshot_for_render(
    snapshot: DealFinancialSnapshot,
    business_model: BusinessModel | None = None,
) -> SnapshotValidationResult:
    """Validate ``snapshot`` before rendering.

    Args:
        snapshot: Render-ready snapshot.
        business_model: Declared business model; inferred when ``None``.

    Returns:
        Validation result with errors and warnings in a stable order.
    """
    model = business_model or infer_business_model(snapshot)
    errors: list[SnapshotIssue] = []
    warnings: list[SnapshotIssue] = []

    required = REQUIRED_METRICS[model]
    for metric in required:
        if snapshot.value_of(metric) is None:
            errors.append(
                SnapshotIssue(
                    metric=metric,
                    issue=SnapshotIssueKind.MISSING,
                    message=f"Required metric {metric} is missing for {model.value}",
                )
            )

    for metric in sorted(snapshot.metrics):
        entry = snapshot.metrics[metric]
        for field_name, raw in (("value_num", entry.value_num), ("confidence", entry.confidence)):
            kind = _non_finite_kind(raw)
            if kind is None:
                continue
            label = metric if field_name == "value_num" else f"{metric}.{field_name}"
            errors.append(
                SnapshotIssue(metric=label, issue=kind, message=f"{label} is {kind.value}")
            )

    for ratio, denominator in RATIO_DENOMINATORS.items():
        ratio_value = snapshot.value_of(ratio)
        den_value = snapshot.value_of(denominator)
        if ratio_value is None or den_value is None:
            continue
        if den_value == 0:
            warnings.append(
                SnapshotIssue(
                    metric=ratio,
                    issue=SnapshotIssueKind.DIVIDE_BY_ZERO,
                    message=f"{ratio} is populated but its denominator {denominator} is zero",
                )
            )

    for metric, models in SNAPSHOT_METRIC_APPLICABILITY.items():
        if model not in models or metric in required:
            continue
        if snapshot.value_of(metric) is None:
            warnings.append(
                SnapshotIssue(
                    metric=metric,
                    issue=SnapshotIssueKind.MISSING,
                    message=f"Metric {metric} is not available",
                )
            )

    return SnapshotValidationResult(
        valid=not errors,
        errors=tuple(errors),
        warnings=tuple(warnings),
    )


__all__ = [
    "RATIO_DENOMINATORS",
    "REQUIRED_METRICS",
    "SNAPSHOT_METRIC_APPLICABILITY",
    "infer_business_model",
    "validate_snapshot_for_render",
]
