# src/credit_metrics_api/adapters/presenters/credit_snapshot_presenter.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Presenters for credit snapshot HTTP responses.

Purpose:
    Transform snapshot computation and upgrade preview results into HTTP
    envelopes. Absent amounts become ``null``; nothing is coerced to zero.

Layer:
    adapters/presenters
"""

from __future__ import annotations

from collections.abc import Iterable

from credit_metrics_api.adapters.presenters.metric_registry_presenter import (
    binding_http,
    to_binding_http,
)
from credit_metrics_api.adapters.schemas.http.credit_snapshot_schemas import (
    CreditSnapshotHTTP,
    DebtServiceHTTP,
    FormulaDiagnosticHTTP,
    MetricDeltaHTTP,
    MetricResultHTTP,
    PeriodSelectionDiagnosticsHTTP,
    RegistryMetricsHTTP,
    RegistryUpgradePreviewHTTP,
    ReplayProofHTTP,
    ReplayVerificationHTTP,
    SelectedPeriodHTTP,
    SnapshotIssueHTTP,
    SnapshotValidationHTTP,
)
from credit_metrics_api.adapters.schemas.http.envelopes import SuccessEnvelope
from credit_metrics_api.application.use_cases.credit_analysis.compute_credit_snapshot import (
    ComputeCreditSnapshotResult,
)
from credit_metrics_api.application.use_cases.credit_analysis.preview_registry_upgrade import (
    PreviewRegistryUpgradeResult,
)
from credit_metrics_api.domain.entities.amount import value_or_none
from credit_metrics_api.domain.entities.credit_metrics import (
    CoreCreditMetrics,
    DebtServiceResult,
    MetricResult,
    SelectedPeriod,
)
from credit_metrics_api.domain.entities.deal_snapshot import (
    SnapshotIssue,
    SnapshotValidationResult,
)
from credit_metrics_api.domain.enums.credit_analysis import CreditRatio
from credit_metrics_api.domain.services.audit_replay import ReplayProof, ReplayVerification
from credit_metrics_api.domain.services.metric_graph import FormulaDiagnostic, MetricGraphResult


def _selected_period_http(selected: SelectedPeriod) -> SelectedPeriodHTTP:
    d = selected.diagnostics
    return SelectedPeriodHTTP(
        period_id=selected.period_id,
        period_end=selected.period_end,
        period_type=selected.period_type,
        diagnostics=PeriodSelectionDiagnosticsHTTP(
            strategy=d.strategy,
            candidate_period_ids=list(d.candidate_period_ids),
            excluded_period_ids=list(d.excluded_period_ids),
            reason=d.reason,
        ),
    )


def _debt_service_http(result: DebtServiceResult) -> DebtServiceHTTP:
    return DebtServiceHTTP(
        period_id=result.period_id,
        total_debt_service=value_or_none(result.total_debt_service),
        existing=value_or_none(result.breakdown.existing),
        proposed=value_or_none(result.breakdown.proposed),
        source=result.diagnostics.source,
        missing_components=list(result.diagnostics.missing_components),
        notes=list(result.diagnostics.notes),
        alignment=result.diagnostics.alignment,
    )


def _metric_http(ratio: CreditRatio, result: MetricResult) -> MetricResultHTTP:
    diagnostics = result.diagnostics
    return MetricResultHTTP(
        metric=ratio.value,
        value=value_or_none(result.value),
        available=result.is_available,
        formula=result.formula,
        inputs={name: value_or_none(v) for name, v in result.inputs.items()},
        missing_inputs=list(diagnostics.missing_inputs) if diagnostics else [],
        divide_by_zero=diagnostics.divide_by_zero if diagnostics else False,
    )


def _ratios_http(ratios: CoreCreditMetrics) -> list[MetricResultHTTP]:
    # Canonical ratio order, independent of evaluation order.
    return [_metric_http(r, ratios.metrics[r]) for r in CreditRatio if r in ratios.metrics]


def _issues_http(issues: Iterable[SnapshotIssue]) -> list[SnapshotIssueHTTP]:
    return [SnapshotIssueHTTP(metric=i.metric, issue=i.issue, message=i.message) for i in issues]


def _validation_http(validation: SnapshotValidationResult) -> SnapshotValidationHTTP:
    return SnapshotValidationHTTP(
        valid=validation.valid,
        errors=_issues_http(validation.errors),
        warnings=_issues_http(validation.warnings),
    )


def _diagnostics_http(diagnostics: Iterable[FormulaDiagnostic]) -> list[FormulaDiagnosticHTTP]:
    return [
        FormulaDiagnosticHTTP(code=d.code, metric=d.metric, message=d.message, operand=d.operand)
        for d in diagnostics
    ]


def _registry_metrics_http(graph: MetricGraphResult | None) -> RegistryMetricsHTTP | None:
    if graph is None:
        return None
    return RegistryMetricsHTTP(
        values={k: value_or_none(v) for k, v in sorted(graph.values.items())},
        diagnostics=_diagnostics_http(graph.diagnostics),
    )


def _proof_http(proof: ReplayProof | None) -> ReplayProofHTTP | None:
    if proof is None:
        return None
    return ReplayProofHTTP(
        version_id=proof.version_id,
        content_hash=proof.content_hash,
        outputs_hash=proof.outputs_hash,
    )


def _verification_http(v: ReplayVerification | None) -> ReplayVerificationHTTP | None:
    if v is None:
        return None
    return ReplayVerificationHTTP(
        verified=v.verified,
        hash_match=v.hash_match,
        binding_match=v.binding_match,
        expected_outputs_hash=v.expected_outputs_hash,
        actual_outputs_hash=v.actual_outputs_hash,
    )


def present_credit_snapshot(
    result: ComputeCreditSnapshotResult,
) -> SuccessEnvelope[CreditSnapshotHTTP]:
    """Present a computed credit snapshot as a success envelope.

    Args:
        result: Snapshot, registry binding, validation and replay artifacts.

    Returns:
        SuccessEnvelope containing a CreditSnapshotHTTP payload.
    """
    snapshot = result.snapshot
    data = CreditSnapshotHTTP(
        deal_id=snapshot.deal_id,
        generated_at=snapshot.generated_at,
        selected_period=_selected_period_http(snapshot.selected_period),
        debt_service=_debt_service_http(snapshot.debt_service),
        ratios=_ratios_http(snapshot.ratios),
        registry_binding=to_binding_http(result.binding),
        registry_metrics=_registry_metrics_http(result.registry_metrics),
        validation=_validation_http(result.validation),
        outputs_hash=result.outputs_hash,
        replay_proof=_proof_http(result.proof),
        replay_verification=_verification_http(result.verification),
    )
    return SuccessEnvelope(data=data)


def present_upgrade_preview(
    result: PreviewRegistryUpgradeResult,
) -> SuccessEnvelope[RegistryUpgradePreviewHTTP]:
    """Present a registry upgrade preview as a success envelope."""
    comparison = result.comparison
    data = RegistryUpgradePreviewHTTP(
        period_id=result.period_id,
        current_binding=to_binding_http(result.current),
        candidate_binding=binding_http(result.candidate),
        has_drift=comparison.has_drift,
        summary=comparison.summary(),
        changed=[
            MetricDeltaHTTP(
                metric=d.metric,
                before=value_or_none(d.before),
                after=value_or_none(d.after),
                delta=value_or_none(d.delta),
            )
            for d in comparison.changed
        ],
        added=list(comparison.added),
        removed=list(comparison.removed),
        unchanged=list(comparison.unchanged),
        current_diagnostics=_diagnostics_http(result.current_diagnostics),
        candidate_diagnostics=_diagnostics_http(result.candidate_diagnostics),
    )
    return SuccessEnvelope(data=data)


__all__ = ["present_credit_snapshot", "present_upgrade_preview"]
