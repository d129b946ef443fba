# src/credit_metrics_api/application/use_cases/credit_analysis/preview_registry_upgrade.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Use case: Preview the effect of moving a bank to another registry version.

Purpose:
    Evaluate one financial period under the bank's current binding and under
    a candidate version (drafts included, so a formula change can be
    reviewed before publishing), then report which metric values change.

Layer:
    application/use_cases/credit_analysis
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from credit_metrics_api.application.uow import UnitOfWork
from credit_metrics_api.application.use_cases.metric_registry._common import (
    get_registry_repository,
    require_version,
)
from credit_metrics_api.application.use_cases.metric_registry.resolve_registry_binding import (
    RegistryBindingResolver,
)
from credit_metrics_api.domain.entities.amount import Amount
from credit_metrics_api.domain.entities.credit_metrics import PeriodSelectionOptions
from credit_metrics_api.domain.entities.financial_period import FinancialModel
from credit_metrics_api.domain.entities.metric_registry import (
    RegistryBinding,
    RegistryEntry,
    RegistryVersion,
)
from credit_metrics_api.domain.exceptions.credit_analysis import AnalysisPeriodNotFound
from credit_metrics_api.domain.services.canonical_hash import hash_registry
from credit_metrics_api.domain.services.formula_mapper import registry_entries_to_metric_defs
from credit_metrics_api.domain.services.metric_comparison import (
    MetricComparison,
    compare_metric_values,
)
from credit_metrics_api.domain.services.metric_graph import (
    FormulaDiagnostic,
    evaluate_metric_graph,
    extract_base_values,
)
from credit_metrics_api.domain.services.period_selection import select_analysis_period

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PreviewRegistryUpgradeRequest:
    """Request parameters for an upgrade preview.

    Attributes:
        model: Financial model with candidate periods.
        candidate_version_id: Registry version to compare against.
        bank_id: Tenant whose current binding is the baseline.
        options: Period selection options (defaults to ``LATEST_FY``).
    """

    model: FinancialModel
    candidate_version_id: str
    bank_id: str | None = None
    options: PeriodSelectionOptions | None = None


@dataclass(frozen=True)
class PreviewRegistryUpgradeResult:
    """Comparison of metric values under the current and candidate versions."""

    period_id: str
    current: RegistryBinding | None
    candidate: RegistryBinding
    comparison: MetricComparison
    current_diagnostics: tuple[FormulaDiagnostic, ...] = ()
    candidate_diagnostics: tuple[FormulaDiagnostic, ...] = ()


def _evaluate(
    entries: Sequence[RegistryEntry], base: dict[str, Amount]
) -> tuple[dict[str, Amount], tuple[FormulaDiagnostic, ...]]:
    definitions = registry_entries_to_metric_defs(entries)
    graph = evaluate_metric_graph(definitions, base)
    return {d.key: graph.value(d.key) for d in definitions}, graph.diagnostics


def _candidate_binding(
    version: RegistryVersion, entries: Sequence[RegistryEntry]
) -> RegistryBinding:
    return RegistryBinding(
        version_id=version.id,
        version_name=version.name,
        content_hash=version.content_hash or hash_registry(entries),
    )


class PreviewRegistryUpgradeUseCase:
    """Compare a bank's current registry against a candidate version.

    Raises:
        RegistryVersionNotFound: If the candidate version does not exist.
        AnalysisPeriodNotFound: If no period matches the selection.
        FormulaValidationError: If a stored entry no longer maps to a definition.
    """

    def __init__(self, uow: UnitOfWork, resolver: RegistryBindingResolver | None = None) -> None:
        """Initialize the use case."""
        self._uow = uow
        self._resolver = resolver or RegistryBindingResolver()

    async def execute(self, req: PreviewRegistryUpgradeRequest) -> PreviewRegistryUpgradeResult:
        """Execute the preview."""
        selected = select_analysis_period(req.model.periods, req.options)
        if selected is None:
            raise AnalysisPeriodNotFound(
                "No financial period matches the requested selection.",
                details={"deal_id": req.model.deal_id},
            )

        async with self._uow as tx:
            repo = get_registry_repository(tx)
            candidate_version = await require_version(repo, req.candidate_version_id)
            candidate_entries = await repo.list_entries(candidate_version.id)
            current = await self._resolver.resolve(repo, req.bank_id)
            current_entries = (
                await repo.list_entries(current.version_id) if current is not None else ()
            )

        base = extract_base_values(selected.period)
        current_values, current_diags = _evaluate(current_entries, base)
        candidate_values, candidate_diags = _evaluate(candidate_entries, base)
        comparison = compare_metric_values(current_values, candidate_values)

        logger.info(
            "metric_registry.upgrade_preview.success",
            extra={
                "bank_id": req.bank_id,
                "period_id": selected.period_id,
                "current_version_id": current.version_id if current else None,
                "candidate_version_id": candidate_version.id,
                "has_drift": comparison.has_drift,
                **comparison.summary(),
            },
        )
        return PreviewRegistryUpgradeResult(
            period_id=selected.period_id,
            current=current,
            candidate=_candidate_binding(candidate_version, candidate_entries),
            comparison=comparison,
            current_diagnostics=current_diags,
            candidate_diagnostics=candidate_diags,
        )


__all__ = [
    "PreviewRegistryUpgradeRequest",
    "PreviewRegistryUpgradeResult",
    "PreviewRegistryUpgradeUseCase",
]
