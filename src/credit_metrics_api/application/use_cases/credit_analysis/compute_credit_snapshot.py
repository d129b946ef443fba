# src/credit_metrics_api/application/use_cases/credit_analysis/compute_credit_snapshot.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Use case: Compute a credit snapshot for a deal.

Purpose:
    Orchestrate the evaluation path for one deal:

        1. Resolve the registry binding for the requesting bank (pin-aware)
           and load the bound version's entries.
        2. Load the deal's debt instruments (request payload first, then the
           instrument gateway, else the interest proxy applies).
        3. Select the analysis period, resolve debt service and evaluate the
           seven canonical ratios plus the bound registry's metrics.
        4. Validate the render-ready snapshot and build a replay proof tying
           the output hash to the registry binding.

Layer:
    application/use_cases/credit_analysis

Notes:
    - Steps 1 and 2 are independent I/O and run concurrently. Within step 1
      the pin lookup is sequenced before the version it selects.
    - Snapshots are computed fresh per request and never cached across a
      registry version change.
    - Missing inputs and zero denominators never raise; they are carried as
      diagnostics. Only a request that selects no period raises.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Mapping, Sequence
from contextlib import suppress
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from credit_metrics_api.application.uow import UnitOfWork
from credit_metrics_api.application.use_cases.metric_registry._common import (
    get_registry_repository,
    utc_now,
)
from credit_metrics_api.application.use_cases.metric_registry.resolve_registry_binding import (
    RegistryBindingResolver,
)
from credit_metrics_api.domain.entities.credit_metrics import (
    CreditSnapshot,
    MetricResult,
    PeriodSelectionOptions,
)
from credit_metrics_api.domain.entities.debt_instrument import DebtInstrument
from credit_metrics_api.domain.entities.deal_snapshot import SnapshotValidationResult
from credit_metrics_api.domain.entities.financial_period import FinancialModel
from credit_metrics_api.domain.entities.metric_registry import RegistryBinding, RegistryEntry
from credit_metrics_api.domain.enums.credit_analysis import BusinessModel
from credit_metrics_api.domain.exceptions.credit_analysis import AnalysisPeriodNotFound
from credit_metrics_api.domain.interfaces.gateways.debt_instrument_gateway import (
    DebtInstrumentGateway,
)
from credit_metrics_api.domain.services.audit_replay import (
    ReplayProof,
    ReplayVerification,
    build_replay_proof,
    verify_replay,
)
from credit_metrics_api.domain.services.canonical_hash import hash_outputs
from credit_metrics_api.domain.services.credit_snapshot import (
    compute_credit_snapshot,
    to_deal_snapshot,
)
from credit_metrics_api.domain.services.formula_mapper import registry_entries_to_metric_defs
from credit_metrics_api.domain.services.metric_graph import (
    MetricGraphResult,
    evaluate_metric_graph,
    extract_base_values,
)
from credit_metrics_api.domain.services.snapshot_validator import validate_snapshot_for_render
from credit_metrics_api.infrastructure.observability.metrics import (
    get_credit_metric_evaluations_total,
    get_credit_snapshot_duration_seconds,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ComputeCreditSnapshotRequest:
    """Request parameters for snapshot computation.

    Attributes:
        model: Financial model with candidate periods.
        options: Period selection options; the use case default applies
            when ``None``.
        instruments: Debt instruments supplied with the request. ``None``
            defers to the instrument gateway.
        bank_id: Requesting tenant, used for registry pin resolution.
        business_model: Declared business model for validation; inferred
            when ``None``.
        replay_proof: A previously stored proof to verify against.
    """

    model: FinancialModel
    options: PeriodSelectionOptions | None = None
    instruments: Sequence[DebtInstrument] | None = None
    bank_id: str | None = None
    business_model: BusinessModel | None = None
    replay_proof: ReplayProof | None = None


@dataclass(frozen=True)
class ComputeCreditSnapshotResult:
    """Result of snapshot computation.

    Attributes:
        snapshot: Selected period, debt service and ratio results.
        binding: Registry binding the computation is tied to, if any.
        registry_metrics: Evaluation of the bound registry's definitions, if
            a registry is bound.
        validation: Pre-render validation outcome.
        outputs_hash: Content hash of the computed outputs.
        proof: Replay proof (requires a binding).
        verification: Outcome of verifying ``replay_proof``, when supplied.
    """

    snapshot: CreditSnapshot
    binding: RegistryBinding | None
    registry_metrics: MetricGraphResult | None
    validation: SnapshotValidationResult
    outputs_hash: str
    proof: ReplayProof | None = None
    verification: ReplayVerification | None = None


def snapshot_outputs(
    snapshot: CreditSnapshot, registry_metrics: MetricGraphResult | None
) -> dict[str, Any]:
    """Return the replayable output payload of a computation.

    The generation timestamp is excluded so a recomputation over the same
    facts and binding hashes identically.
    """
    registry_values: Mapping[str, Any] = registry_metrics.values if registry_metrics else {}
    return {
        "dealId": snapshot.deal_id,
        "periodId": snapshot.selected_period.period_id,
        "debtService": {
            "source": snapshot.debt_service.diagnostics.source,
            "total": snapshot.debt_service.total_debt_service,
            "existing": snapshot.debt_service.breakdown.existing,
            "proposed": snapshot.debt_service.breakdown.proposed,
        },
        "ratios": {ratio.value: result.value for ratio, result in snapshot.ratios.metrics.items()},
        "registryMetrics": dict(registry_values),
    }


def _evaluation_outcome(result: MetricResult) -> str:
    if result.is_available:
        return "computed"
    if result.diagnostics is not None and result.diagnostics.divide_by_zero:
        return "divide_by_zero"
    return "missing_input"


class ComputeCreditSnapshotUseCase:
    """Compute a credit snapshot bound to the bank's registry version.

    Args:
        uow: Unit-of-work used to access the registry repository.
        instrument_gateway: Optional provider of a deal's debt instruments.
        default_options: Selection options used when a request names none.
        resolver: Optional binding resolver (shares its hash cache).
        clock: Source of the snapshot generation timestamp.
    """

    def __init__(
        self,
        uow: UnitOfWork,
        *,
        instrument_gateway: DebtInstrumentGateway | None = None,
        default_options: PeriodSelectionOptions | None = None,
        resolver: RegistryBindingResolver | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize the use case."""
        self._uow = uow
        self._gateway = instrument_gateway
        self._default_options = default_options or PeriodSelectionOptions()
        self._resolver = resolver or RegistryBindingResolver()
        self._clock = clock

    async def execute(self, req: ComputeCreditSnapshotRequest) -> ComputeCreditSnapshotResult:
        """Execute the snapshot computation.

        Raises:
            AnalysisPeriodNotFound: If no period matches the selection.
        """
        started = time.perf_counter()
        outcome = "error"
        try:
            result = await self._execute(req)
            outcome = "success"
            return result
        finally:
            with suppress(Exception):
                get_credit_snapshot_duration_seconds().labels(outcome=outcome).observe(
                    time.perf_counter() - started
                )

    async def _execute(self, req: ComputeCreditSnapshotRequest) -> ComputeCreditSnapshotResult:
        options = req.options or self._default_options
        logger.info(
            "credit_snapshot.compute.start",
            extra={
                "deal_id": req.model.deal_id,
                "bank_id": req.bank_id,
                "strategy": options.strategy.value,
                "period_count": len(req.model.periods),
            },
        )

        (binding, entries), instruments = await asyncio.gather(
            self._resolve_registry(req.bank_id),
            self._load_instruments(req),
        )

        snapshot = compute_credit_snapshot(req.model, options, instruments, clock=self._clock)
        if snapshot is None:
            logger.info(
                "credit_snapshot.compute.period_not_found",
                extra={"deal_id": req.model.deal_id, "strategy": options.strategy.value},
            )
            raise AnalysisPeriodNotFound(
                f"No financial period matches strategy {options.strategy.value}.",
                details={
                    "deal_id": req.model.deal_id,
                    "strategy": options.strategy.value,
                    "period_id": options.period_id,
                },
            )

        registry_metrics: MetricGraphResult | None = None
        if entries:
            definitions = registry_entries_to_metric_defs(entries)
            registry_metrics = evaluate_metric_graph(
                definitions, extract_base_values(snapshot.selected_period.period)
            )

        validation = validate_snapshot_for_render(to_deal_snapshot(snapshot), req.business_model)
        outputs = snapshot_outputs(snapshot, registry_metrics)
        proof = build_replay_proof(binding, outputs) if binding is not None else None

        verification: ReplayVerification | None = None
        if req.replay_proof is not None and binding is not None:
            verification = verify_replay(req.replay_proof, binding, outputs)
            if not verification.verified:
                logger.warning(
                    "credit_snapshot.replay.mismatch",
                    extra={
                        "deal_id": req.model.deal_id,
                        "expected_outputs_hash": verification.expected_outputs_hash,
                        "actual_outputs_hash": verification.actual_outputs_hash,
                        "binding_match": verification.binding_match,
                    },
                )

        self._record_evaluations(snapshot)
        result = ComputeCreditSnapshotResult(
            snapshot=snapshot,
            binding=binding,
            registry_metrics=registry_metrics,
            validation=validation,
            outputs_hash=hash_outputs(outputs),
            proof=proof,
            verification=verification,
        )
        logger.info(
            "credit_snapshot.compute.success",
            extra={
                "deal_id": snapshot.deal_id,
                "period_id": snapshot.selected_period.period_id,
                "debt_service_source": snapshot.debt_service.diagnostics.source.value,
                "version_id": binding.version_id if binding else None,
                "valid": validation.valid,
                "error_count": len(validation.errors),
                "warning_count": len(validation.warnings),
            },
        )
        return result

    async def _resolve_registry(
        self, bank_id: str | None
    ) -> tuple[RegistryBinding | None, tuple[RegistryEntry, ...]]:
        async with self._uow as tx:
            repo = get_registry_repository(tx)
            binding = await self._resolver.resolve(repo, bank_id)
            if binding is None:
                logger.info("credit_snapshot.registry.unbound", extra={"bank_id": bank_id})
                return None, ()
            entries = tuple(await repo.list_entries(binding.version_id))
        return binding, entries

    async def _load_instruments(
        self, req: ComputeCreditSnapshotRequest
    ) -> Sequence[DebtInstrument] | None:
        if req.instruments is not None:
            return req.instruments
        if self._gateway is None:
            return None
        return await self._gateway.list_instruments(req.model.deal_id)

    @staticmethod
    def _record_evaluations(snapshot: CreditSnapshot) -> None:
        with suppress(Exception):
            counter = get_credit_metric_evaluations_total()
            for ratio, result in snapshot.ratios.metrics.items():
                counter.labels(metric=ratio.value, outcome=_evaluation_outcome(result)).inc()


__all__ = [
    "ComputeCreditSnapshotRequest",
    "ComputeCreditSnapshotResult",
    "ComputeCreditSnapshotUseCase",
    "snapshot_outputs",
]
