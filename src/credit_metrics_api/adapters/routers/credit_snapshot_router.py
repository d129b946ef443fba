# src/credit_metrics_api/adapters/routers/credit_snapshot_router.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Credit snapshot HTTP router (v1).

Purpose:
    Expose the evaluation path:
        - POST /v1/credit-snapshots/compute
        - POST /v1/credit-snapshots/upgrade-preview

Layer:
    adapters/routers
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal
from typing import Any, cast

from fastapi import Body, Depends, Request
from fastapi.responses import JSONResponse

from credit_metrics_api.adapters.dependencies.metric_registry_uow import get_metric_registry_uow
from credit_metrics_api.adapters.presenters.credit_snapshot_presenter import (
    present_credit_snapshot,
    present_upgrade_preview,
)
from credit_metrics_api.adapters.routers.base_router import BaseRouter
from credit_metrics_api.adapters.schemas.http.credit_snapshot_schemas import (
    ComputeCreditSnapshotRequestHTTP,
    CreditSnapshotHTTP,
    DebtInstrumentHTTP,
    FinancialPeriodHTTP,
    PeriodSelectionHTTP,
    PreviewRegistryUpgradeRequestHTTP,
    RegistryUpgradePreviewHTTP,
)
from credit_metrics_api.adapters.schemas.http.envelopes import SuccessEnvelope
from credit_metrics_api.application.uow import UnitOfWork
from credit_metrics_api.application.use_cases.credit_analysis.compute_credit_snapshot import (
    ComputeCreditSnapshotRequest,
    ComputeCreditSnapshotUseCase,
)
from credit_metrics_api.application.use_cases.credit_analysis.preview_registry_upgrade import (
    PreviewRegistryUpgradeRequest,
    PreviewRegistryUpgradeUseCase,
)
from credit_metrics_api.config.settings import Settings, get_settings
from credit_metrics_api.domain.entities.credit_metrics import PeriodSelectionOptions
from credit_metrics_api.domain.entities.debt_instrument import DebtInstrument
from credit_metrics_api.domain.entities.financial_period import FinancialModel, FinancialPeriod
from credit_metrics_api.domain.exceptions.base import DomainError
from credit_metrics_api.domain.services.audit_replay import ReplayProof
from credit_metrics_api.infrastructure.logging.logger import get_json_logger

logger = get_json_logger(__name__)

router = BaseRouter(version="v1", resource="credit-snapshots", tags=["Credit Snapshots"])


def get_uow() -> UnitOfWork:
    """FastAPI dependency: return the UnitOfWork used for registry reads."""
    return get_metric_registry_uow()


_UOW_DEP = Depends(get_uow)
_SETTINGS_DEP = Depends(get_settings)
_BODY: Any = Body(...)

_ERRORS = cast("dict[int | str, dict[str, Any]]", BaseRouter.std_error_responses())


# ---------------------------------------------------------------------------
# HTTP -> domain mapping
# ---------------------------------------------------------------------------


def _facts(raw: dict[str, Decimal | None] | None) -> dict[str, Decimal] | None:
    # A null fact is absent, same as an omitted key.
    if raw is None:
        return None
    return {k: v for k, v in raw.items() if v is not None}


def _to_model(deal_id: str, periods: Sequence[FinancialPeriodHTTP]) -> FinancialModel:
    return FinancialModel(
        deal_id=deal_id,
        periods=tuple(
            FinancialPeriod(
                period_id=p.period_id,
                period_end=p.period_end,
                period_type=p.period_type,
                income=_facts(p.income),
                balance=_facts(p.balance),
                cashflow=_facts(p.cashflow),
                quality_flags=tuple(p.quality_flags),
            )
            for p in periods
        ),
    )


def _to_options(selection: PeriodSelectionHTTP | None) -> PeriodSelectionOptions | None:
    if selection is None:
        return None
    return PeriodSelectionOptions(strategy=selection.strategy, period_id=selection.period_id)


def _to_instruments(
    instruments: Sequence[DebtInstrumentHTTP] | None,
) -> tuple[DebtInstrument, ...] | None:
    if instruments is None:
        return None
    return tuple(
        DebtInstrument(
            instrument_id=i.instrument_id,
            source=i.source,
            principal=i.principal,
            rate=i.rate,
            amortization_months=i.amortization_months,
            payment_frequency=i.payment_frequency,
            interest_only_months=i.interest_only_months,
            term_months=i.term_months,
            balloon=i.balloon,
        )
        for i in instruments
    )


@router.post(
    "/compute",
    summary="Compute a credit snapshot",
    description=(
        "Select the analysis period, resolve debt service, evaluate the canonical "
        "credit ratios and the bank's bound metric registry, validate the result "
        "and return a replay proof. Missing inputs are reported as diagnostics, "
        "never as zero."
    ),
    response_model=cast(Any, SuccessEnvelope[CreditSnapshotHTTP]),
    responses=_ERRORS,
)
async def compute_credit_snapshot(
    request: Request,
    body: ComputeCreditSnapshotRequestHTTP = _BODY,
    uow: UnitOfWork = _UOW_DEP,
    settings: Settings = _SETTINGS_DEP,
) -> SuccessEnvelope[CreditSnapshotHTTP] | JSONResponse:
    """Compute a credit snapshot for a deal."""
    trace_id = BaseRouter.trace_id(request)
    use_case = ComputeCreditSnapshotUseCase(
        uow,
        default_options=PeriodSelectionOptions(strategy=settings.default_period_strategy),
    )

    proof = body.replay_proof
    try:
        result = await use_case.execute(
            ComputeCreditSnapshotRequest(
                model=_to_model(body.deal_id, body.periods),
                options=_to_options(body.period_selection),
                instruments=_to_instruments(body.instruments),
                bank_id=body.bank_id,
                business_model=body.business_model,
                replay_proof=(
                    ReplayProof(
                        version_id=proof.version_id,
                        content_hash=proof.content_hash,
                        outputs_hash=proof.outputs_hash,
                    )
                    if proof is not None
                    else None
                ),
            )
        )
        return present_credit_snapshot(result)
    except DomainError as exc:
        return BaseRouter.domain_error_response(exc, trace_id=trace_id)
    except Exception as exc:  # pragma: no cover
        logger.exception("credit_snapshot.api.compute.unhandled", extra={"trace_id": trace_id})
        return BaseRouter.internal_error_response(
            exc, trace_id=trace_id, message="Snapshot computation failed unexpectedly."
        )


@router.post(
    "/upgrade-preview",
    summary="Preview metric drift under a candidate registry version",
    description=(
        "Evaluate the bank's current registry and a candidate version against the "
        "same period and report changed, added and removed metrics."
    ),
    response_model=cast(Any, SuccessEnvelope[RegistryUpgradePreviewHTTP]),
    responses=_ERRORS,
)
async def preview_registry_upgrade(
    request: Request,
    body: PreviewRegistryUpgradeRequestHTTP = _BODY,
    uow: UnitOfWork = _UOW_DEP,
    settings: Settings = _SETTINGS_DEP,
) -> SuccessEnvelope[RegistryUpgradePreviewHTTP] | JSONResponse:
    """Preview the effect of moving a bank to a candidate registry version."""
    trace_id = BaseRouter.trace_id(request)
    use_case = PreviewRegistryUpgradeUseCase(uow)

    options = _to_options(body.period_selection) or PeriodSelectionOptions(
        strategy=settings.default_period_strategy
    )
    try:
        result = await use_case.execute(
            PreviewRegistryUpgradeRequest(
                model=_to_model(body.deal_id, body.periods),
                candidate_version_id=body.candidate_version_id,
                bank_id=body.bank_id,
                options=options,
            )
        )
        return present_upgrade_preview(result)
    except DomainError as exc:
        return BaseRouter.domain_error_response(exc, trace_id=trace_id)
    except Exception as exc:  # pragma: no cover
        logger.exception(
            "credit_snapshot.api.upgrade_preview.unhandled", extra={"trace_id": trace_id}
        )
        return BaseRouter.internal_error_response(
            exc, trace_id=trace_id, message="Upgrade preview failed unexpectedly."
        )


__all__ = ["get_uow", "router"]
