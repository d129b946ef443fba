# src/credit_metrics_api/adapters/routers/metric_registry_router.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Metric registry HTTP router (v1).

Purpose:
    Expose registry governance endpoints:
        - POST   /v1/metric-registry/drafts
        - POST   /v1/metric-registry/drafts/{version_id}/entries
        - POST   /v1/metric-registry/versions/{version_id}/publish
        - POST   /v1/metric-registry/versions/{version_id}/deprecate
        - GET    /v1/metric-registry/versions
        - GET    /v1/metric-registry/versions/{version_id}
        - GET    /v1/metric-registry/binding
        - PUT    /v1/metric-registry/pins/{bank_id}
        - DELETE /v1/metric-registry/pins/{bank_id}

Layer:
    adapters/routers
"""

from __future__ import annotations

from typing import Any, cast

from fastapi import Body, Depends, Query, Request, Response, status
from fastapi.responses import JSONResponse

from credit_metrics_api.adapters.dependencies.metric_registry_uow import get_metric_registry_uow
from credit_metrics_api.adapters.presenters.metric_registry_presenter import (
    present_bank_pin,
    present_registry_binding,
    present_registry_draft,
    present_registry_entry,
    present_registry_version,
    present_registry_version_detail,
    present_registry_versions,
)
from credit_metrics_api.adapters.routers.base_router import BaseRouter
from credit_metrics_api.adapters.schemas.http.envelopes import SuccessEnvelope
from credit_metrics_api.adapters.schemas.http.metric_registry_schemas import (
    AddRegistryEntryRequestHTTP,
    BankRegistryPinHTTP,
    CreateRegistryDraftRequestHTTP,
    PinBankRegistryRequestHTTP,
    RegistryBindingHTTP,
    RegistryEntryHTTP,
    RegistryTransitionRequestHTTP,
    RegistryVersionDetailHTTP,
    RegistryVersionHTTP,
)
from credit_metrics_api.application.uow import UnitOfWork
from credit_metrics_api.application.use_cases.metric_registry.add_registry_entry import (
    AddRegistryEntryRequest,
    AddRegistryEntryUseCase,
)
from credit_metrics_api.application.use_cases.metric_registry.create_registry_draft import (
    CreateRegistryDraftRequest,
    CreateRegistryDraftUseCase,
)
from credit_metrics_api.application.use_cases.metric_registry.deprecate_registry_version import (
    DeprecateRegistryVersionRequest,
    DeprecateRegistryVersionUseCase,
)
from credit_metrics_api.application.use_cases.metric_registry.list_registry_versions import (
    ListSelectableVersionsUseCase,
    LoadVersionEntriesRequest,
    LoadVersionEntriesUseCase,
)
from credit_metrics_api.application.use_cases.metric_registry.pin_bank_registry import (
    PinBankRegistryRequest,
    PinBankRegistryUseCase,
    UnpinBankRegistryRequest,
    UnpinBankRegistryUseCase,
)
from credit_metrics_api.application.use_cases.metric_registry.publish_registry_version import (
    PublishRegistryVersionRequest,
    PublishRegistryVersionUseCase,
)
from credit_metrics_api.application.use_cases.metric_registry.resolve_registry_binding import (
    ResolveRegistryBindingRequest,
    ResolveRegistryBindingUseCase,
)
from credit_metrics_api.domain.exceptions.base import DomainError
from credit_metrics_api.infrastructure.logging.logger import get_json_logger

logger = get_json_logger(__name__)

router = BaseRouter(version="v1", resource="metric-registry", tags=["Metric Registry"])


def get_uow() -> UnitOfWork:
    """FastAPI dependency: return the registry UnitOfWork."""
    return get_metric_registry_uow()


# ---------------------------------------------------------------------------
# FastAPI dependency / parameter singletons
# (Ruff B008: avoid Query()/Body() calls in argument defaults)
# ---------------------------------------------------------------------------

_UOW_DEP = Depends(get_uow)

_BODY: Any = Body(...)
_OPTIONAL_BODY: Any = Body(default=None)

_Q_BANK_ID: Any = Query(default=None, description="Tenant identifier for pin resolution.")

_ERRORS = cast("dict[int | str, dict[str, Any]]", BaseRouter.std_error_responses())


def _failed(exc: Exception, *, event: str, trace_id: str | None, message: str) -> JSONResponse:
    logger.exception(event, extra={"trace_id": trace_id})
    return BaseRouter.internal_error_response(exc, trace_id=trace_id, message=message)


@router.post(
    "/drafts",
    summary="Create a draft registry version",
    description="Create a new draft version, optionally seeded with metric entries.",
    status_code=status.HTTP_201_CREATED,
    response_model=cast(Any, SuccessEnvelope[RegistryVersionDetailHTTP]),
    responses=_ERRORS,
)
async def create_registry_draft(
    request: Request,
    body: CreateRegistryDraftRequestHTTP = _BODY,
    uow: UnitOfWork = _UOW_DEP,
) -> SuccessEnvelope[RegistryVersionDetailHTTP] | JSONResponse:
    """Create a draft registry version."""
    trace_id = BaseRouter.trace_id(request)
    use_case = CreateRegistryDraftUseCase(uow=uow)

    try:
        result = await use_case.execute(
            CreateRegistryDraftRequest(
                name=body.name, created_by=body.created_by, entries=body.entries
            )
        )
        return present_registry_draft(result)
    except DomainError as exc:
        return BaseRouter.domain_error_response(exc, trace_id=trace_id)
    except Exception as exc:  # pragma: no cover
        return _failed(
            exc,
            event="metric_registry.api.create_draft.unhandled",
            trace_id=trace_id,
            message="Draft creation failed unexpectedly.",
        )


@router.post(
    "/drafts/{version_id}/entries",
    summary="Append an entry to a draft version",
    description="Validate and append one metric definition. Only drafts accept entries.",
    status_code=status.HTTP_201_CREATED,
    response_model=cast(Any, SuccessEnvelope[RegistryEntryHTTP]),
    responses=_ERRORS,
)
async def add_registry_entry(
    request: Request,
    version_id: str,
    body: AddRegistryEntryRequestHTTP = _BODY,
    uow: UnitOfWork = _UOW_DEP,
) -> SuccessEnvelope[RegistryEntryHTTP] | JSONResponse:
    """Append a metric entry to a draft."""
    trace_id = BaseRouter.trace_id(request)
    use_case = AddRegistryEntryUseCase(uow=uow)

    try:
        entry = await use_case.execute(
            AddRegistryEntryRequest(
                version_id=version_id,
                metric_key=body.metric_key,
                definition_json=body.definition,
            )
        )
        return present_registry_entry(entry)
    except DomainError as exc:
        return BaseRouter.domain_error_response(exc, trace_id=trace_id)
    except Exception as exc:  # pragma: no cover
        return _failed(
            exc,
            event="metric_registry.api.add_entry.unhandled",
            trace_id=trace_id,
            message="Entry append failed unexpectedly.",
        )


@router.post(
    "/versions/{version_id}/publish",
    summary="Publish a draft version",
    description=(
        "Validate every entry, reject dependency cycles, compute the content hash "
        "and transition the draft to published."
    ),
    response_model=cast(Any, SuccessEnvelope[RegistryVersionHTTP]),
    responses=_ERRORS,
)
async def publish_registry_version(
    request: Request,
    version_id: str,
    body: RegistryTransitionRequestHTTP | None = _OPTIONAL_BODY,
    uow: UnitOfWork = _UOW_DEP,
) -> SuccessEnvelope[RegistryVersionHTTP] | JSONResponse:
    """Publish a draft registry version."""
    trace_id = BaseRouter.trace_id(request)
    use_case = PublishRegistryVersionUseCase(uow=uow)

    try:
        version = await use_case.execute(
            PublishRegistryVersionRequest(
                version_id=version_id, actor=body.actor if body else None
            )
        )
        return present_registry_version(version)
    except DomainError as exc:
        return BaseRouter.domain_error_response(exc, trace_id=trace_id)
    except Exception as exc:  # pragma: no cover
        return _failed(
            exc,
            event="metric_registry.api.publish.unhandled",
            trace_id=trace_id,
            message="Publish failed unexpectedly.",
        )


@router.post(
    "/versions/{version_id}/deprecate",
    summary="Deprecate a published version",
    response_model=cast(Any, SuccessEnvelope[RegistryVersionHTTP]),
    responses=_ERRORS,
)
async def deprecate_registry_version(
    request: Request,
    version_id: str,
    body: RegistryTransitionRequestHTTP | None = _OPTIONAL_BODY,
    uow: UnitOfWork = _UOW_DEP,
) -> SuccessEnvelope[RegistryVersionHTTP] | JSONResponse:
    """Deprecate a published registry version."""
    trace_id = BaseRouter.trace_id(request)
    use_case = DeprecateRegistryVersionUseCase(uow=uow)

    try:
        version = await use_case.execute(
            DeprecateRegistryVersionRequest(
                version_id=version_id, actor=body.actor if body else None
            )
        )
        return present_registry_version(version)
    except DomainError as exc:
        return BaseRouter.domain_error_response(exc, trace_id=trace_id)
    except Exception as exc:  # pragma: no cover
        return _failed(
            exc,
            event="metric_registry.api.deprecate.unhandled",
            trace_id=trace_id,
            message="Deprecation failed unexpectedly.",
        )


@router.get(
    "/versions",
    summary="List selectable registry versions",
    description="Return published versions ordered by publish time, newest first.",
    response_model=cast(Any, SuccessEnvelope[list[RegistryVersionHTTP]]),
    responses=_ERRORS,
)
async def list_registry_versions(
    request: Request,
    uow: UnitOfWork = _UOW_DEP,
) -> SuccessEnvelope[list[RegistryVersionHTTP]] | JSONResponse:
    """List published registry versions."""
    trace_id = BaseRouter.trace_id(request)
    use_case = ListSelectableVersionsUseCase(uow=uow)

    try:
        return present_registry_versions(await use_case.execute())
    except Exception as exc:  # pragma: no cover
        return _failed(
            exc,
            event="metric_registry.api.list_versions.unhandled",
            trace_id=trace_id,
            message="Version listing failed unexpectedly.",
        )


@router.get(
    "/versions/{version_id}",
    summary="Get a registry version with its entries",
    response_model=cast(Any, SuccessEnvelope[RegistryVersionDetailHTTP]),
    responses=_ERRORS,
)
async def get_registry_version(
    request: Request,
    version_id: str,
    uow: UnitOfWork = _UOW_DEP,
) -> SuccessEnvelope[RegistryVersionDetailHTTP] | JSONResponse:
    """Return a version, its entries and their validated definitions."""
    trace_id = BaseRouter.trace_id(request)
    use_case = LoadVersionEntriesUseCase(uow=uow)

    try:
        result = await use_case.execute(LoadVersionEntriesRequest(version_id=version_id))
        return present_registry_version_detail(result)
    except DomainError as exc:
        return BaseRouter.domain_error_response(exc, trace_id=trace_id)
    except Exception as exc:  # pragma: no cover
        return _failed(
            exc,
            event="metric_registry.api.get_version.unhandled",
            trace_id=trace_id,
            message="Version lookup failed unexpectedly.",
        )


@router.get(
    "/binding",
    summary="Resolve the active registry binding",
    description=(
        "Return the bank's pinned version when a pin exists, otherwise the latest "
        "published version. `data` is null when nothing is published."
    ),
    response_model=cast(Any, SuccessEnvelope[RegistryBindingHTTP | None]),
    responses=_ERRORS,
)
async def resolve_registry_binding(
    request: Request,
    uow: UnitOfWork = _UOW_DEP,
    bank_id: str | None = _Q_BANK_ID,
) -> SuccessEnvelope[RegistryBindingHTTP | None] | JSONResponse:
    """Resolve the registry binding for a bank."""
    trace_id = BaseRouter.trace_id(request)
    use_case = ResolveRegistryBindingUseCase(uow=uow)

    try:
        binding = await use_case.execute(ResolveRegistryBindingRequest(bank_id=bank_id))
        return present_registry_binding(binding)
    except DomainError as exc:
        return BaseRouter.domain_error_response(exc, trace_id=trace_id)
    except Exception as exc:  # pragma: no cover
        return _failed(
            exc,
            event="metric_registry.api.binding.unhandled",
            trace_id=trace_id,
            message="Binding resolution failed unexpectedly.",
        )


@router.put(
    "/pins/{bank_id}",
    summary="Pin a bank to a registry version",
    description="Create or replace the bank's pin. Drafts cannot be pinned.",
    response_model=cast(Any, SuccessEnvelope[BankRegistryPinHTTP]),
    responses=_ERRORS,
)
async def pin_bank_registry(
    request: Request,
    bank_id: str,
    body: PinBankRegistryRequestHTTP = _BODY,
    uow: UnitOfWork = _UOW_DEP,
) -> SuccessEnvelope[BankRegistryPinHTTP] | JSONResponse:
    """Pin a bank to a published or deprecated version."""
    trace_id = BaseRouter.trace_id(request)
    use_case = PinBankRegistryUseCase(uow=uow)

    try:
        pin = await use_case.execute(
            PinBankRegistryRequest(
                bank_id=bank_id,
                version_id=body.version_id,
                pinned_by=body.pinned_by,
                reason=body.reason,
            )
        )
        return present_bank_pin(pin)
    except DomainError as exc:
        return BaseRouter.domain_error_response(exc, trace_id=trace_id)
    except Exception as exc:  # pragma: no cover
        return _failed(
            exc,
            event="metric_registry.api.pin.unhandled",
            trace_id=trace_id,
            message="Pin failed unexpectedly.",
        )


@router.delete(
    "/pins/{bank_id}",
    summary="Remove a bank's registry pin",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    responses=_ERRORS,
)
async def unpin_bank_registry(
    request: Request,
    bank_id: str,
    uow: UnitOfWork = _UOW_DEP,
) -> Response:
    """Remove a bank's pin; the bank falls back to the latest published version."""
    trace_id = BaseRouter.trace_id(request)
    use_case = UnpinBankRegistryUseCase(uow=uow)

    try:
        await use_case.execute(UnpinBankRegistryRequest(bank_id=bank_id))
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except DomainError as exc:
        return BaseRouter.domain_error_response(exc, trace_id=trace_id)
    except Exception as exc:  # pragma: no cover
        return _failed(
            exc,
            event="metric_registry.api.unpin.unhandled",
            trace_id=trace_id,
            message="Unpin failed unexpectedly.",
        )


__all__ = ["get_uow", "router"]
