# src/credit_metrics_api/adapters/routers/base_router.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Base Router (Adapters Layer).

Purpose:
    Provide a canonical APIRouter wrapper and shared utilities for HTTP endpoints:
        - Versioned routing with stable prefixes (e.g., "/v1/metric-registry").
        - Standard error response mapping using ErrorEnvelope.
        - Mapping of domain errors onto HTTP status codes.

Layer:
    adapters/routers
"""

from __future__ import annotations

from collections.abc import Sequence
from enum import Enum
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from credit_metrics_api.adapters.schemas.http.envelopes import ErrorEnvelope, ErrorObject
from credit_metrics_api.domain.exceptions.base import (
    DomainError,
    NotFoundError,
    StateConflictError,
    ValidationFailure,
)
from credit_metrics_api.infrastructure.logging.logger import get_json_logger, get_request_id

_LOGGER = get_json_logger(__name__)

TagType = str | Enum

# Most specific first.
_DOMAIN_STATUS: tuple[tuple[type[DomainError], int], ...] = (
    (NotFoundError, 404),
    (StateConflictError, 409),
    (ValidationFailure, 422),
)


class BaseRouter(APIRouter):
    """Canonical router wrapper for credit metrics HTTP endpoints."""

    def __init__(
        self,
        *,
        version: str,
        resource: str,
        prefix: str | None = None,
        tags: Sequence[TagType] | None = None,
        dependencies: Sequence[Any] | None = None,
        **kwargs: Any,
    ) -> None:
        """Initialize the router with a versioned prefix and common settings.

        Args:
            version: API version segment (e.g., "v1").
            resource: Resource segment (e.g., "metric-registry").
            prefix: Optional explicit prefix; defaults to f"/{version}/{resource}".
            tags: Optional default tags for the router's endpoints.
            dependencies: Optional dependencies applied to all routes.
            **kwargs: Additional keyword arguments forwarded to APIRouter.
        """
        computed_prefix = prefix or f"/{version}/{resource}"

        super().__init__(
            prefix=computed_prefix,
            tags=list(tags) if tags is not None else None,
            dependencies=list(dependencies) if dependencies is not None else None,
            **kwargs,
        )

        _LOGGER.info(
            "router_initialized",
            extra={"prefix": computed_prefix, "tags": [str(t) for t in tags or []]},
        )

    # ----------------------------------------------------------------------
    # Error helpers
    # ----------------------------------------------------------------------

    @staticmethod
    def trace_id(request: Request) -> str | None:
        """Return the request correlation id (X-Request-ID), if present."""
        request_id = getattr(request.state, "request_id", None)
        return request_id or request.headers.get("X-Request-ID") or get_request_id()

    @staticmethod
    def error_response(
        *,
        http_status: int,
        code: str,
        message: str,
        trace_id: str | None,
        details: dict[str, Any] | None = None,
    ) -> JSONResponse:
        """Build a JSON response carrying a standard error envelope."""
        error = ErrorEnvelope(
            error=ErrorObject(
                code=code,
                http_status=http_status,
                message=message,
                details=details or {},
                trace_id=trace_id,
            ),
        )
        return JSONResponse(status_code=http_status, content=error.model_dump(mode="json"))

    @classmethod
    def domain_error_response(cls, exc: DomainError, *, trace_id: str | None) -> JSONResponse:
        """Map a domain error onto its HTTP status and error envelope.

        Not-found errors map to 404, state conflicts to 409 and validation
        failures to 422. Any other domain error is a 400.
        """
        http_status = next((s for t, s in _DOMAIN_STATUS if isinstance(exc, t)), 400)
        return cls.error_response(
            http_status=http_status,
            code=exc.code,
            message=str(exc),
            trace_id=trace_id,
            details=exc.details,
        )

    @classmethod
    def internal_error_response(
        cls, exc: Exception, *, trace_id: str | None, message: str
    ) -> JSONResponse:
        """Build the 500 response for an unexpected failure."""
        return cls.error_response(
            http_status=500,
            code="INTERNAL_ERROR",
            message=message,
            trace_id=trace_id,
            details={"reason": type(exc).__name__},
        )

    # ----------------------------------------------------------------------
    # OpenAPI Error Responses
    # ----------------------------------------------------------------------

    @staticmethod
    def std_error_responses() -> dict[int, dict[str, Any]]:
        """Return canonical error responses."""
        return {
            400: {"model": ErrorEnvelope, "description": "Bad request."},
            404: {"model": ErrorEnvelope, "description": "Not found."},
            409: {"model": ErrorEnvelope, "description": "Governance state conflict."},
            422: {"model": ErrorEnvelope, "description": "Unprocessable content."},
            500: {"model": ErrorEnvelope, "description": "Internal server error."},
        }


__all__ = ["BaseRouter", "TagType"]
