# src/credit_metrics_api/main.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Application entrypoint (FastAPI).

Responsibilities:
    - Configure JSON logging.
    - Initialize and dispose the async database engine via lifespan.
    - Attach the request-id middleware so error envelopes and logs correlate.
    - Map request validation errors onto the standard error envelope.
    - Mount the metric registry, credit snapshot, health and metrics routers.
"""

from __future__ import annotations

import os
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute

from credit_metrics_api import __version__
from credit_metrics_api.adapters.routers.base_router import BaseRouter
from credit_metrics_api.adapters.routers.credit_snapshot_router import (
    router as credit_snapshot_router,
)
from credit_metrics_api.adapters.routers.health_router import router as health_router
from credit_metrics_api.adapters.routers.metric_registry_router import (
    router as metric_registry_router,
)
from credit_metrics_api.adapters.routers.metrics_router import router as metrics_router
from credit_metrics_api.config.settings import Settings, get_settings
from credit_metrics_api.infrastructure.database.session import (
    dispose_engine,
    init_engine_and_sessionmaker,
)
from credit_metrics_api.infrastructure.logging.logger import (
    configure_root_logging,
    get_json_logger,
)
from credit_metrics_api.infrastructure.middleware.request_id import RequestIdMiddleware

logger = get_json_logger(__name__)


def _stable_operation_id(route: APIRoute) -> str:
    """Deterministic operationId, e.g. ``post__v1_metric-registry_drafts``."""
    methods = ",".join(sorted(route.methods or []))
    path = route.path_format.replace("/", "_").replace("{", "").replace("}", "")
    return f"{methods.lower()}_{path.lower()}"


@asynccontextmanager
async def runtime_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Initialize and tear down the database engine."""
    settings: Settings = app.state.settings
    init_engine_and_sessionmaker(settings)
    logger.info("service_ready", extra={"env": settings.environment.value})
    try:
        yield
    finally:
        await dispose_engine()
        logger.info("service_shutdown")


async def _validation_error_handler(request: Request, exc: Exception) -> JSONResponse:
    if not isinstance(exc, RequestValidationError):
        raise exc
    return BaseRouter.error_response(
        http_status=422,
        code="VALIDATION_ERROR",
        message="Request validation failed.",
        trace_id=BaseRouter.trace_id(request),
        details={"errors": jsonable_encoder(exc.errors())},
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Optional settings override (tests); defaults to ``get_settings()``.

    Returns:
        FastAPI: Fully configured application instance.
    """
    settings = settings or get_settings()
    configure_root_logging(settings.log_level)

    app = FastAPI(
        title=settings.api_title,
        version=__version__,
        description="Deterministic credit metrics over a content-addressed formula registry.",
        lifespan=runtime_lifespan,
        generate_unique_id_function=_stable_operation_id,
    )
    app.state.settings = settings

    app.add_middleware(RequestIdMiddleware)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)

    app.include_router(metric_registry_router)
    app.include_router(credit_snapshot_router)
    app.include_router(health_router)
    app.include_router(metrics_router)

    logger.info(
        "service_startup",
        extra={"env": settings.environment.value, "version": __version__, "status": "starting"},
    )
    return app


if __name__ == "__main__":  # pragma: no cover
    import uvicorn

    uvicorn.run(
        "credit_metrics_api.main:create_app",
        factory=True,
        host="127.0.0.1",
        port=int(os.getenv("PORT", "8080")),
    )
