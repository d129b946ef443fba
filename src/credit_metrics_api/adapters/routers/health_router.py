# src/credit_metrics_api/adapters/routers/health_router.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Liveness and readiness probes.

Endpoints:
    - GET /healthz: process is up.
    - GET /readyz: the registry database answers ``SELECT 1``.

Layer:
    adapters/routers
"""

from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import text

from credit_metrics_api.infrastructure.database.session import get_db_session
from credit_metrics_api.infrastructure.logging.logger import get_json_logger

logger = get_json_logger(__name__)
router = APIRouter(tags=["Health"])


@router.get("/healthz")
async def healthz() -> JSONResponse:
    """Lightweight liveness endpoint."""
    return JSONResponse({"status": "ok"})


@router.get("/readyz")
async def readyz() -> JSONResponse:
    """Readiness endpoint; 503 when the database is unreachable."""
    try:
        async with get_db_session() as session:
            await session.execute(text("SELECT 1"))
    except Exception as exc:
        logger.warning("readyz.db_unavailable", extra={"error": type(exc).__name__})
        return JSONResponse({"status": "unavailable", "db": "down"}, status_code=503)
    return JSONResponse({"status": "ok", "db": "up"})


__all__ = ["router"]
