# src/credit_metrics_api/adapters/routers/metrics_router.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Prometheus scrape endpoint (`/metrics`).

Collectors are created lazily on first use; the scrape handler registers them
up front so every metric family (HELP/TYPE) is visible on a cold scrape.

Layer:
    adapters/routers
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from credit_metrics_api.infrastructure.logging.logger import get_json_logger
from credit_metrics_api.infrastructure.observability.metrics import (
    get_credit_metric_evaluations_total,
    get_credit_snapshot_duration_seconds,
    get_db_errors_total,
    get_db_operation_duration_seconds,
    get_metric_registry_transitions_total,
)

logger = get_json_logger(__name__)
router = APIRouter()

_COLLECTORS: tuple[Callable[[], Any], ...] = (
    get_credit_metric_evaluations_total,
    get_credit_snapshot_duration_seconds,
    get_db_errors_total,
    get_db_operation_duration_seconds,
    get_metric_registry_transitions_total,
)


def _register_collectors() -> None:
    for getter in _COLLECTORS:
        try:
            getter()
        except Exception as exc:  # pragma: no cover
            logger.debug(
                "metrics_router.register_failed",
                extra={"metric": getter.__name__, "error": str(exc)},
            )


@router.get("/metrics", include_in_schema=False)
async def metrics_probe() -> Response:
    """Expose Prometheus metrics in text format."""
    _register_collectors()
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


__all__ = ["router"]
