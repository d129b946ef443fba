# src/credit_metrics_api/domain/exceptions/credit_analysis.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Credit analysis exceptions.

Layer:
    domain/exceptions

Notes:
    Missing facts and zero denominators are diagnostics, not exceptions.
    Only a request that cannot select any period raises.
"""

from __future__ import annotations

from credit_metrics_api.domain.exceptions.base import NotFoundError


class AnalysisPeriodNotFound(NotFoundError):
    """No financial period matches the requested selection."""

    code = "period_not_found"


__all__ = ["AnalysisPeriodNotFound"]
