# src/credit_metrics_api/infrastructure/observability/metrics.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Prometheus metrics utilities (registry-aware, hot-reload safe).

Accessor functions return collectors bound to the **current**
``prometheus_client.REGISTRY``:

    - Safe under hot reload and tests that swap the default registry.
    - No duplicate-registration errors.
    - Cache automatically resets when the active registry changes.

Collectors:
    * ``db_operation_duration_seconds{operation,model,outcome}``
    * ``db_errors_total{operation,model,reason}``
    * ``metric_registry_transitions_total{transition,outcome}``
    * ``credit_metric_evaluations_total{metric,outcome}``
    * ``credit_snapshot_duration_seconds{outcome}``

Example:
    get_metric_registry_transitions_total().labels(
        transition="publish", outcome="success"
    ).inc()
"""

from __future__ import annotations

import logging
import threading
from contextlib import suppress
from typing import Final

import prometheus_client as prom
from prometheus_client import Counter, Histogram

_log = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Common histogram buckets (seconds)
_BUCKETS: Final[tuple[float, ...]] = (
    0.005,
    0.010,
    0.025,
    0.050,
    0.100,
    0.250,
    0.500,
    1.000,
    2.500,
    5.000,
    10.000,
)

# Cache keyed by metric name within the currently-active registry.
_registry_id: int | None = None
_hist_cache: dict[str, Histogram] = {}
_counter_cache: dict[str, Counter] = {}
_lock = threading.RLock()


# ---------------------------------------------------------------------------
# Registry-handling primitives


def _ensure_registry() -> None:
    """Reset caches if the active registry changed."""
    global _registry_id
    with _lock:
        rid = id(prom.REGISTRY)
        if _registry_id is None or _registry_id != rid:
            _hist_cache.clear()
            _counter_cache.clear()
            _registry_id = rid


def _lookup_existing(
    name: str, kind: type[Counter] | type[Histogram]
) -> Counter | Histogram | None:
    """Return a collector of ``kind`` already registered under ``name``, if any."""
    with _lock, suppress(Exception):
        mapping = getattr(prom.REGISTRY, "_names_to_collectors", None)
        if isinstance(mapping, dict):
            col = mapping.get(name)
            if isinstance(col, kind):
                return col
    return None


# ---------------------------------------------------------------------------
# Get-or-create helpers


def _get_or_create_hist(
    name: str,
    help_text: str,
    *,
    buckets: tuple[float, ...] = _BUCKETS,
    labelnames: tuple[str, ...] = (),
) -> Histogram:
    """Get or create a registry-bound ``Histogram`` with stable identity.

    Args:
        name: Metric name (snake_case).
        help_text: Human-readable description.
        buckets: Histogram buckets in seconds.
        labelnames: Optional label names tuple.

    Returns:
        Histogram: Bound to ``prom.REGISTRY``.
    """
    _ensure_registry()
    with _lock:
        cached = _hist_cache.get(name)
        if cached is not None:
            return cached

        existing = _lookup_existing(name, Histogram)
        if isinstance(existing, Histogram):
            _hist_cache[name] = existing
            return existing

        try:
            h = Histogram(name, help_text, labelnames, buckets=buckets, registry=prom.REGISTRY)
        except ValueError as exc:
            # Duplicated timeseries: another caller registered it first.
            again = _lookup_existing(name, Histogram)
            if "Duplicated timeseries" in str(exc) and isinstance(again, Histogram):
                _hist_cache[name] = again
                return again
            _log.exception("Failed to register Prometheus histogram %s", name)
            raise
        _hist_cache[name] = h
        return h


def _get_or_create_counter(
    name: str,
    help_text: str,
    *,
    labelnames: tuple[str, ...] = (),
) -> Counter:
    """Get or create a registry-bound ``Counter`` with stable identity.

    Args:
        name: Metric name (snake_case, without the ``_total`` suffix handling).
        help_text: Human-readable description.
        labelnames: Optional label names tuple.

    Returns:
        Counter: Bound to ``prom.REGISTRY``.
    """
    _ensure_registry()
    with _lock:
        cached = _counter_cache.get(name)
        if cached is not None:
            return cached

        # prometheus_client registers counters under both the base name and
        # the ``_total`` suffixed name.
        existing = _lookup_existing(name, Counter)
        if isinstance(existing, Counter):
            _counter_cache[name] = existing
            return existing

        try:
            c = Counter(name, help_text, labelnames, registry=prom.REGISTRY)
        except ValueError as exc:
            again = _lookup_existing(name, Counter)
            if "Duplicated timeseries" in str(exc) and isinstance(again, Counter):
                _counter_cache[name] = again
                return again
            _log.exception("Failed to register Prometheus counter %s", name)
            raise
        _counter_cache[name] = c
        return c


# ---------------------------------------------------------------------------
# Database metrics


def get_db_operation_duration_seconds() -> Histogram:
    """Return histogram for DB operation latency.

    Labels:
        operation: Logical operation name (e.g. ``publish_version``).
        model: Logical model/table name (e.g. ``metric_registry_versions``).
        outcome: ``success`` or ``error``.
    """
    return _get_or_create_hist(
        name="db_operation_duration_seconds",
        help_text="Latency (seconds) of database operations.",
        labelnames=("operation", "model", "outcome"),
    )


def get_db_errors_total() -> Counter:
    """Return counter for DB errors.

    Labels:
        operation: Logical operation name.
        model: Logical model/table name.
        reason: Error class or short reason.
    """
    return _get_or_create_counter(
        name="db_errors_total",
        help_text="Total database errors by operation/model.",
        labelnames=("operation", "model", "reason"),
    )


# ---------------------------------------------------------------------------
# Registry governance and evaluation metrics


def get_metric_registry_transitions_total() -> Counter:
    """Return counter for registry governance transitions.

    Labels:
        transition: ``publish``, ``deprecate``, ``pin`` or ``unpin``.
        outcome: ``success`` or the error code that rejected the transition.
    """
    return _get_or_create_counter(
        name="metric_registry_transitions_total",
        help_text="Registry version governance transitions by outcome.",
        labelnames=("transition", "outcome"),
    )


def get_credit_metric_evaluations_total() -> Counter:
    """Return counter for credit ratio evaluations.

    Labels:
        metric: Ratio identifier (e.g. ``dscr``).
        outcome: ``computed``, ``missing_input`` or ``divide_by_zero``.
    """
    return _get_or_create_counter(
        name="credit_metric_evaluations_total",
        help_text="Credit ratio evaluations by outcome.",
        labelnames=("metric", "outcome"),
    )


def get_credit_snapshot_duration_seconds() -> Histogram:
    """Return histogram for end-to-end credit snapshot computation latency.

    Labels:
        outcome: ``success`` or ``error``.
    """
    return _get_or_create_hist(
        name="credit_snapshot_duration_seconds",
        help_text="Latency (seconds) of credit snapshot computation.",
        labelnames=("outcome",),
    )


__all__ = [
    "get_credit_metric_evaluations_total",
    "get_credit_snapshot_duration_seconds",
    "get_db_errors_total",
    "get_db_operation_duration_seconds",
    "get_metric_registry_transitions_total",
]
