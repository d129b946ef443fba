# src/credit_metrics_api/infrastructure/logging/logger.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Structured JSON logging utilities.

Purpose:
    Provide an idempotent root configurator and a per-module logger factory
    producing one JSON object per log line.

Layer:
    infrastructure/logging

Notes:
    * Stable keys: ``ts``, ``level``, ``logger``, ``message``.
    * ``request_id`` / ``trace_id`` come from the record first, then from the
      request-scoped contextvars bound by :func:`set_request_context`.
    * Fields passed through ``extra={...}`` become top-level JSON keys. A
      legacy ``extra={"extra": {...}}`` dict is flattened as well.

Typical usage:
    configure_root_logging()
    log = get_json_logger(__name__)
    log.info("metric_registry.publish.success", extra={"version_id": str(vid)})
"""

from __future__ import annotations

import json
import logging
import os
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any, Final

_REQUEST_ID_CTX: ContextVar[str | None] = ContextVar("credit_metrics_request_id", default=None)
_TRACE_ID_CTX: ContextVar[str | None] = ContextVar("credit_metrics_trace_id", default=None)

# Attributes every LogRecord carries; anything else arrived through ``extra``.
_STANDARD_ATTRS: Final[frozenset[str]] = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime", "taskName"}


def set_request_context(*, request_id: str | None = None, trace_id: str | None = None) -> None:
    """Bind correlation identifiers to the current task context.

    Args:
        request_id: Correlation identifier from ``X-Request-ID``, if any.
        trace_id: Distributed tracing identifier, if any.

    Notes:
        Additive: passing only one argument leaves the other unchanged.
    """
    if request_id is not None:
        _REQUEST_ID_CTX.set(request_id)
    if trace_id is not None:
        _TRACE_ID_CTX.set(trace_id)


def get_request_id() -> str | None:
    """Return the current request id from contextvars, if any."""
    return _REQUEST_ID_CTX.get(None)


def get_trace_id() -> str | None:
    """Return the current trace id from contextvars, if any."""
    return _TRACE_ID_CTX.get(None)


def _jsonable(value: Any) -> Any:
    """Fallback encoder for values ``json`` cannot serialize (UUID, Decimal, date)."""
    return str(value)


class _JsonFormatter(logging.Formatter):
    """JSON log formatter emitting stable keys plus caller-supplied extras."""

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record as a single JSON line.

        Args:
            record: Logging record.

        Returns:
            JSON-encoded log line.
        """
        payload: dict[str, Any] = {
            "ts": datetime.now(tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        rid = getattr(record, "request_id", None) or _REQUEST_ID_CTX.get(None)
        if rid:
            payload["request_id"] = rid
        tid = getattr(record, "trace_id", None) or _TRACE_ID_CTX.get(None)
        if tid:
            payload["trace_id"] = tid

        if record.exc_info:
            exc_type, exc_value, _ = record.exc_info
            if exc_type is not None:
                payload["exc_type"] = exc_type.__name__
            if exc_value is not None:
                payload["exc_message"] = str(exc_value)
            payload["stack"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key in _STANDARD_ATTRS or key in payload or key.startswith("_"):
                continue
            if key == "extra" and isinstance(value, dict):
                payload.update(value)
                continue
            payload[key] = value

        return json.dumps(payload, separators=(",", ":"), ensure_ascii=False, default=_jsonable)


def configure_root_logging(level: str | int | None = None) -> None:
    """Install a single JSON stream handler on the root logger (idempotent).

    Args:
        level: Logging level or level name. If ``None``, use env ``LOG_LEVEL``
            or ``INFO``.
    """
    root = logging.getLogger()

    env_level = os.getenv("LOG_LEVEL")
    resolved: int | str = (
        level if level is not None else (env_level.upper() if env_level else "INFO")
    )
    if isinstance(resolved, str):
        resolved = resolved.upper()
    root.setLevel(resolved)

    for handler in root.handlers:
        if isinstance(handler.formatter, _JsonFormatter):
            return

    # Replace handlers installed by basicConfig() so lines are not duplicated.
    for handler in list(root.handlers):
        root.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(_JsonFormatter())
    root.addHandler(handler)


def get_json_logger(name: str) -> logging.Logger:
    """Return a module logger that propagates to the JSON root handler.

    This does *not* configure the root logger; call
    :func:`configure_root_logging` once at startup.

    Args:
        name: Logger name, typically ``__name__`` of the caller.

    Returns:
        The named logger.
    """
    logger = logging.getLogger(name)
    logger.propagate = True
    return logger


__all__ = [
    "configure_root_logging",
    "get_json_logger",
    "get_request_id",
    "get_trace_id",
    "set_request_context",
]
