# tests/unit/infrastructure/test_json_logger.py
from __future__ import annotations

import contextvars
import json
import logging
import sys
from decimal import Decimal

from credit_metrics_api.infrastructure.logging.logger import (
    _JsonFormatter,
    configure_root_logging,
    get_json_logger,
    get_request_id,
    set_request_context,
)


def _record(msg: str = "metric_registry.publish.success", **extra: object) -> logging.LogRecord:
    record = logging.LogRecord(
        "credit_metrics_api.test", logging.INFO, __file__, 1, msg, None, None
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formatter_emits_stable_keys_and_extras() -> None:
    line = _JsonFormatter().format(_record(version_id="ver-1", value=Decimal("1.50")))

    payload = json.loads(line)
    assert payload["level"] == "INFO"
    assert payload["logger"] == "credit_metrics_api.test"
    assert payload["message"] == "metric_registry.publish.success"
    assert payload["version_id"] == "ver-1"
    assert payload["value"] == "1.50"
    assert "ts" in payload


def test_formatter_flattens_nested_extra_dict() -> None:
    payload = json.loads(_JsonFormatter().format(_record(extra={"bank_id": "bank-1"})))

    assert payload["bank_id"] == "bank-1"
    assert "extra" not in payload


def test_formatter_reads_request_context() -> None:
    def _format() -> dict[str, object]:
        set_request_context(request_id="req-1", trace_id="trace-1")
        assert get_request_id() == "req-1"
        return json.loads(_JsonFormatter().format(_record()))

    payload = contextvars.copy_context().run(_format)

    assert payload["request_id"] == "req-1"
    assert payload["trace_id"] == "trace-1"


def test_formatter_includes_exception_details() -> None:
    try:
        raise ValueError("bad formula")
    except ValueError:
        record = _record()
        record.exc_info = sys.exc_info()

    payload = json.loads(_JsonFormatter().format(record))

    assert payload["exc_type"] == "ValueError"
    assert payload["exc_message"] == "bad formula"
    assert "Traceback" in payload["stack"]


def test_configure_root_logging_is_idempotent() -> None:
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    try:
        configure_root_logging("debug")
        configure_root_logging("INFO")

        json_handlers = [h for h in root.handlers if isinstance(h.formatter, _JsonFormatter)]
        assert len(json_handlers) == 1
        assert root.level == logging.INFO
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)


def test_get_json_logger_propagates() -> None:
    logger = get_json_logger("credit_metrics_api.some.module")

    assert logger.name == "credit_metrics_api.some.module"
    assert logger.propagate is True
