# tests/unit/infrastructure/test_request_id_middleware.py
from __future__ import annotations

import uuid

import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from credit_metrics_api.infrastructure.logging.logger import get_request_id
from credit_metrics_api.infrastructure.middleware.request_id import (
    REQUEST_ID_HEADER,
    RequestIdMiddleware,
    coerce_request_id,
)


@pytest.fixture()
def client() -> TestClient:
    app = FastAPI()
    app.add_middleware(RequestIdMiddleware)

    @app.get("/echo")
    async def echo(request: Request) -> dict[str, str | None]:
        return {"state": request.state.request_id, "context": get_request_id()}

    return TestClient(app)


def test_coerce_keeps_safe_ids() -> None:
    assert coerce_request_id("req-1:abc@edge_2.x") == "req-1:abc@edge_2.x"


@pytest.mark.parametrize("raw", [None, "", "has space", "x" * 129, "semi;colon"])
def test_coerce_replaces_unsafe_ids_with_uuid4(raw: str | None) -> None:
    value = coerce_request_id(raw)

    assert value != raw
    assert uuid.UUID(value).version == 4


def test_incoming_header_is_propagated(client: TestClient) -> None:
    resp = client.get("/echo", headers={REQUEST_ID_HEADER: "req-42"})

    assert resp.headers[REQUEST_ID_HEADER] == "req-42"
    assert resp.json() == {"state": "req-42", "context": "req-42"}


def test_missing_header_gets_generated_id(client: TestClient) -> None:
    resp = client.get("/echo")

    generated = resp.headers[REQUEST_ID_HEADER]
    assert uuid.UUID(generated)
    assert resp.json()["state"] == generated
