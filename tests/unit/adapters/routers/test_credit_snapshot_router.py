from __future__ import annotations

from datetime import timedelta
from decimal import Decimal
from typing import Any

from factories import T0, FakeMetricRegistryRepository
from fastapi.testclient import TestClient

from credit_metrics_api.domain.enums.credit_analysis import CreditRatio
from credit_metrics_api.domain.enums.metric_registry import RegistryVersionStatus

BASE = "/v1/credit-snapshots"


def _period(**overrides: Any) -> dict[str, Any]:
    period: dict[str, Any] = {
        "period_id": "FY2024",
        "period_end": "2024-12-31",
        "period_type": "FYE",
        "income": {
            "revenue": "10000000",
            "netIncome": "800000",
            "interest": "500000",
            "ebitda": "2000000",
        },
        "balance": {
            "cash": "400000",
            "accountsReceivable": "600000",
            "inventory": "500000",
            "shortTermDebt": "1000000",
            "longTermDebt": "5000000",
        },
    }
    period.update(overrides)
    return period


def _publish(
    repo: FakeMetricRegistryRepository, name: str, days: int, entries: dict[str, Any]
) -> str:
    version = repo.seed_version(
        name=name,
        status=RegistryVersionStatus.PUBLISHED,
        content_hash=f"hash-{name}",
        published_at=T0 + timedelta(days=days),
    )
    for key, definition in entries.items():
        repo.seed_entry(version.id, key, definition)
    return version.id


def _ratio(body: dict[str, Any], metric: str) -> dict[str, Any]:
    return next(r for r in body["data"]["ratios"] if r["metric"] == metric)


def test_compute_returns_ratios_in_canonical_order(app_client: TestClient) -> None:
    resp = app_client.post(f"{BASE}/compute", json={"deal_id": "deal-1", "periods": [_period()]})

    assert resp.status_code == 200
    body = resp.json()
    data = body["data"]
    assert data["deal_id"] == "deal-1"
    assert data["selected_period"]["period_id"] == "FY2024"
    assert data["selected_period"]["diagnostics"]["strategy"] == "LATEST_FY"
    assert [r["metric"] for r in data["ratios"]] == [r.value for r in CreditRatio]

    dscr = _ratio(body, "dscr")
    assert isinstance(dscr["value"], str)
    assert Decimal(dscr["value"]) == Decimal("4")
    assert dscr["available"] is True
    assert dscr["formula"] == "EBITDA / TotalDebtService"
    assert Decimal(_ratio(body, "workingCapital")["value"]) == Decimal("500000")


def test_compute_uses_interest_proxy_without_instruments(app_client: TestClient) -> None:
    resp = app_client.post(f"{BASE}/compute", json={"deal_id": "deal-1", "periods": [_period()]})

    debt_service = resp.json()["data"]["debt_service"]
    assert debt_service["source"] == "income.interest"
    assert Decimal(debt_service["total_debt_service"]) == Decimal("500000")
    assert debt_service["proposed"] is None


def test_compute_treats_null_facts_as_missing(app_client: TestClient) -> None:
    period = _period()
    period["income"]["netIncome"] = None

    resp = app_client.post(f"{BASE}/compute", json={"deal_id": "deal-1", "periods": [period]})

    assert resp.status_code == 200
    net_margin = _ratio(resp.json(), "netMargin")
    assert net_margin["value"] is None
    assert net_margin["available"] is False
    assert net_margin["missing_inputs"] == ["netIncome"]
    assert net_margin["inputs"]["netIncome"] is None


def test_compute_with_supplied_instruments_uses_debt_engine(app_client: TestClient) -> None:
    instrument = {
        "instrument_id": "loan-1",
        "source": "existing",
        "principal": "1200000",
        "rate": "0",
        "amortization_months": 120,
    }

    resp = app_client.post(
        f"{BASE}/compute",
        json={"deal_id": "deal-1", "periods": [_period()], "instruments": [instrument]},
    )

    debt_service = resp.json()["data"]["debt_service"]
    assert debt_service["source"] == "debtEngine"
    assert Decimal(debt_service["total_debt_service"]) == Decimal("120000")


def test_compute_binds_registry_and_replays_proof(
    app_client: TestClient, fake_repo: FakeMetricRegistryRepository
) -> None:
    version_id = _publish(
        fake_repo,
        "v1",
        1,
        {
            "MARGIN": {"formula": {"type": "divide", "left": "EBITDA", "right": "REVENUE"}},
            "MARGIN_PCT": {"formula": {"type": "multiply", "left": "MARGIN", "right": 100}},
        },
    )
    payload = {"deal_id": "deal-1", "periods": [_period()], "bank_id": "bank-a"}

    first = app_client.post(f"{BASE}/compute", json=payload).json()["data"]

    assert first["registry_binding"]["version_id"] == version_id
    assert first["registry_binding"]["pinned"] is False
    assert Decimal(first["registry_metrics"]["values"]["MARGIN_PCT"]) == Decimal("20")
    proof = first["replay_proof"]
    assert proof["version_id"] == version_id
    assert proof["outputs_hash"] == first["outputs_hash"]
    assert first["replay_verification"] is None

    replayed = app_client.post(
        f"{BASE}/compute", json={**payload, "replay_proof": proof}
    ).json()["data"]

    assert replayed["replay_verification"]["verified"] is True
    assert replayed["outputs_hash"] == first["outputs_hash"]


def test_compute_explicit_unknown_period_is_404(app_client: TestClient) -> None:
    resp = app_client.post(
        f"{BASE}/compute",
        json={
            "deal_id": "deal-1",
            "periods": [_period()],
            "period_selection": {"strategy": "EXPLICIT", "period_id": "FY1999"},
        },
    )

    assert resp.status_code == 404
    error = resp.json()["error"]
    assert error["code"] == "period_not_found"
    assert error["details"]["strategy"] == "EXPLICIT"


def test_compute_rejects_unknown_period_type(app_client: TestClient) -> None:
    resp = app_client.post(
        f"{BASE}/compute", json={"deal_id": "deal-1", "periods": [_period(period_type="Q1")]}
    )

    assert resp.status_code == 422
    assert resp.json()["error"]["code"] == "VALIDATION_ERROR"


def test_upgrade_preview_reports_changed_metrics(
    app_client: TestClient, fake_repo: FakeMetricRegistryRepository
) -> None:
    margin = {"formula": {"type": "divide", "left": "EBITDA", "right": "REVENUE"}}
    current_id = _publish(
        fake_repo, "v1", 1, {"MARGIN": margin, "COVER": {"expr": "EBITDA / INTEREST"}}
    )
    candidate_id = _publish(
        fake_repo, "v2", 2, {"MARGIN": margin, "COVER": {"expr": "EBITDA / SHORT_TERM_DEBT"}}
    )
    fake_repo.seed_pin("bank-a", current_id)

    resp = app_client.post(
        f"{BASE}/upgrade-preview",
        json={
            "deal_id": "deal-1",
            "periods": [_period()],
            "candidate_version_id": candidate_id,
            "bank_id": "bank-a",
        },
    )

    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["period_id"] == "FY2024"
    assert data["current_binding"]["version_id"] == current_id
    assert data["current_binding"]["pinned"] is True
    assert data["candidate_binding"]["version_id"] == candidate_id
    assert data["has_drift"] is True
    assert data["unchanged"] == ["MARGIN"]
    [changed] = data["changed"]
    assert changed["metric"] == "COVER"
    assert Decimal(changed["before"]) == Decimal("4")
    assert Decimal(changed["after"]) == Decimal("2")
    assert Decimal(changed["delta"]) == Decimal("-2")


def test_upgrade_preview_unknown_candidate_is_404(app_client: TestClient) -> None:
    resp = app_client.post(
        f"{BASE}/upgrade-preview",
        json={"deal_id": "deal-1", "periods": [_period()], "candidate_version_id": "nope"},
    )

    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "version_not_found"
