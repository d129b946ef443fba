from __future__ import annotations

from datetime import timedelta
from typing import Any

from factories import T0, FakeMetricRegistryRepository
from fastapi.testclient import TestClient

from credit_metrics_api.domain.enums.metric_registry import RegistryVersionStatus

BASE = "/v1/metric-registry"

DSCR: dict[str, Any] = {
    "formula": {"type": "divide", "left": "NOI", "right": "DEBT_SERVICE"},
    "dependsOn": ["NOI", "DEBT_SERVICE"],
    "description": "Debt service coverage ratio",
}


def test_create_draft_returns_201_with_seeded_entries(app_client: TestClient) -> None:
    resp = app_client.post(
        f"{BASE}/drafts",
        json={"name": "v2", "created_by": "analyst", "entries": {"DSCR": DSCR}},
    )

    assert resp.status_code == 201
    data = resp.json()["data"]
    assert data["version"]["status"] == "draft"
    assert data["version"]["name"] == "v2"
    assert data["version"]["content_hash"] is None
    assert [e["metric_key"] for e in data["entries"]] == ["DSCR"]
    assert data["entries"][0]["definition"] == DSCR


def test_create_draft_with_invalid_formula_maps_to_422(app_client: TestClient) -> None:
    resp = app_client.post(
        f"{BASE}/drafts", json={"name": "bad", "entries": {"DSCR": {"formula": {"type": "pow"}}}}
    )

    assert resp.status_code == 422
    error = resp.json()["error"]
    assert error["code"] == "invalid_formula"
    assert error["http_status"] == 422
    assert error["details"]["metric_key"] == "DSCR"


def test_add_entry_to_draft(
    app_client: TestClient, fake_repo: FakeMetricRegistryRepository
) -> None:
    draft = fake_repo.seed_version(name="v2")

    resp = app_client.post(
        f"{BASE}/drafts/{draft.id}/entries", json={"metric_key": "DSCR", "definition": DSCR}
    )

    assert resp.status_code == 201
    data = resp.json()["data"]
    assert data["registry_version_id"] == draft.id
    assert data["metric_key"] == "DSCR"
    assert len(data["definition_hash"]) == 64


def test_add_entry_to_published_version_is_conflict(
    app_client: TestClient, fake_repo: FakeMetricRegistryRepository
) -> None:
    published = fake_repo.seed_version(
        status=RegistryVersionStatus.PUBLISHED, content_hash="h1", published_at=T0
    )

    resp = app_client.post(
        f"{BASE}/drafts/{published.id}/entries", json={"metric_key": "DSCR", "definition": DSCR}
    )

    assert resp.status_code == 409
    assert resp.json()["error"]["code"] == "REGISTRY_IMMUTABLE"


def test_publish_draft_sets_content_hash(
    app_client: TestClient, fake_repo: FakeMetricRegistryRepository
) -> None:
    draft = fake_repo.seed_version(name="v2")
    fake_repo.seed_entry(draft.id, "DSCR", DSCR)

    resp = app_client.post(f"{BASE}/versions/{draft.id}/publish", json={"actor": "reviewer"})

    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["status"] == "published"
    assert len(data["content_hash"]) == 64
    assert data["published_at"] is not None


def test_publish_without_body_is_accepted(
    app_client: TestClient, fake_repo: FakeMetricRegistryRepository
) -> None:
    draft = fake_repo.seed_version(name="v2")
    fake_repo.seed_entry(draft.id, "DSCR", DSCR)

    resp = app_client.post(f"{BASE}/versions/{draft.id}/publish")

    assert resp.status_code == 200
    assert resp.json()["data"]["status"] == "published"


def test_publish_empty_draft_is_422(
    app_client: TestClient, fake_repo: FakeMetricRegistryRepository
) -> None:
    draft = fake_repo.seed_version(name="empty")

    resp = app_client.post(f"{BASE}/versions/{draft.id}/publish")

    assert resp.status_code == 422
    assert resp.json()["error"]["code"] == "no_entries"


def test_publish_non_draft_is_409(
    app_client: TestClient, fake_repo: FakeMetricRegistryRepository
) -> None:
    published = fake_repo.seed_version(
        status=RegistryVersionStatus.PUBLISHED, content_hash="h1", published_at=T0
    )

    resp = app_client.post(f"{BASE}/versions/{published.id}/publish")

    assert resp.status_code == 409
    assert resp.json()["error"]["code"] == "REGISTRY_IMMUTABLE"


def test_publish_unknown_version_is_404(app_client: TestClient) -> None:
    resp = app_client.post(f"{BASE}/versions/missing/publish")

    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "version_not_found"


def test_deprecate_published_version(
    app_client: TestClient, fake_repo: FakeMetricRegistryRepository
) -> None:
    published = fake_repo.seed_version(
        status=RegistryVersionStatus.PUBLISHED, content_hash="h1", published_at=T0
    )

    resp = app_client.post(f"{BASE}/versions/{published.id}/deprecate")

    assert resp.status_code == 200
    assert resp.json()["data"]["status"] == "deprecated"


def test_deprecate_draft_is_409(
    app_client: TestClient, fake_repo: FakeMetricRegistryRepository
) -> None:
    draft = fake_repo.seed_version()

    resp = app_client.post(f"{BASE}/versions/{draft.id}/deprecate")

    assert resp.status_code == 409
    assert resp.json()["error"]["code"] == "only_published_can_be_deprecated"


def test_list_versions_returns_published_newest_first(
    app_client: TestClient, fake_repo: FakeMetricRegistryRepository
) -> None:
    older = fake_repo.seed_version(
        name="v1", status=RegistryVersionStatus.PUBLISHED, content_hash="h1", published_at=T0
    )
    newer = fake_repo.seed_version(
        name="v2",
        status=RegistryVersionStatus.PUBLISHED,
        content_hash="h2",
        published_at=T0 + timedelta(days=1),
    )
    fake_repo.seed_version(name="draft")

    resp = app_client.get(f"{BASE}/versions")

    assert resp.status_code == 200
    assert [v["id"] for v in resp.json()["data"]] == [newer.id, older.id]


def test_get_version_includes_entries_and_definitions(
    app_client: TestClient, fake_repo: FakeMetricRegistryRepository
) -> None:
    draft = fake_repo.seed_version(name="v2")
    fake_repo.seed_entry(draft.id, "DSCR", DSCR)

    resp = app_client.get(f"{BASE}/versions/{draft.id}")

    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["version"]["id"] == draft.id
    assert [e["metric_key"] for e in data["entries"]] == ["DSCR"]
    definition = data["definitions"][0]
    assert definition["key"] == "DSCR"
    assert definition["depends_on"] == ["NOI", "DEBT_SERVICE"]
    assert definition["description"] == "Debt service coverage ratio"


def test_get_unknown_version_is_404(app_client: TestClient) -> None:
    resp = app_client.get(f"{BASE}/versions/nope")

    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "version_not_found"


def test_binding_is_null_when_nothing_published(app_client: TestClient) -> None:
    resp = app_client.get(f"{BASE}/binding", params={"bank_id": "bank-1"})

    assert resp.status_code == 200
    assert resp.json()["data"] is None


def test_binding_follows_bank_pin(
    app_client: TestClient, fake_repo: FakeMetricRegistryRepository
) -> None:
    pinned = fake_repo.seed_version(
        name="v1", status=RegistryVersionStatus.DEPRECATED, content_hash="h1", published_at=T0
    )
    fake_repo.seed_version(
        name="v2", status=RegistryVersionStatus.PUBLISHED, content_hash="h2", published_at=T0
    )
    fake_repo.seed_pin("bank-1", pinned.id)

    resp = app_client.get(f"{BASE}/binding", params={"bank_id": "bank-1"})

    assert resp.json()["data"] == {
        "version_id": pinned.id,
        "version_name": "v1",
        "content_hash": "h1",
        "pinned": True,
    }


def test_pin_then_unpin_bank(
    app_client: TestClient, fake_repo: FakeMetricRegistryRepository
) -> None:
    published = fake_repo.seed_version(
        status=RegistryVersionStatus.PUBLISHED, content_hash="h1", published_at=T0
    )

    pinned = app_client.put(
        f"{BASE}/pins/bank-1",
        json={"version_id": published.id, "pinned_by": "ops", "reason": "audit freeze"},
    )
    assert pinned.status_code == 200
    assert pinned.json()["data"]["registry_version_id"] == published.id
    assert pinned.json()["data"]["reason"] == "audit freeze"

    removed = app_client.delete(f"{BASE}/pins/bank-1")
    assert removed.status_code == 204
    assert removed.content == b""

    again = app_client.delete(f"{BASE}/pins/bank-1")
    assert again.status_code == 404
    assert again.json()["error"]["code"] == "pin_not_found"


def test_pin_to_draft_is_409(
    app_client: TestClient, fake_repo: FakeMetricRegistryRepository
) -> None:
    draft = fake_repo.seed_version()

    resp = app_client.put(f"{BASE}/pins/bank-1", json={"version_id": draft.id})

    assert resp.status_code == 409
    assert resp.json()["error"]["code"] == "draft_not_pinnable"


def test_request_validation_uses_error_envelope(app_client: TestClient) -> None:
    resp = app_client.post(
        f"{BASE}/drafts", json={"entries": {}}, headers={"X-Request-ID": "req-123"}
    )

    assert resp.status_code == 422
    error = resp.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    assert error["trace_id"] == "req-123"
    assert error["details"]["errors"]
    assert resp.headers["X-Request-ID"] == "req-123"


def test_error_envelope_carries_request_id(app_client: TestClient) -> None:
    resp = app_client.get(f"{BASE}/versions/nope", headers={"X-Request-ID": "trace-9"})

    assert resp.json()["error"]["trace_id"] == "trace-9"
    assert resp.headers["X-Request-ID"] == "trace-9"
