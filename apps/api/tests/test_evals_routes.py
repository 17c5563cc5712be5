from uuid import uuid4


def _payload(**overrides) -> dict:
    payload = {
        "interaction_id": "int-001",
        "prompt": "Explain quantum computing in simple terms.",
        "response": "Quantum computers use qubits.",
        "score": 88,
        "latency_ms": 640,
        "pii_tokens_redacted": 1,
    }
    payload.update(overrides)
    return payload


def test_record_then_get_evaluation(client) -> None:
    """POST /api/evals then GET /api/evals/{id} should return the stored row."""

    create_res = client.post("/api/evals", json=_payload())
    assert create_res.status_code == 200
    created = create_res.json()
    assert created["user_id"] == "local"
    assert "eval_id" in created

    get_res = client.get(f"/api/evals/{created['eval_id']}")
    assert get_res.status_code == 200
    fetched = get_res.json()
    assert fetched["eval_id"] == created["eval_id"]
    assert fetched["score"] == 88
    assert fetched["pii_tokens_redacted"] == 1


def test_tenant_cannot_be_set_from_the_body(client) -> None:
    res = client.post("/api/evals", json=_payload(user_id="someone_else"))

    assert res.status_code == 200
    assert res.json()["user_id"] == "local"


def test_invalid_evaluation_is_rejected(client) -> None:
    assert client.post("/api/evals", json=_payload(score=101)).status_code == 422
    assert client.post("/api/evals", json=_payload(latency_ms=-1)).status_code == 422
    assert client.post("/api/evals", json=_payload(pii_tokens_redacted=-2)).status_code == 422


def test_list_is_paginated_newest_first(client) -> None:
    for i in range(5):
        res = client.post(
            "/api/evals",
            json=_payload(
                interaction_id=f"int-{i}", created_at=f"2026-01-0{i + 1}T12:00:00Z"
            ),
        )
        assert res.status_code == 200

    page1 = client.get("/api/evals", params={"page": 1, "limit": 2}).json()
    page3 = client.get("/api/evals", params={"page": 3, "limit": 2}).json()

    assert page1["total"] == 5
    assert page1["total_pages"] == 3
    assert [e["interaction_id"] for e in page1["data"]] == ["int-4", "int-3"]
    assert [e["interaction_id"] for e in page3["data"]] == ["int-0"]


def test_empty_list_still_has_one_page(client) -> None:
    body = client.get("/api/evals").json()

    assert body == {"data": [], "total": 0, "page": 1, "limit": 20, "total_pages": 1}


def test_list_limits_are_validated(client) -> None:
    assert client.get("/api/evals", params={"limit": 0}).status_code == 422
    assert client.get("/api/evals", params={"limit": 101}).status_code == 422
    assert client.get("/api/evals", params={"page": 0}).status_code == 422


def test_unknown_evaluation_returns_404(client) -> None:
    assert client.get(f"/api/evals/{uuid4()}").status_code == 404


def test_other_tenants_evaluation_returns_404(client, monkeypatch) -> None:
    monkeypatch.setenv("AUTH_ENABLED", "1")
    monkeypatch.setenv("API_KEYS", "alicekey:alice:writer,bobkey:bob:reader")

    created = client.post(
        "/api/evals", json=_payload(), headers={"X-API-Key": "alicekey"}
    ).json()

    res = client.get(f"/api/evals/{created['eval_id']}", headers={"X-API-Key": "bobkey"})
    assert res.status_code == 404

    listing = client.get("/api/evals", headers={"X-API-Key": "bobkey"}).json()
    assert listing["total"] == 0


def test_recording_requires_writer_role_when_auth_enabled(client, monkeypatch) -> None:
    monkeypatch.setenv("AUTH_ENABLED", "1")
    monkeypatch.setenv("API_KEYS", "bobkey:bob:reader")

    res = client.post("/api/evals", json=_payload(), headers={"X-API-Key": "bobkey"})

    assert res.status_code == 403
