"""
Auth tests (tenant resolution).

These tests verify:
- auth is optional by default (requests run as DEFAULT_TENANT)
- when enabled, every tenant-scoped endpoint requires X-API-Key
- misconfiguration is reported as a server error, not as "unauthorized"
"""

import pytest

from apps.api.auth import parse_api_keys


def test_local_mode_uses_default_tenant(client, monkeypatch) -> None:
    monkeypatch.setenv("DEFAULT_TENANT", "team-eval")

    res = client.post(
        "/api/evals",
        json={
            "interaction_id": "i-1",
            "prompt": "p",
            "response": "r",
            "score": 72,
            "latency_ms": 300,
        },
    )

    assert res.status_code == 200
    assert res.json()["user_id"] == "team-eval"


@pytest.mark.parametrize("path", ["/api/evals/stats", "/api/evals", "/api/config"])
def test_auth_enabled_requires_api_key(client, monkeypatch, path) -> None:
    monkeypatch.setenv("AUTH_ENABLED", "1")
    monkeypatch.setenv("API_KEYS", "testkey:jdoe:reader")

    missing = client.get(path)
    assert missing.status_code == 401
    assert missing.json()["detail"] == "Missing X-API-Key"

    assert client.get(path, headers={"X-API-Key": "testkey"}).status_code == 200


def test_auth_enabled_without_keys_is_a_server_error(client, monkeypatch) -> None:
    monkeypatch.setenv("AUTH_ENABLED", "1")

    res = client.get("/api/evals/stats", headers={"X-API-Key": "anything"})

    assert res.status_code == 500


def test_config_write_requires_writer_role(client, monkeypatch) -> None:
    monkeypatch.setenv("AUTH_ENABLED", "1")
    monkeypatch.setenv("API_KEYS", "readkey:jdoe:reader,writekey:jdoe:writer")

    body = {"run_policy": "always"}
    assert client.post("/api/config", json=body, headers={"X-API-Key": "readkey"}).status_code == 403
    assert client.post("/api/config", json=body, headers={"X-API-Key": "writekey"}).status_code == 200


def test_parse_api_keys() -> None:
    keys = parse_api_keys("k1:alice:reader|writer, k2:bob:")

    assert keys["k1"].user == "alice"
    assert keys["k1"].roles == frozenset({"reader", "writer"})
    assert keys["k2"].roles == frozenset()
    assert parse_api_keys(None) == {}

    with pytest.raises(ValueError):
        parse_api_keys("missing-parts")
