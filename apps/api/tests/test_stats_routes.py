"""
GET /api/evals/stats tests.

These tests verify:
- the default window is 7 days and the series always has `days` points
- invalid `days` is rejected, not clamped
- tenants only ever see their own evaluations
- errors surface as errors (never as an all-zero payload)
"""

from datetime import datetime, timezone

from apps.api import storage


def test_default_window_is_seven_days(client) -> None:
    res = client.get("/api/evals/stats")

    assert res.status_code == 200
    body = res.json()
    assert body["days"] == 7
    assert len(body["daily_trends"]) == 7
    assert body["daily_trends"][-1]["date"] == datetime.now(timezone.utc).date().isoformat()
    assert body["total"] == 0
    assert res.headers["Cache-Control"] == "private, max-age=30, stale-while-revalidate=60"


def test_stats_roll_up_seeded_evaluations(client, seed) -> None:
    seed("local", [80, 90, 70], latency_ms=200)
    seed("local", [40], latency_ms=1000, days_ago=3, pii=2)

    res = client.get("/api/evals/stats", params={"days": 30})

    assert res.status_code == 200
    body = res.json()
    assert len(body["daily_trends"]) == 30
    assert body["total"] == 4
    assert body["avg_score"] == 70.0
    assert body["avg_latency"] == 400
    assert body["success_rate"] == 75.0
    assert body["total_pii_redacted"] == 2
    assert body["score_distribution"] == {"excellent": 1, "good": 2, "fair": 0, "poor": 1}

    today = body["daily_trends"][-1]
    assert today == {
        "date": datetime.now(timezone.utc).date().isoformat(),
        "count": 3,
        "avg_score": 80.0,
        "avg_latency": 200,
    }
    assert body["daily_trends"][-4]["count"] == 1
    assert sum(p["count"] for p in body["daily_trends"]) == body["total"]


def test_rows_outside_window_are_ignored(client, seed) -> None:
    seed("local", [95], days_ago=10)
    seed("local", [85], days_ago=2)

    body = client.get("/api/evals/stats", params={"days": 7}).json()

    assert body["total"] == 1
    assert body["avg_score"] == 85.0


def test_invalid_days_is_rejected(client) -> None:
    assert client.get("/api/evals/stats", params={"days": 0}).status_code == 422
    assert client.get("/api/evals/stats", params={"days": -7}).status_code == 422
    assert client.get("/api/evals/stats", params={"days": "week"}).status_code == 422


def test_any_positive_days_is_accepted(client) -> None:
    res = client.get("/api/evals/stats", params={"days": 45})

    assert res.status_code == 200
    assert len(res.json()["daily_trends"]) == 45


def test_tenants_are_isolated(client, seed, monkeypatch) -> None:
    monkeypatch.setenv("AUTH_ENABLED", "1")
    monkeypatch.setenv("API_KEYS", "alicekey:alice:reader,bobkey:bob:reader")
    seed("alice", [90, 90])
    seed("bob", [10])

    alice = client.get("/api/evals/stats", headers={"X-API-Key": "alicekey"}).json()
    bob = client.get("/api/evals/stats", headers={"X-API-Key": "bobkey"}).json()

    assert alice["total"] == 2
    assert alice["avg_score"] == 90.0
    assert bob["total"] == 1
    assert bob["avg_score"] == 10.0


def test_missing_credentials_are_rejected_before_store_access(client, monkeypatch) -> None:
    monkeypatch.setenv("AUTH_ENABLED", "1")
    monkeypatch.setenv("API_KEYS", "alicekey:alice:reader")

    def _fail(*args, **kwargs):
        raise AssertionError("store must not be queried without a tenant")

    monkeypatch.setattr(storage.BACKEND, "page_evaluations", _fail)

    assert client.get("/api/evals/stats").status_code == 401
    assert client.get("/api/evals/stats", headers={"X-API-Key": "nope"}).status_code == 401


def test_store_failure_is_an_error_not_zero_data(client, monkeypatch) -> None:
    def _boom(*args, **kwargs):
        raise ConnectionError("database unreachable")

    monkeypatch.setattr(storage.BACKEND, "page_evaluations", _boom)

    res = client.get("/api/evals/stats")

    assert res.status_code == 500
    assert res.json() == {"detail": "Failed to compute evaluation stats"}


def test_pagination_is_driven_by_env_page_size(client, seed, monkeypatch) -> None:
    monkeypatch.setenv("STATS_PAGE_SIZE", "5")
    seed("local", [75] * 23)

    calls = []
    original = storage.BACKEND.page_evaluations

    def _spy(user_id, *, since, offset, limit):
        calls.append((offset, limit))
        return original(user_id, since=since, offset=offset, limit=limit)

    monkeypatch.setattr(storage.BACKEND, "page_evaluations", _spy)

    body = client.get("/api/evals/stats").json()

    assert body["total"] == 23
    assert calls == [(0, 5), (5, 5), (10, 5), (15, 5), (20, 5)]


def test_window_over_row_ceiling_is_reported(client, seed, monkeypatch) -> None:
    monkeypatch.setenv("STATS_MAX_ROWS", "3")
    seed("local", [75] * 4)

    res = client.get("/api/evals/stats")

    assert res.status_code == 422
    assert "3" in res.json()["detail"]
