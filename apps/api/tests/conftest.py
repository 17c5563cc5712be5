"""
pytest configuration (fixtures).

Storage is process-global (`storage.BACKEND`), so every test starts from an
empty store and from "auth disabled" unless the test opts in with monkeypatch.
"""

from collections.abc import Callable
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from apps.api import storage
from apps.api.main import app
from evalboard.schemas.evaluation import EvaluationCreate


@pytest.fixture(autouse=True)
def _reset_store_before_each_test(monkeypatch) -> None:
    """Empty the active backend and clear auth/env knobs a test may have set."""

    for name in ("AUTH_ENABLED", "API_KEYS", "DEFAULT_TENANT", "CRON_SECRET"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.delenv("STATS_PAGE_SIZE", raising=False)
    monkeypatch.delenv("STATS_MAX_ROWS", raising=False)

    storage.BACKEND.reset()


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


@pytest.fixture
def seed() -> Callable[..., None]:
    """
    Insert evaluations for a tenant directly through the backend.

    `days_ago` is measured from now (UTC), so rows land inside the stats window.
    """

    def _seed(
        user_id: str,
        scores: list[float],
        *,
        latency_ms: int = 200,
        days_ago: int = 0,
        pii: int | None = None,
    ) -> None:
        when = datetime.now(timezone.utc) - timedelta(days=days_ago)
        for i, score in enumerate(scores):
            storage.BACKEND.create_evaluation(
                user_id,
                EvaluationCreate(
                    interaction_id=f"{user_id}-{days_ago}-{i}",
                    prompt="What is the capital of France?",
                    response="Paris.",
                    score=score,
                    latency_ms=latency_ms,
                    pii_tokens_redacted=pii,
                    created_at=when.replace(hour=0, minute=0, second=0, microsecond=0)
                    + timedelta(seconds=i),
                ),
            )

    return _seed
