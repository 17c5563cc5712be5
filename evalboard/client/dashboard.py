"""
Typed dashboard client (httpx + RequestCache).

This is the "screen side" of the API: the same calls the dashboard pages make.
Reads go through a `RequestCache` with short, per-endpoint TTLs; writes go
straight to the API and then invalidate the reads they affect.

Errors stay distinct from empty data:
- 401 -> AuthenticationRequired (send the user to sign-in)
- any other non-2xx -> ApiError
- transport failures (httpx.HTTPError) propagate unchanged
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from evalboard.client.cache import CachedResponse, RequestCache
from evalboard.schemas.config import EvalConfig
from evalboard.schemas.evaluation import Evaluation, EvaluationCreate, EvaluationPage
from evalboard.schemas.stats import AggregateStats

logger = logging.getLogger("evalboard.client")

# Cache TTLs (seconds). Policy, not correctness: any value works, including 0.
STATS_TTL = 15.0
EVALUATIONS_PAGE_TTL = 8.0
RECENT_EVALUATIONS_TTL = 10.0
CONFIG_TTL = 12.0

STATS_PATH = "/api/evals/stats"
EVALS_PATH = "/api/evals"
CONFIG_PATH = "/api/config"


class ApiError(Exception):
    """Non-success response from the API."""

    def __init__(self, status_code: int, detail: Any) -> None:
        super().__init__(f"API error {status_code}: {detail}")
        self.status_code = status_code
        self.detail = detail


class AuthenticationRequired(ApiError):
    """The API rejected the request's tenant credentials (HTTP 401)."""


def _raise_for_status(response: CachedResponse | httpx.Response) -> None:
    status = response.status_code
    if 200 <= status < 300:
        return

    detail: Any = response.text
    try:
        payload = response.json()
        if isinstance(payload, dict) and "detail" in payload:
            detail = payload["detail"]
    except ValueError:
        pass

    if status == 401:
        raise AuthenticationRequired(status, detail)
    raise ApiError(status, detail)


class DashboardClient:
    """
    Client for the evalboard API.

    Args:
        base_url: API root, e.g. "http://localhost:8000".
        api_key: Sent as X-API-Key when the API runs with AUTH_ENABLED=1.
        cache: Injected RequestCache; one is built around `http` if omitted.
        http: Injected httpx.Client (tests pass one with a MockTransport).
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        api_key: str | None = None,
        *,
        cache: RequestCache | None = None,
        http: httpx.Client | None = None,
    ) -> None:
        headers = {"X-API-Key": api_key} if api_key else {}
        self._http = http or httpx.Client(base_url=base_url, headers=headers, timeout=30.0)
        if http is not None and api_key:
            self._http.headers["X-API-Key"] = api_key
        self.cache = cache or RequestCache(self._http.request)

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> DashboardClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # -----
    # Reads
    # -----

    def get_stats(self, days: int = 7) -> AggregateStats:
        response = self.cache.cached_fetch(f"{STATS_PATH}?days={days}", ttl=STATS_TTL)
        _raise_for_status(response)
        return AggregateStats.model_validate(response.json())

    def list_evaluations(self, page: int = 1, limit: int = 20) -> EvaluationPage:
        response = self.cache.cached_fetch(
            f"{EVALS_PATH}?page={page}&limit={limit}", ttl=EVALUATIONS_PAGE_TTL
        )
        _raise_for_status(response)
        return EvaluationPage.model_validate(response.json())

    def recent_evaluations(self, limit: int = 10) -> EvaluationPage:
        response = self.cache.cached_fetch(f"{EVALS_PATH}?limit={limit}", ttl=RECENT_EVALUATIONS_TTL)
        _raise_for_status(response)
        return EvaluationPage.model_validate(response.json())

    def get_config(self) -> EvalConfig:
        response = self.cache.cached_fetch(CONFIG_PATH, ttl=CONFIG_TTL)
        _raise_for_status(response)
        return EvalConfig.model_validate(response.json())

    # ------
    # Writes
    # ------

    def save_config(self, config: EvalConfig) -> EvalConfig:
        """Persist settings, then drop cached config so the next read is fresh."""

        response = self._http.post(CONFIG_PATH, json=config.model_dump(mode="json"))
        _raise_for_status(response)
        self.cache.clear_cache(CONFIG_PATH)
        return EvalConfig.model_validate(response.json())

    def record_evaluation(self, evaluation: EvaluationCreate) -> Evaluation:
        """Record one evaluation; cached tables and stats are invalidated."""

        response = self._http.post(
            EVALS_PATH, json=evaluation.model_dump(mode="json", exclude_none=True)
        )
        _raise_for_status(response)
        removed = self.cache.clear_cache(EVALS_PATH) + self.cache.clear_cache(STATS_PATH)
        logger.debug("recorded evaluation, invalidated %d cached reads", removed)
        return Evaluation.model_validate(response.json())
