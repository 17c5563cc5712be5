"""
Stats routes (dashboard stat cards + trend chart).

GET /api/evals/stats?days=N returns the tenant's rollup for the last N UTC days.

Error behavior (important for the UI)
-------------------------------------
- no/invalid credentials -> 401 (from the tenant dependency, before any query)
- days < 1 -> 422 (rejected, never clamped); missing days -> 7
- window too large -> 422 naming the row ceiling
- store failure -> 500

An error is never turned into an all-zero payload: "no data" and "failed" must
look different on the dashboard.
"""

from __future__ import annotations

import logging
import os

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from apps.api import storage
from apps.api.auth import AuthContext, require_tenant
from evalboard.schemas.stats import AggregateStats
from evalboard.stats.aggregator import (
    DEFAULT_MAX_ROWS,
    DEFAULT_PAGE_SIZE,
    InvalidWindowError,
    WindowTooLargeError,
    aggregate_stats,
)

logger = logging.getLogger("evalboard.api.stats")

router = APIRouter(prefix="/api/evals", tags=["stats"])

# Per-tenant data: shared caches must not keep it.
STATS_CACHE_CONTROL = "private, max-age=30, stale-while-revalidate=60"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    value = int(raw)
    if value < 1:
        raise ValueError(f"{name} must be >= 1, got {value}")
    return value


@router.get("/stats", response_model=AggregateStats)
def get_stats(
    response: Response,
    days: int = Query(7, ge=1, description="Trailing window in UTC calendar days."),
    auth: AuthContext = Depends(require_tenant()),
) -> AggregateStats:
    """Aggregate the calling tenant's evaluations over the last `days` days."""

    try:
        stats = aggregate_stats(
            storage.BACKEND,
            auth.tenant,
            days,
            page_size=_env_int("STATS_PAGE_SIZE", DEFAULT_PAGE_SIZE),
            max_rows=_env_int("STATS_MAX_ROWS", DEFAULT_MAX_ROWS),
        )
    except (InvalidWindowError, WindowTooLargeError) as e:
        raise HTTPException(status_code=422, detail=str(e))
    except Exception:
        logger.exception("stats aggregation failed user=%s days=%d", auth.tenant, days)
        raise HTTPException(status_code=500, detail="Failed to compute evaluation stats")

    response.headers["Cache-Control"] = STATS_CACHE_CONTROL
    return stats
