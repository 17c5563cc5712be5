"""Health check and database keep-alive endpoints."""

from __future__ import annotations

import logging
import os
from datetime import datetime, timezone

from fastapi import APIRouter, Header
from fastapi.responses import JSONResponse

from apps.api import storage
from apps.api.auth import auth_enabled

logger = logging.getLogger("evalboard.api.health")

router = APIRouter(tags=["health"])


@router.get("/health")
def health_check():
    """Basic health check endpoint."""
    return {"status": "ok"}


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.api_route("/api/cron/keep-alive", methods=["GET", "POST"])
def keep_alive(authorization: str | None = Header(default=None)):
    """
    Run one cheap query so a hosted database does not auto-pause when idle.

    Intended for a daily scheduler. When CRON_SECRET is set the caller must send
    `Authorization: Bearer <CRON_SECRET>`. POST is accepted for manual testing.

    The response carries the evaluation count across all tenants, so with
    AUTH_ENABLED=1 the endpoint refuses to run until CRON_SECRET is configured.
    Without auth (local mode) the secret stays optional.
    """

    cron_secret = os.getenv("CRON_SECRET")
    if not cron_secret and auth_enabled():
        logger.error("keep-alive refused: AUTH_ENABLED=1 but CRON_SECRET is not set")
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": "CRON_SECRET is not configured",
                "timestamp": _timestamp(),
            },
        )
    if cron_secret and authorization != f"Bearer {cron_secret}":
        return JSONResponse(status_code=401, content={"error": "Unauthorized"})

    try:
        count = storage.BACKEND.count_evaluations()
    except Exception as e:
        logger.error("keep-alive query failed: %s", e)
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": str(e), "timestamp": _timestamp()},
        )

    logger.info("keep-alive ok evaluations=%d", count)
    return {
        "success": True,
        "message": "Database is active",
        "evaluations": count,
        "timestamp": _timestamp(),
    }
