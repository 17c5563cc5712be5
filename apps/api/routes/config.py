"""
Settings routes (evaluation pipeline configuration).

This endpoint is the single authoritative validation point for settings:
`EvalConfig` rejects out-of-range values (422) instead of clamping them.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from apps.api import storage
from apps.api.auth import AuthContext, require_tenant
from evalboard.schemas.config import EvalConfig

logger = logging.getLogger("evalboard.api.config")

router = APIRouter(prefix="/api/config", tags=["config"])


@router.get("", response_model=EvalConfig)
def get_config(auth: AuthContext = Depends(require_tenant())) -> EvalConfig:
    """Return the tenant's settings (defaults if nothing has been saved yet)."""

    return storage.BACKEND.get_config(auth.tenant) or EvalConfig()


@router.post("", response_model=EvalConfig)
def save_config(
    config: EvalConfig,
    auth: AuthContext = Depends(require_tenant({"writer", "admin"})),
) -> EvalConfig:
    """Validate and store the tenant's settings."""

    saved = storage.BACKEND.save_config(auth.tenant, config)
    logger.info(
        "config saved user=%s run_policy=%s sample_rate_pct=%d",
        auth.tenant,
        saved.run_policy.value,
        saved.sample_rate_pct,
    )
    return saved
