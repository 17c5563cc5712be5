"""
Tenant resolution (API-key authentication).

Why this exists
---------------
Every evaluation belongs to exactly one tenant, and every query filters on it.
So before a route touches storage it needs a trustworthy answer to
"which tenant is calling?".

Sign-in itself is delegated to an external identity provider. This module is
the thin boundary that maps a credential (X-API-Key) to a tenant id + roles.

Modes
-----
- AUTH_ENABLED unset/false: local mode. Every request runs as DEFAULT_TENANT
  (default "local"), which keeps local dashboards frictionless.
- AUTH_ENABLED=1: X-API-Key is required and resolved against API_KEYS.
  Missing/unknown keys are rejected with 401 *before* any storage access, so a
  UI can tell "please sign in" apart from "you have no data yet".
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from fastapi import Header, HTTPException

logger = logging.getLogger("evalboard.auth")


@dataclass(frozen=True)
class AuthContext:
    """Tenant identity + roles derived from the API key."""

    user: str
    roles: frozenset[str]
    authenticated: bool

    @property
    def tenant(self) -> str:
        return self.user


def _is_truthy(value: str | None) -> bool:
    return (value or "").strip().lower() in {"1", "true", "yes", "y", "on"}


def auth_enabled() -> bool:
    """Feature flag for API-key auth. Enable with AUTH_ENABLED=1."""

    return _is_truthy(os.getenv("AUTH_ENABLED"))


def default_tenant() -> str:
    return os.getenv("DEFAULT_TENANT", "local").strip() or "local"


def parse_api_keys(raw: str | None) -> dict[str, AuthContext]:
    """
    Parse API_KEYS from env into a mapping.

    Format (comma-separated entries):
        API_KEYS="key:user:role1|role2,otherkey:svc:admin"

    Examples:
        API_KEYS="alicekey:alice:reader"
        API_KEYS="alicekey:alice:reader|writer,opskey:ops:admin"
    """

    if not raw:
        return {}

    mapping: dict[str, AuthContext] = {}
    entries = [e.strip() for e in raw.split(",") if e.strip()]
    for entry in entries:
        parts = entry.split(":")
        if len(parts) != 3 or not parts[0] or not parts[1]:
            raise ValueError(
                "Invalid API_KEYS entry. Expected 'key:user:role1|role2' (comma-separated)."
            )
        key, user, roles_raw = parts
        roles = frozenset(r.strip() for r in roles_raw.split("|") if r.strip())
        mapping[key] = AuthContext(user=user, roles=roles, authenticated=True)
    return mapping


def get_auth_context(x_api_key: str | None) -> AuthContext:
    """Resolve the calling tenant, or raise 401/500."""

    if not auth_enabled():
        return AuthContext(
            user=default_tenant(), roles=frozenset({"admin"}), authenticated=False
        )

    try:
        api_keys = parse_api_keys(os.getenv("API_KEYS"))
    except ValueError as e:
        logger.error("API_KEYS is malformed: %s", e)
        raise HTTPException(status_code=500, detail="API_KEYS is misconfigured")

    if not api_keys:
        raise HTTPException(
            status_code=500,
            detail="AUTH_ENABLED=1 but API_KEYS is not configured",
        )

    if not x_api_key:
        raise HTTPException(status_code=401, detail="Missing X-API-Key")

    ctx = api_keys.get(x_api_key)
    if ctx is None:
        raise HTTPException(status_code=401, detail="Invalid X-API-Key")
    return ctx


def require_tenant(required_roles: set[str] | None = None):
    """
    FastAPI dependency factory: resolve the tenant and (optionally) check roles.

    In local mode the default tenant is allowed everything.
    """

    def _dep(x_api_key: str | None = Header(default=None, alias="X-API-Key")) -> AuthContext:
        ctx = get_auth_context(x_api_key)

        if auth_enabled() and required_roles:
            if ctx.roles.isdisjoint(required_roles):
                raise HTTPException(status_code=403, detail="Forbidden (insufficient role)")
        return ctx

    return _dep
