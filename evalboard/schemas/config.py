"""
Evaluation pipeline settings (per tenant).

Validation lives here, on the model, and the API endpoint is the single place it
runs. Out-of-range values are rejected (422), never clamped.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class RunPolicy(str, Enum):
    """
    How often the evaluation pipeline runs.

    - ALWAYS: evaluate every request
    - SAMPLED: evaluate `sample_rate_pct` percent of requests
    """

    ALWAYS = "always"
    SAMPLED = "sampled"


class EvalConfig(BaseModel):
    """Settings form contents. Tenants without stored settings read these defaults."""

    run_policy: RunPolicy = Field(default=RunPolicy.ALWAYS, description="always | sampled")
    sample_rate_pct: int = Field(
        default=10, ge=0, le=100, description="Percent of requests evaluated when sampled."
    )
    obfuscate_pii: bool = Field(default=False, description="Redact PII before storage.")
    max_eval_per_day: int = Field(default=100, ge=1, description="Daily evaluation ceiling.")
