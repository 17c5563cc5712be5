"""
Evaluation schemas (Pydantic v2).

What this file does
-------------------
An "evaluation" is one scored AI interaction: the prompt, the model response,
the judge score (0-100), how long the call took, and how many PII tokens were
redacted before storage.

Three shapes live here:
- `EvaluationCreate`: what a client sends when recording an evaluation
- `Evaluation`: what we store and return (adds eval_id + tenant)
- `EvaluationRecord`: the narrow, read-only view the stats aggregator consumes

Tenant note
-----------
`user_id` is NOT part of `EvaluationCreate`. The tenant is always taken from the
authenticated request context, so a client can never write into another
tenant's data by putting a different id in the body.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def utc_now_naive() -> datetime:
    """Current UTC time as a naive datetime (the storage convention)."""

    return datetime.now(timezone.utc).replace(tzinfo=None)


class EvaluationCreate(BaseModel):
    """Input model for recording a new evaluation."""

    interaction_id: str = Field(..., min_length=1, description="Caller-side interaction id.")
    prompt: str = Field(..., description="Prompt sent to the model.")
    response: str = Field(..., description="Model response that was evaluated.")
    score: float = Field(..., ge=0, le=100, description="Judge score, 0-100 inclusive.")
    latency_ms: int = Field(..., ge=0, description="End-to-end latency in milliseconds.")
    pii_tokens_redacted: int | None = Field(
        default=None, ge=0, description="PII tokens redacted (null means none recorded)."
    )
    flags: dict[str, Any] | None = Field(
        default=None, description="Optional flags, e.g. {'timeout': true}."
    )

    # Optional so seed scripts can backdate rows; the server uses "now" otherwise.
    created_at: datetime | None = Field(
        default=None, description="UTC timestamp of the evaluation (defaults to now)."
    )


class Evaluation(BaseModel):
    """Stored/returned evaluation (adds eval_id + owning tenant)."""

    eval_id: UUID = Field(default_factory=uuid4, description="Unique evaluation identifier.")
    user_id: str = Field(..., description="Owning tenant.")
    created_at: datetime = Field(
        default_factory=utc_now_naive, description="UTC timestamp of the evaluation."
    )
    interaction_id: str = Field(..., description="Caller-side interaction id.")
    prompt: str = Field(..., description="Prompt sent to the model.")
    response: str = Field(..., description="Model response that was evaluated.")
    score: float = Field(..., ge=0, le=100, description="Judge score, 0-100 inclusive.")
    latency_ms: int = Field(..., ge=0, description="End-to-end latency in milliseconds.")
    pii_tokens_redacted: int | None = Field(default=None, ge=0)
    flags: dict[str, Any] | None = Field(default=None)

    def to_record(self) -> EvaluationRecord:
        return EvaluationRecord(
            created_at=self.created_at,
            score=self.score,
            latency_ms=self.latency_ms,
            pii_tokens_redacted=self.pii_tokens_redacted,
        )


class EvaluationRecord(BaseModel):
    """
    The four columns the stats aggregator reads.

    Storage backends return these from `page_evaluations` so the aggregator never
    sees prompts/responses it has no use for.
    """

    created_at: datetime
    score: float = Field(..., ge=0, le=100)
    latency_ms: int = Field(..., ge=0)
    pii_tokens_redacted: int | None = Field(default=None, ge=0)


class EvaluationPage(BaseModel):
    """One page of the evaluations table (newest first)."""

    data: list[Evaluation] = Field(default_factory=list)
    total: int = Field(..., ge=0, description="Total evaluations for the tenant.")
    page: int = Field(..., ge=1)
    limit: int = Field(..., ge=1)
    total_pages: int = Field(..., ge=1, description="Always at least 1, even when empty.")
