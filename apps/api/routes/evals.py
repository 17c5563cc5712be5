"""
Evaluation routes (the paginated evaluations table + recording new rows).

All routes are tenant-scoped: the tenant comes from the auth dependency, never
from the request body or query string.
"""

from __future__ import annotations

import math
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query

from apps.api import storage
from apps.api.auth import AuthContext, require_tenant
from evalboard.schemas.evaluation import Evaluation, EvaluationCreate, EvaluationPage

router = APIRouter(prefix="/api/evals", tags=["evaluations"])


@router.get("", response_model=EvaluationPage)
def list_evaluations(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    auth: AuthContext = Depends(require_tenant()),
) -> EvaluationPage:
    """
    List the tenant's evaluations, newest first.

    `total_pages` is at least 1 so an empty table still renders "page 1 of 1".
    """

    total = storage.BACKEND.count_evaluations(auth.tenant)
    rows = storage.BACKEND.list_evaluations(auth.tenant, offset=(page - 1) * limit, limit=limit)
    return EvaluationPage(
        data=rows,
        total=total,
        page=page,
        limit=limit,
        total_pages=max(1, math.ceil(total / limit)),
    )


@router.post("", response_model=Evaluation)
def record_evaluation(
    evaluation_create: EvaluationCreate,
    auth: AuthContext = Depends(require_tenant({"writer", "admin"})),
) -> Evaluation:
    """Record one evaluation for the calling tenant."""

    return storage.BACKEND.create_evaluation(auth.tenant, evaluation_create)


@router.get("/{eval_id}", response_model=Evaluation)
def get_evaluation(
    eval_id: UUID,
    auth: AuthContext = Depends(require_tenant()),
) -> Evaluation:
    """Fetch one evaluation. Another tenant's evaluation is reported as not found."""

    evaluation = storage.BACKEND.get_evaluation(auth.tenant, eval_id)
    if evaluation is None:
        raise HTTPException(status_code=404, detail="Evaluation not found")
    return evaluation
