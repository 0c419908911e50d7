"""POST /api/metrics/edit -- solve a wing back from an edited metric.

The interactive editor lets the user drag aspect ratio, taper ratio or
planform area directly; this endpoint returns the wing parameters that
produce the new value, plus the recomputed metrics and safety verdict.
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException
from pydantic import ValidationError

from aerogen.metrics import apply_metric_edit, compute_aero_metrics
from aerogen.models import CheckResult, MetricEditRequest
from aerogen.routes.generate import format_validation_error
from aerogen.safety import check

router = APIRouter(prefix="/api/metrics", tags=["metrics"])


@router.post("/edit", response_model=CheckResult, response_model_by_alias=True)
async def edit_metric(request: MetricEditRequest) -> CheckResult:
    """Apply one metric edit to a wing.

    Non-positive values, or edits whose solved wing falls outside the
    parameter limits (e.g. span > 100 m), are rejected with 422.
    """
    try:
        params = apply_metric_edit(request.params, request.metric, request.value)
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=format_validation_error(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    return CheckResult(params=params, metrics=compute_aero_metrics(params), safety=check(params))
