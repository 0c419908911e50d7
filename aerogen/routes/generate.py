"""POST /api/generate and POST /api/check -- REST entry points to the kernel.

/api/generate runs the full pipeline: text extraction (unless the caller
supplies a raw record), normalization, mesh build, metrics and safety.  The
mesh itself is summarized, not returned; use /ws/preview or /api/export for
buffers.

/api/check skips normalization and meshing and only reports metrics and the
safety verdict for an already-valid parameter record.
"""

from __future__ import annotations

import logging
from functools import partial
from typing import Any

import anyio
from fastapi import APIRouter, Body, Depends, HTTPException
from pydantic import ValidationError

from aerogen.extraction import ExtractionClient, ExtractionError, get_api_key
from aerogen.geometry.engine import _mesh_limiter, generate_component, mesh_summary
from aerogen.metrics import compute_aero_metrics
from aerogen.models import CheckResult, GenerateRequest, GenerationResult, parse_component
from aerogen.normalize import MissingTypeError
from aerogen.routes.snapshots import get_storage as get_snapshot_storage, save_snapshot
from aerogen.safety import check
from aerogen.storage import StorageBackend

logger = logging.getLogger("aerogen.generate")

router = APIRouter(prefix="/api", tags=["generate"])

# ---------------------------------------------------------------------------
# Dependency: extraction client
# ---------------------------------------------------------------------------

_default_extractor: ExtractionClient | None = None


def get_extractor() -> ExtractionClient:
    """FastAPI dependency returning the shared extraction client.

    One client per process keeps the discovered model cached between
    requests.
    """
    global _default_extractor  # noqa: PLW0603
    if _default_extractor is None:
        _default_extractor = ExtractionClient()
    return _default_extractor


def set_extractor(extractor: ExtractionClient | None) -> None:
    """Override the default extraction client (called by tests)."""
    global _default_extractor  # noqa: PLW0603
    _default_extractor = extractor


# ---------------------------------------------------------------------------
# Helpers shared with the other routers
# ---------------------------------------------------------------------------


def format_validation_error(exc: ValidationError) -> str:
    """Collapse a pydantic error into ``loc: msg`` pairs (first five)."""
    parts = []
    for err in exc.errors()[:5]:
        loc = ".".join(str(part) for part in err["loc"])
        parts.append(f"{loc}: {err['msg']}" if loc else err["msg"])
    return "; ".join(parts)


def parse_params_or_422(payload: Any):
    """Validate a request body into ComponentParameters, or raise HTTP 422."""
    if not isinstance(payload, dict):
        raise HTTPException(status_code=422, detail="Expected a JSON object")
    try:
        return parse_component(payload)
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=format_validation_error(exc)) from exc


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@router.post("/generate", response_model=GenerationResult, response_model_by_alias=True)
async def generate(
    request: GenerateRequest,
    extractor: ExtractionClient = Depends(get_extractor),
    snapshots: StorageBackend = Depends(get_snapshot_storage),
) -> GenerationResult:
    """Generate a component from a free-text description.

    Error mapping:
      - no ``raw`` and no API key (request or AEROGEN_API_KEY) -> 400
      - extraction service failure -> 502
      - no resolvable component kind -> 422, message verbatim
    """
    raw = request.raw
    if raw is None:
        api_key = request.api_key or get_api_key()
        if not api_key:
            raise HTTPException(
                status_code=400,
                detail="An API key is required to extract parameters from text.",
            )
        try:
            raw = await extractor.extract(request.text, api_key)
        except ExtractionError as exc:
            logger.warning("Extraction failed: %s", exc)
            raise HTTPException(status_code=502, detail=str(exc)) from exc

    try:
        outcome = await anyio.to_thread.run_sync(
            partial(generate_component, raw, request.text),
            limiter=_mesh_limiter,
        )
    except MissingTypeError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception("Generation failed")
        raise HTTPException(status_code=500, detail=str(exc)) from exc

    params_data = outcome.params.model_dump(by_alias=True)
    try:
        save_snapshot(snapshots, params_data)
    except (OSError, ValueError):
        logger.warning("Could not snapshot %s parameters", outcome.params.kind, exc_info=True)

    return GenerationResult(
        params=outcome.params,
        warnings=outcome.warnings,
        metrics=outcome.metrics,
        safety=outcome.safety,
        mesh=mesh_summary(outcome.mesh),
    )


@router.post("/check", response_model=CheckResult, response_model_by_alias=True)
async def check_params(payload: dict = Body(...)) -> CheckResult:
    """Metrics and safety verdict for a validated parameter record."""
    params = parse_params_or_422(payload)
    return CheckResult(params=params, metrics=compute_aero_metrics(params), safety=check(params))
