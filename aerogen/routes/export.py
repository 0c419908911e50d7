"""POST /api/export -- download the mesh for a parameter record.

Formats:
  stl   binary STL, ``aircraft_part.stl``
  gltf  glTF 2.0 JSON with an embedded buffer, ``aircraft_part.gltf``

The mesh is built in a worker thread and returned directly; nothing is
written to disk.
"""

from __future__ import annotations

import logging

import anyio
from fastapi import APIRouter, Body, HTTPException, Query, Response

from aerogen.export import export_mesh
from aerogen.geometry.engine import _mesh_limiter, build_mesh
from aerogen.models import ExportFormat
from aerogen.routes.generate import parse_params_or_422

logger = logging.getLogger("aerogen.export")

router = APIRouter(prefix="/api", tags=["export"])


@router.post("/export")
async def export_part(
    payload: dict = Body(...),
    format: ExportFormat = Query("stl"),
) -> Response:
    """Build the mesh for *payload* and return it as an attachment."""
    params = parse_params_or_422(payload)

    try:
        mesh = await anyio.to_thread.run_sync(
            build_mesh, params, limiter=_mesh_limiter, abandon_on_cancel=False,
        )
        body, media_type, filename = export_mesh(mesh, format)
    except Exception as exc:
        logger.exception("Export failed")
        raise HTTPException(status_code=500, detail=f"Export failed: {exc}") from exc

    return Response(
        content=body,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
