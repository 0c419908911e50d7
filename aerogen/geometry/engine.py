"""Geometry engine -- mesh dispatch and the generation pipeline.

This module ties the per-kind builders together and provides the entry
points used by the REST/WebSocket handlers.

- ``build_mesh()`` -- centered mesh for any parameter record (box fallback)
- ``generate_component()`` -- normalize -> mesh -> metrics -> safety
- ``build_mesh_safe()`` -- async, runs build_mesh in a worker thread
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

import anyio

from aerogen.geometry.fuselage import build_fuselage_mesh
from aerogen.geometry.mesh import MeshData, box_mesh
from aerogen.geometry.tail import build_stabilizer_mesh
from aerogen.geometry.wing import build_wing_mesh
from aerogen.metrics import compute_aero_metrics
from aerogen.models import (
    AeroMetrics,
    FuselageParameters,
    MeshSummary,
    SafetyVerdict,
    StabilizerParameters,
    WingParameters,
)
from aerogen.safety import check

logger = logging.getLogger("aerogen.geometry")

_mesh_limiter = anyio.CapacityLimiter(4)

_BUILDERS: dict[str, Callable[[Any], MeshData]] = {
    "wing": build_wing_mesh,
    "fuselage": build_fuselage_mesh,
    "stabilizer": build_stabilizer_mesh,
}


@dataclass(frozen=True)
class GenerationOutcome:
    """Everything derived from one generation request."""

    params: WingParameters | FuselageParameters | StabilizerParameters
    mesh: MeshData
    warnings: list[str] = field(default_factory=list)
    metrics: AeroMetrics | None = None
    safety: SafetyVerdict = field(default_factory=SafetyVerdict)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def build_mesh(params: Any) -> MeshData:
    """Build the mesh for *params*, centered on its bounding-box center.

    An unrecognized ``kind`` is not an error: it degrades to the default
    3 x 1 x 6 box.
    """
    kind = getattr(params, "kind", None)
    builder = _BUILDERS.get(kind) if isinstance(kind, str) else None
    if builder is None:
        logger.warning("Unrecognized component kind %r, using default box", kind)
        mesh = box_mesh()
    else:
        mesh = builder(params)
    return mesh.centered()


def generate_component(
    raw: Mapping[str, Any] | None,
    source_text: str = "",
) -> GenerationOutcome:
    """Run the full kernel on a raw extraction record.

    Raises:
        MissingTypeError: If no component kind can be resolved.
    """
    from aerogen.normalize import normalize

    params, warnings = normalize(raw, source_text)
    mesh = build_mesh(params)
    return GenerationOutcome(
        params=params,
        warnings=warnings,
        mesh=mesh,
        metrics=compute_aero_metrics(params),
        safety=check(params),
    )


async def build_mesh_safe(params: Any) -> MeshData:
    """Build a mesh in a worker thread, at most four at a time.

    Not cancellable once started; the caller drops stale results instead.
    """
    return await anyio.to_thread.run_sync(
        build_mesh, params, limiter=_mesh_limiter, abandon_on_cancel=False,
    )


def mesh_summary(mesh: MeshData) -> MeshSummary:
    """REST-friendly statistics for *mesh*."""
    lo, hi = mesh.bounds
    return MeshSummary(
        vertex_count=mesh.vertex_count,
        face_count=mesh.face_count,
        groups=dict(mesh.groups),
        bounds_min=tuple(float(v) for v in lo),
        bounds_max=tuple(float(v) for v in hi),
    )
