"""Stabilizer mesh builder -- flat tail profile extruded along the span.

Stabilizers are built untapered and unswept; ``sweep_deg`` is carried for the
safety checker only.  A vertical stabilizer is the horizontal one rotated so
its span points up (+y).
"""

from __future__ import annotations

import math

from aerogen.geometry.airfoil import TAIL_CHORD, tail_profile
from aerogen.geometry.mesh import MeshData, build_extruded_mesh
from aerogen.models import StabilizerParameters

STABILIZER_SPAN_STEPS: int = 10


def build_stabilizer_mesh(
    params: StabilizerParameters,
    span_steps: int = STABILIZER_SPAN_STEPS,
) -> MeshData:
    """Build an (uncentered) stabilizer mesh with groups "skin", "root-cap", "tip-cap"."""
    mesh = build_extruded_mesh(tail_profile(TAIL_CHORD), params.span, span_steps)
    if params.orientation == "vertical":
        # Span z -> +y; normals rotate with the positions.
        mesh = mesh.rotated_x(-math.pi / 2.0)
    return mesh
