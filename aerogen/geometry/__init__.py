"""Geometry engine -- public API re-exports.

Usage::

    from aerogen.geometry import build_mesh, generate_component
"""

from __future__ import annotations

from aerogen.geometry.engine import (
    GenerationOutcome,
    build_mesh,
    build_mesh_safe,
    generate_component,
    mesh_summary,
)
from aerogen.geometry.mesh import MeshData

__all__ = [
    "GenerationOutcome",
    "MeshData",
    "build_mesh",
    "build_mesh_safe",
    "generate_component",
    "mesh_summary",
]
