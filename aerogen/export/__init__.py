"""Export pipeline -- serialize a MeshData to interchange formats.

Usage::

    from aerogen.export import export_mesh
    payload, media_type, filename = export_mesh(mesh, "gltf")
"""

from __future__ import annotations

from aerogen.export.gltf import mesh_to_gltf
from aerogen.export.stl import mesh_to_binary_stl
from aerogen.geometry.mesh import MeshData
from aerogen.models import ExportFormat

EXPORT_BASENAME = "aircraft_part"

_FORMATS = {
    "stl": (mesh_to_binary_stl, "model/stl"),
    "gltf": (mesh_to_gltf, "model/gltf+json"),
}


def export_mesh(mesh: MeshData, export_format: ExportFormat) -> tuple[bytes, str, str]:
    """Serialize *mesh*; returns ``(payload, media_type, filename)``.

    Raises:
        ValueError: If *export_format* is not supported.
    """
    try:
        writer, media_type = _FORMATS[export_format]
    except KeyError:
        raise ValueError(f"Unsupported export format: {export_format!r}") from None
    return writer(mesh), media_type, f"{EXPORT_BASENAME}.{export_format}"


__all__ = ["EXPORT_BASENAME", "export_mesh", "mesh_to_binary_stl", "mesh_to_gltf"]
