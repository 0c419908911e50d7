"""glTF 2.0 writer -- a single self-contained .gltf JSON document.

All binary data lives in one buffer embedded as a base64 data URI:

    [positions: N*12 bytes][normals: N*12 bytes][indices: M*12 bytes]

The mesh has one primitive per face group, each with its own index
accessor into the shared index buffer view, so a viewer can shade the skin
and the end caps separately.
"""

from __future__ import annotations

import base64
import json
from typing import Any

import numpy as np

from aerogen.geometry.mesh import MeshData

# glTF enums
_FLOAT = 5126
_UNSIGNED_INT = 5125
_ARRAY_BUFFER = 34962
_ELEMENT_ARRAY_BUFFER = 34963
_TRIANGLES = 4


def build_gltf_document(mesh: MeshData, name: str = "aircraft_part") -> dict[str, Any]:
    """Return the glTF 2.0 document for *mesh* as a plain dict."""
    positions = mesh.vertices.astype("<f4").tobytes()
    normals = mesh.normals.astype("<f4").tobytes()
    indices = mesh.faces.astype("<u4").tobytes()
    blob = positions + normals + indices

    lo, hi = mesh.bounds
    buffer_views = [
        {"buffer": 0, "byteOffset": 0, "byteLength": len(positions), "target": _ARRAY_BUFFER},
        {"buffer": 0, "byteOffset": len(positions), "byteLength": len(normals), "target": _ARRAY_BUFFER},
        {
            "buffer": 0,
            "byteOffset": len(positions) + len(normals),
            "byteLength": len(indices),
            "target": _ELEMENT_ARRAY_BUFFER,
        },
    ]
    accessors: list[dict[str, Any]] = [
        {
            "bufferView": 0,
            "componentType": _FLOAT,
            "count": mesh.vertex_count,
            "type": "VEC3",
            "min": [float(v) for v in lo],
            "max": [float(v) for v in hi],
        },
        {"bufferView": 1, "componentType": _FLOAT, "count": mesh.vertex_count, "type": "VEC3"},
    ]

    primitives: list[dict[str, Any]] = []
    for group, (start, end) in mesh.groups.items():
        if end <= start:
            continue
        accessors.append({
            "bufferView": 2,
            "byteOffset": start * 12,
            "componentType": _UNSIGNED_INT,
            "count": (end - start) * 3,
            "type": "SCALAR",
            "name": group,
        })
        primitives.append({
            "attributes": {"POSITION": 0, "NORMAL": 1},
            "indices": len(accessors) - 1,
            "mode": _TRIANGLES,
            "extras": {"group": group},
        })

    return {
        "asset": {"version": "2.0", "generator": "aerogen"},
        "scene": 0,
        "scenes": [{"nodes": [0]}],
        "nodes": [{"mesh": 0, "name": name}],
        "meshes": [{"name": name, "primitives": primitives}],
        "accessors": accessors,
        "bufferViews": buffer_views,
        "buffers": [{
            "byteLength": len(blob),
            "uri": "data:application/octet-stream;base64," + base64.b64encode(blob).decode("ascii"),
        }],
    }


def mesh_to_gltf(mesh: MeshData) -> bytes:
    """Serialize *mesh* as UTF-8 glTF JSON."""
    return json.dumps(build_gltf_document(mesh), separators=(",", ":")).encode("utf-8")
