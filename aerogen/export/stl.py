"""Binary STL writer."""

from __future__ import annotations

import numpy as np

from aerogen.geometry.mesh import MeshData

STL_HEADER = b"aerogen parametric aircraft part - Binary STL"

# One 50-byte record per triangle.
_STL_RECORD = np.dtype([
    ("normal", "<f4", (3,)),
    ("vertices", "<f4", (3, 3)),
    ("attribute", "<u2"),
])


def mesh_to_binary_stl(mesh: MeshData) -> bytes:
    """Convert MeshData to binary STL format.

    Binary STL layout:
      - 80-byte header (ASCII, zero-padded)
      - 4-byte uint32: number of triangles
      - For each triangle (50 bytes):
        - 12 bytes: face normal (3 x float32)
        - 36 bytes: 3 vertices (3 x 3 x float32)
        - 2 bytes: attribute byte count (0)

    Face normals are recomputed from the winding; degenerate triangles get a
    zero normal.  Face groups are flattened since STL has no grouping.
    """
    header = STL_HEADER.ljust(80, b"\x00")

    tris = mesh.vertices.astype(np.float64)[mesh.faces.astype(np.int64)]  # (M, 3, 3)
    normals = np.cross(tris[:, 1] - tris[:, 0], tris[:, 2] - tris[:, 0])
    lengths = np.linalg.norm(normals, axis=1, keepdims=True)
    normals = np.where(lengths > 1e-10, normals / np.maximum(lengths, 1e-10), 0.0)

    records = np.zeros(mesh.face_count, dtype=_STL_RECORD)
    records["normal"] = normals
    records["vertices"] = tris

    count = np.array([mesh.face_count], dtype="<u4")
    return header + count.tobytes() + records.tobytes()
