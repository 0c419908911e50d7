"""Triangle mesh value type and the builders shared by all component kinds.

MeshData is an immutable numpy-backed value: vertex positions, per-vertex
normals, triangle indices, and named face groups.  Groups map a name to a
half-open ``[start, end)`` range of face indices, so a renderer can shade the
skin and the end caps differently.

Coordinate convention for extruded surfaces: x chordwise (LE at low x),
y thickness ("up"), z spanwise.
"""

from __future__ import annotations

import struct
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from types import MappingProxyType

import numpy as np
from numpy.typing import NDArray

from aerogen.geometry.airfoil import signed_area

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

UP: tuple[float, float, float] = (0.0, 1.0, 0.0)

# Side-wall vertices within this fraction of the span from mid-span are
# sampled for the cap normal.
MID_SPAN_TOLERANCE: float = 0.05

SKIN = "skin"
ROOT_CAP = "root-cap"
TIP_CAP = "tip-cap"


# ---------------------------------------------------------------------------
# MeshData
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class MeshData:
    """Immutable triangle mesh.

    Attributes:
        vertices: Shape (N, 3), dtype float32.  Vertex positions in meters.
        normals:  Shape (N, 3), dtype float32.  Unit-length per-vertex normals.
        faces:    Shape (M, 3), dtype uint32.  Triangle indices into vertices/normals.
        groups:   Group name -> (start_face, end_face), end exclusive.
    """

    vertices: NDArray[np.float32]   # shape (N, 3)
    normals: NDArray[np.float32]    # shape (N, 3)
    faces: NDArray[np.uint32]       # shape (M, 3)
    groups: Mapping[str, tuple[int, int]]

    def __post_init__(self) -> None:
        vertices = np.array(self.vertices, dtype=np.float32).reshape(-1, 3)
        normals = np.array(self.normals, dtype=np.float32).reshape(-1, 3)
        faces = np.array(self.faces, dtype=np.uint32).reshape(-1, 3)
        if vertices.shape != normals.shape:
            raise ValueError(
                f"vertices {vertices.shape} and normals {normals.shape} differ in shape"
            )
        for arr in (vertices, normals, faces):
            arr.setflags(write=False)
        object.__setattr__(self, "vertices", vertices)
        object.__setattr__(self, "normals", normals)
        object.__setattr__(self, "faces", faces)
        object.__setattr__(
            self, "groups", MappingProxyType({k: (int(a), int(b)) for k, (a, b) in self.groups.items()})
        )

    @property
    def vertex_count(self) -> int:
        """Number of vertices."""
        return self.vertices.shape[0]

    @property
    def face_count(self) -> int:
        """Number of triangular faces."""
        return self.faces.shape[0]

    @property
    def bounds(self) -> tuple[NDArray[np.float32], NDArray[np.float32]]:
        """Axis-aligned bounding box as ``(min_xyz, max_xyz)``."""
        if self.vertex_count == 0:
            zero = np.zeros(3, dtype=np.float32)
            return zero, zero
        return self.vertices.min(axis=0), self.vertices.max(axis=0)

    def group_faces(self, name: str) -> NDArray[np.uint32]:
        """Triangles belonging to group *name*, shape (K, 3)."""
        start, end = self.groups[name]
        return self.faces[start:end]

    def centered(self) -> MeshData:
        """Copy translated so the bounding-box center sits at the origin."""
        lo, hi = self.bounds
        center = (lo.astype(np.float64) + hi.astype(np.float64)) / 2.0
        return MeshData(
            vertices=self.vertices.astype(np.float64) - center,
            normals=self.normals,
            faces=self.faces,
            groups=self.groups,
        )

    def rotated_x(self, angle_rad: float) -> MeshData:
        """Copy rotated about the x axis (positions and normals)."""
        c, s = np.cos(angle_rad), np.sin(angle_rad)
        rot = np.array([[1.0, 0.0, 0.0], [0.0, c, -s], [0.0, s, c]])
        return MeshData(
            vertices=self.vertices.astype(np.float64) @ rot.T,
            normals=self.normals.astype(np.float64) @ rot.T,
            faces=self.faces,
            groups=self.groups,
        )

    def to_binary_frame(self) -> bytes:
        """Pack into the preview WebSocket binary frame format.

        Layout:
          [msg_type: uint32 = 0x01][vertex_count: uint32][face_count: uint32]
          [vertices: N*12 bytes][normals: N*12 bytes][faces: M*12 bytes]

        The JSON trailer is appended by the WebSocket handler.
        """
        header = struct.pack("<III", 0x01, self.vertex_count, self.face_count)
        return (
            header
            + self.vertices.astype("<f4").tobytes()
            + self.normals.astype("<f4").tobytes()
            + self.faces.astype("<u4").tobytes()
        )


# ---------------------------------------------------------------------------
# Surface construction
# ---------------------------------------------------------------------------


def build_extruded_mesh(
    profile: Sequence[tuple[float, float]],
    span: float,
    steps: int,
    deform: Callable[[NDArray[np.float64]], NDArray[np.float64]] | None = None,
) -> MeshData:
    """Extrude a closed 2D profile along z into a capped solid.

    The solid runs from z = -span/2 (root) to z = +span/2 (tip).  ``deform``
    receives the (N, 3) float64 position array after extrusion and returns
    the deformed positions; normals are computed afterwards, then the cap
    normals are replaced by a mid-span sample (see ``repair_cap_normals``).
    """
    vertices, faces, groups = extrude_profile(profile, span, steps)
    if deform is not None:
        vertices = deform(vertices)
    normals = compute_vertex_normals(vertices, faces)
    normals = repair_cap_normals(vertices, normals, faces, groups)
    return MeshData(vertices=vertices, normals=normals, faces=faces, groups=groups)


def extrude_profile(
    profile: Sequence[tuple[float, float]],
    span: float,
    steps: int,
) -> tuple[NDArray[np.float64], NDArray[np.uint32], dict[str, tuple[int, int]]]:
    """Extrude *profile* into side-wall rings plus separately-vertexed caps.

    Side walls share vertices between adjacent quads so their normals are
    smooth.  Each cap owns a copy of its boundary ring so its normals can be
    overridden without touching the skin.

    Returns:
        ``(vertices, faces, groups)`` with groups "skin", "root-cap", "tip-cap".

    Raises:
        ValueError: If the profile has fewer than 3 points, span <= 0 or steps < 1.
    """
    if len(profile) < 3:
        raise ValueError(f"profile needs at least 3 points, got {len(profile)}")
    if span <= 0:
        raise ValueError(f"span must be positive, got {span}")
    if steps < 1:
        raise ValueError(f"steps must be >= 1, got {steps}")

    pts = list(profile)
    if signed_area(pts) < 0:
        pts.reverse()
    ring = np.asarray(pts, dtype=np.float64)
    k = ring.shape[0]

    zs = np.linspace(-span / 2.0, span / 2.0, steps + 1)

    # Side-wall rings: vertex (station j, point i) -> j * k + i
    side = np.empty(((steps + 1) * k, 3), dtype=np.float64)
    for j, z in enumerate(zs):
        side[j * k:(j + 1) * k, 0:2] = ring
        side[j * k:(j + 1) * k, 2] = z

    i = np.arange(k)
    i_next = (i + 1) % k
    skin_faces: list[NDArray[np.int64]] = []
    for j in range(steps):
        a = j * k + i
        b = j * k + i_next
        c = (j + 1) * k + i_next
        d = (j + 1) * k + i
        skin_faces.append(np.stack([a, b, c], axis=1))
        skin_faces.append(np.stack([a, c, d], axis=1))
    skin = np.concatenate(skin_faces)

    cap_tris = np.asarray(triangulate_polygon(pts), dtype=np.int64).reshape(-1, 3)

    root_offset = side.shape[0]
    root_vertices = np.column_stack([ring, np.full(k, zs[0])])
    # Root cap faces -z: flip winding.
    root = cap_tris[:, ::-1] + root_offset

    tip_offset = root_offset + k
    tip_vertices = np.column_stack([ring, np.full(k, zs[-1])])
    tip = cap_tris + tip_offset

    vertices = np.concatenate([side, root_vertices, tip_vertices])
    faces = np.concatenate([skin, root, tip]).astype(np.uint32)

    n_skin, n_cap = skin.shape[0], cap_tris.shape[0]
    groups = {
        SKIN: (0, n_skin),
        ROOT_CAP: (n_skin, n_skin + n_cap),
        TIP_CAP: (n_skin + n_cap, n_skin + 2 * n_cap),
    }
    return vertices, faces, groups


def triangulate_polygon(points: Sequence[tuple[float, float]]) -> list[tuple[int, int, int]]:
    """Ear-clip a simple polygon.

    Returned triangles index into *points* and are counter-clockwise whatever
    the input winding.  Collinear leftovers that admit no proper ear are
    clipped anyway so the loop always terminates.
    """
    n = len(points)
    if n < 3:
        return []

    remaining = list(range(n))
    if signed_area(list(points)) < 0:
        remaining.reverse()

    triangles: list[tuple[int, int, int]] = []
    while len(remaining) > 3:
        m = len(remaining)
        for pos in range(m):
            i0, i1, i2 = remaining[pos - 1], remaining[pos], remaining[(pos + 1) % m]
            a, b, c = points[i0], points[i1], points[i2]
            if _cross(a, b, c) <= 0:
                continue
            if any(
                _inside_triangle(points[j], a, b, c)
                for j in remaining
                if j not in (i0, i1, i2)
            ):
                continue
            triangles.append((i0, i1, i2))
            del remaining[pos]
            break
        else:
            triangles.append((remaining[-1], remaining[0], remaining[1]))
            del remaining[0]
    triangles.append((remaining[0], remaining[1], remaining[2]))
    return triangles


# ---------------------------------------------------------------------------
# Normals
# ---------------------------------------------------------------------------


def compute_vertex_normals(
    vertices: NDArray[np.floating],
    faces: NDArray[np.integer],
) -> NDArray[np.float64]:
    """Compute per-vertex normals by averaging adjacent face normals.

    Uses area-weighted averaging: each face's contribution to a vertex normal
    is proportional to the face area (implicit in the cross product magnitude).
    """
    vertices = np.asarray(vertices, dtype=np.float64)
    faces = np.asarray(faces, dtype=np.int64)
    normals = np.zeros_like(vertices)

    if faces.shape[0] == 0:
        return normals

    v0 = vertices[faces[:, 0]]
    v1 = vertices[faces[:, 1]]
    v2 = vertices[faces[:, 2]]

    # Face normals (not normalised -- magnitude = 2 * area)
    face_normals = np.cross(v1 - v0, v2 - v0)

    for corner in range(3):
        np.add.at(normals, faces[:, corner], face_normals)

    lengths = np.linalg.norm(normals, axis=1, keepdims=True)
    lengths = np.maximum(lengths, 1e-12)
    return normals / lengths


def repair_cap_normals(
    vertices: NDArray[np.floating],
    normals: NDArray[np.floating],
    faces: NDArray[np.integer],
    groups: Mapping[str, tuple[int, int]],
    cap_groups: Sequence[str] = (ROOT_CAP, TIP_CAP),
    span_axis: int = 2,
) -> NDArray[np.float64]:
    """Give every cap vertex one shared normal sampled from the mid-span skin.

    Thin end caps of an extruded airfoil shade badly with their true normals.
    The replacement is the average of the upward-facing skin normals within
    MID_SPAN_TOLERANCE of mid-span; with no such samples it is ``UP``.

    Returns a new array; the inputs are not modified.
    """
    vertices = np.asarray(vertices, dtype=np.float64)
    faces = np.asarray(faces, dtype=np.int64)
    repaired = np.array(normals, dtype=np.float64)

    cap_ids = [
        faces[groups[name][0]:groups[name][1]].ravel()
        for name in cap_groups
        if name in groups
    ]
    if not cap_ids:
        return repaired
    cap_vertices = np.unique(np.concatenate(cap_ids))

    replacement = np.asarray(UP, dtype=np.float64)
    if SKIN in groups and vertices.shape[0]:
        start, end = groups[SKIN]
        skin_vertices = np.unique(faces[start:end].ravel())
        coord = vertices[skin_vertices, span_axis]
        lo, hi = vertices[:, span_axis].min(), vertices[:, span_axis].max()
        mid = (lo + hi) / 2.0
        near_mid = np.abs(coord - mid) <= MID_SPAN_TOLERANCE * (hi - lo)
        samples = repaired[skin_vertices[near_mid]]
        samples = samples[samples[:, 1] > 0]
        if samples.shape[0]:
            mean = samples.mean(axis=0)
            length = np.linalg.norm(mean)
            if length > 1e-9:
                replacement = mean / length

    repaired[cap_vertices] = replacement
    return repaired


# ---------------------------------------------------------------------------
# Primitives
# ---------------------------------------------------------------------------


def box_mesh(width: float = 3.0, height: float = 1.0, depth: float = 6.0) -> MeshData:
    """Axis-aligned box centered at the origin, flat-shaded, one "skin" group."""
    hx, hy, hz = width / 2.0, height / 2.0, depth / 2.0
    # (normal, u axis, v axis) per face; corners wound counter-clockwise seen
    # from outside.
    sides = (
        ((1, 0, 0), (0, 0, -1), (0, 1, 0)),
        ((-1, 0, 0), (0, 0, 1), (0, 1, 0)),
        ((0, 1, 0), (1, 0, 0), (0, 0, -1)),
        ((0, -1, 0), (1, 0, 0), (0, 0, 1)),
        ((0, 0, 1), (1, 0, 0), (0, 1, 0)),
        ((0, 0, -1), (-1, 0, 0), (0, 1, 0)),
    )
    half = np.array([hx, hy, hz])
    vertices: list[NDArray[np.float64]] = []
    normals: list[tuple[int, int, int]] = []
    faces: list[tuple[int, int, int]] = []
    for normal, u, v in sides:
        n, u_, v_ = np.array(normal), np.array(u), np.array(v)
        base = len(vertices)
        for su, sv in ((-1, -1), (1, -1), (1, 1), (-1, 1)):
            vertices.append((n + su * u_ + sv * v_) * half)
            normals.append(normal)
        faces.append((base, base + 1, base + 2))
        faces.append((base, base + 2, base + 3))
    return MeshData(
        vertices=np.array(vertices),
        normals=np.array(normals, dtype=np.float64),
        faces=np.array(faces),
        groups={SKIN: (0, len(faces))},
    )


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _cross(a: tuple[float, float], b: tuple[float, float], c: tuple[float, float]) -> float:
    return (b[0] - a[0]) * (c[1] - a[1]) - (b[1] - a[1]) * (c[0] - a[0])


def _inside_triangle(
    p: tuple[float, float],
    a: tuple[float, float],
    b: tuple[float, float],
    c: tuple[float, float],
) -> bool:
    """True if *p* lies inside or on the boundary of CCW triangle abc."""
    return _cross(a, b, p) >= 0 and _cross(b, c, p) >= 0 and _cross(c, a, p) >= 0
