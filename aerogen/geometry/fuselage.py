"""Fuselage mesh builder -- a tapered cylinder along the x axis.

The nose end (x = -length/2) has radius diameter/2, the tail end
(x = +length/2) is 20% narrower.  Each end cap owns its vertices so it stays
flat-shaded while the side skin is smooth.
"""

from __future__ import annotations

import numpy as np

from aerogen.geometry.mesh import SKIN, MeshData, compute_vertex_normals
from aerogen.models import FuselageParameters

RADIAL_SEGMENTS: int = 32
TAIL_RADIUS_FACTOR: float = 0.8

NOSE_CAP = "nose-cap"
TAIL_CAP = "tail-cap"


def build_fuselage_mesh(
    params: FuselageParameters,
    radial_segments: int = RADIAL_SEGMENTS,
) -> MeshData:
    """Build an (uncentered) tapered-cylinder fuselage.

    Args:
        params:          Validated fuselage parameters.
        radial_segments: Number of facets around the circumference (>= 3).

    Returns:
        MeshData with groups "skin", "nose-cap", "tail-cap".

    Raises:
        ValueError: If radial_segments < 3.
    """
    if radial_segments < 3:
        raise ValueError(f"radial_segments must be >= 3, got {radial_segments}")

    n = radial_segments
    nose_radius = params.diameter / 2.0
    tail_radius = nose_radius * TAIL_RADIUS_FACTOR
    x_nose, x_tail = -params.length / 2.0, params.length / 2.0

    theta = np.linspace(0.0, 2.0 * np.pi, n, endpoint=False)
    cos_t, sin_t = np.cos(theta), np.sin(theta)

    def ring(x: float, radius: float) -> np.ndarray:
        return np.column_stack([np.full(n, x), radius * cos_t, radius * sin_t])

    nose_ring = ring(x_nose, nose_radius)
    tail_ring = ring(x_tail, tail_radius)

    i = np.arange(n)
    i_next = (i + 1) % n

    # Skin: nose ring [0, n), tail ring [n, 2n)
    skin = np.concatenate([
        np.stack([i, i_next, n + i_next], axis=1),
        np.stack([i, n + i_next, n + i], axis=1),
    ])

    # Caps: center vertex followed by a copy of the ring.
    nose_center = 2 * n
    nose_cap = np.stack([np.full(n, nose_center), nose_center + 1 + i_next, nose_center + 1 + i], axis=1)
    tail_center = nose_center + 1 + n
    tail_cap = np.stack([np.full(n, tail_center), tail_center + 1 + i, tail_center + 1 + i_next], axis=1)

    vertices = np.concatenate([
        nose_ring,
        tail_ring,
        [[x_nose, 0.0, 0.0]],
        nose_ring,
        [[x_tail, 0.0, 0.0]],
        tail_ring,
    ])
    faces = np.concatenate([skin, nose_cap, tail_cap])
    normals = compute_vertex_normals(vertices, faces)

    n_skin = skin.shape[0]
    groups = {
        SKIN: (0, n_skin),
        NOSE_CAP: (n_skin, n_skin + n),
        TAIL_CAP: (n_skin + n, n_skin + 2 * n),
    }
    return MeshData(vertices=vertices, normals=normals, faces=faces, groups=groups)
