"""Wing mesh builder -- NACA section extruded along the span, then sheared.

The unit-chord airfoil is extruded from z = -span/2 (root) to z = +span/2
(tip).  Each vertex is then scaled by the local chord and shifted by the
leading-edge sweep offset for its span station, which linearly blends root
to tip chord and sweeps the leading edge while keeping the section shape.
"""

from __future__ import annotations

import math
from functools import partial

import numpy as np
from numpy.typing import NDArray

from aerogen.geometry.airfoil import DEFAULT_SAMPLE_COUNT, clean_naca_code, naca4
from aerogen.geometry.mesh import MeshData, build_extruded_mesh
from aerogen.models import WingParameters

WING_SPAN_STEPS: int = 20


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def build_wing_mesh(
    params: WingParameters,
    sample_count: int = DEFAULT_SAMPLE_COUNT,
    span_steps: int = WING_SPAN_STEPS,
) -> MeshData:
    """Build an (uncentered) wing mesh.

    **Construction:**

    1. **Section**: NACA 4-digit profile at unit chord (invalid codes fall
       back to 0012).
    2. **Extrusion**: ``span_steps`` stations from root to tip, caps in their
       own face groups.
    3. **Shear**: per-vertex taper and sweep (``taper_sweep_shear``).
    4. **Normals**: smooth skin normals, caps overridden by a mid-span sample.

    Args:
        params:       Validated wing parameters.
        sample_count: Chordwise intervals of the airfoil.
        span_steps:   Spanwise intervals of the extrusion.

    Returns:
        MeshData with groups "skin", "root-cap", "tip-cap".
    """
    profile = naca4(clean_naca_code(params.naca), 1.0, sample_count)
    shear = partial(
        taper_sweep_shear,
        span=params.span,
        root_chord=params.root_chord,
        tip_chord=params.tip_chord,
        sweep_deg=params.sweep_deg,
    )
    return build_extruded_mesh(profile, params.span, span_steps, deform=shear)


def taper_sweep_shear(
    vertices: NDArray[np.floating],
    span: float,
    root_chord: float,
    tip_chord: float,
    sweep_deg: float,
) -> NDArray[np.float64]:
    """Apply taper and leading-edge sweep to unit-chord extruded vertices.

    For a vertex at span coordinate z in [-span/2, span/2]::

        u     = (z + span/2) / span                       # 0 root, 1 tip
        c     = root_chord + (tip_chord - root_chord) * u
        x_le  = (z + span/2) * tan(sweep)
        x'    = x * c + x_le
        y'    = y * c
        z'    = z

    Returns a new array; *vertices* is not modified.
    """
    out = np.array(vertices, dtype=np.float64)
    z = out[:, 2]
    from_root = z + span / 2.0
    u = from_root / span
    chord = root_chord + (tip_chord - root_chord) * u
    x_le = from_root * math.tan(math.radians(sweep_deg))
    out[:, 0] = out[:, 0] * chord + x_le
    out[:, 1] = out[:, 1] * chord
    return out
