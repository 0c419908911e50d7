"""Cross-section profiles -- NACA 4-digit airfoils and the flat tail profile.

Profiles are closed 2D loops returned as lists of (x, y) tuples with x
chordwise (leading edge at x=0) and y normal to the chord.  Loops are not
explicitly closed (the last point does not repeat the first) and are always
wound counter-clockwise.
"""

from __future__ import annotations

import math
import re

from aerogen.models import DEFAULT_NACA

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# Half-opening of the trailing edge as a fraction of chord.  Keeps the upper
# and lower TE points distinct so cap triangulation never sees a zero-length
# edge.
TE_GAP_FRACTION: float = 1e-5

DEFAULT_SAMPLE_COUNT: int = 40

# Thickness polynomial coefficients.  The last term uses the closed-TE value
# (-0.1036) so the half-thickness is exactly zero at x=1; the TE opening is
# then controlled solely by TE_GAP_FRACTION.
_THICKNESS_COEFFS: tuple[float, float, float, float, float] = (
    0.2969, -0.1260, -0.3516, 0.2843, -0.1036,
)

# Flat stabilizer profile (fractions of chord), counter-clockwise.
_TAIL_PROFILE: tuple[tuple[float, float], ...] = (
    (0.0, 0.0),
    (1.0, 0.0),
    (0.8, 0.15),
    (0.2, 0.15),
)
TAIL_CHORD: float = 1.5


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def clean_naca_code(code: object) -> str:
    """Strip non-digits from *code*; anything but exactly 4 digits becomes "0012".

    Invalid codes are replaced silently -- they are never an error.
    """
    if code is None or isinstance(code, bool):
        return DEFAULT_NACA
    digits = re.sub(r"\D", "", str(code))
    if len(digits) != 4:
        return DEFAULT_NACA
    return digits


def naca4(
    code: str,
    chord_length: float = 1.0,
    sample_count: int = DEFAULT_SAMPLE_COUNT,
) -> list[tuple[float, float]]:
    """Generate a closed NACA 4-digit profile.

    ``code`` must already be a valid 4-digit string (see
    ``clean_naca_code``): digit 1 is the max camber in
    percent of chord, digit 2 its position in tenths of chord, digits 3-4
    the max thickness in percent of chord.

    Stations are cosine-spaced so points cluster at the leading and trailing
    edges.  The upper and lower surfaces are offset from the camber line
    perpendicular to its local slope.

    Loop layout (2 * sample_count + 1 points)::

        [0]                         leading edge, y == 0
        [1 .. sample_count]         lower surface, LE -> TE (last is TE lower)
        [sample_count + 1 .. end]   upper surface, TE -> LE (first is TE upper)

    i.e. the upper-LE->TE / lower-TE->LE loop reversed to counter-clockwise
    with the leading edge kept first.

    Args:
        code:         Four-digit NACA code, e.g. "2412".
        chord_length: Scale factor applied to every coordinate.
        sample_count: Number of chordwise intervals (stations = sample_count + 1).

    Returns:
        List of (x, y) tuples, counter-clockwise, scaled by chord_length.

    Raises:
        ValueError: If code is not exactly four digits or sample_count < 2.
    """
    if len(code) != 4 or not code.isdigit():
        raise ValueError(f"NACA code must be exactly four digits, got {code!r}")
    if sample_count < 2:
        raise ValueError(f"sample_count must be >= 2, got {sample_count}")

    m = int(code[0]) / 100.0
    p = int(code[1]) / 10.0
    t = int(code[2:]) / 100.0

    upper: list[tuple[float, float]] = []
    lower: list[tuple[float, float]] = []

    for i in range(sample_count + 1):
        x = 0.5 * (1.0 - math.cos(math.pi * i / sample_count))
        yt = _half_thickness(x, t)
        yc, dyc = _camber(x, m, p)
        theta = math.atan(dyc)
        upper.append((x - yt * math.sin(theta), yc + yt * math.cos(theta)))
        lower.append((x + yt * math.sin(theta), yc - yt * math.cos(theta)))

    # Exact LE closure and symmetric TE opening.
    upper[0] = lower[0] = (0.0, 0.0)
    upper[-1] = (1.0, TE_GAP_FRACTION)
    lower[-1] = (1.0, -TE_GAP_FRACTION)

    # Upper LE->TE, then lower TE->LE without the duplicated LE point.
    loop = upper + lower[-1:0:-1]

    if signed_area(loop) < 0:
        loop = [loop[0]] + loop[:0:-1]

    return [(x * chord_length, y * chord_length) for x, y in loop]


def tail_profile(chord_length: float = TAIL_CHORD) -> list[tuple[float, float]]:
    """Flat 4-point stabilizer cross-section scaled to *chord_length*."""
    return [(x * chord_length, y * chord_length) for x, y in _TAIL_PROFILE]


def signed_area(points: list[tuple[float, float]]) -> float:
    """Shoelace area; positive for counter-clockwise loops."""
    area = 0.0
    n = len(points)
    for i in range(n):
        x0, y0 = points[i]
        x1, y1 = points[(i + 1) % n]
        area += x0 * y1 - x1 * y0
    return 0.5 * area


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _half_thickness(x: float, t: float) -> float:
    a0, a1, a2, a3, a4 = _THICKNESS_COEFFS
    return 5.0 * t * (a0 * math.sqrt(x) + a1 * x + a2 * x**2 + a3 * x**3 + a4 * x**4)


def _camber(x: float, m: float, p: float) -> tuple[float, float]:
    """Camber-line height and slope at *x*; zero for symmetric sections."""
    if m == 0 or p == 0:
        return 0.0, 0.0
    if x < p:
        yc = m / p**2 * (2 * p * x - x**2)
        dyc = 2 * m / p**2 * (p - x)
    else:
        yc = m / (1 - p) ** 2 * ((1 - 2 * p) + 2 * p * x - x**2)
        dyc = 2 * m / (1 - p) ** 2 * (p - x)
    return yc, dyc
