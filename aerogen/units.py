"""Unit/text parser -- pulls number+unit pairs out of free-form descriptions.

Lengths are returned in meters, angles in degrees.  Only the first matching
pair is used; text such as "a 12 m fuselage" or "wing 30 ft, swept 25 deg"
yields 12.0 m / 9.144 m and 25.0 deg respectively.
"""

from __future__ import annotations

import math
import re

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# Unit token -> meters.  Longer spellings are listed before their prefixes
# so the regex alternation prefers "mm" over "m" and "inches" over "in".
LENGTH_UNITS: dict[str, float] = {
    "millimeters": 0.001,
    "millimetres": 0.001,
    "millimeter": 0.001,
    "millimetre": 0.001,
    "mm": 0.001,
    "centimeters": 0.01,
    "centimetres": 0.01,
    "centimeter": 0.01,
    "centimetre": 0.01,
    "cm": 0.01,
    "meters": 1.0,
    "metres": 1.0,
    "meter": 1.0,
    "metre": 1.0,
    "m": 1.0,
    "feet": 0.3048,
    "foot": 0.3048,
    "ft": 0.3048,
    "'": 0.3048,
    "inches": 0.0254,
    "inch": 0.0254,
    "in": 0.0254,
    '"': 0.0254,
}

# Unit token -> degrees.
ANGLE_UNITS: dict[str, float] = {
    "degrees": 1.0,
    "degree": 1.0,
    "deg": 1.0,
    "°": 1.0,
    "radians": 180.0 / math.pi,
    "radian": 180.0 / math.pi,
    "rad": 180.0 / math.pi,
}

_NUMBER = r"([+-]?\d+(?:\.\d+)?|[+-]?\.\d+)"


def _unit_pattern(units: dict[str, float]) -> re.Pattern[str]:
    alternation = "|".join(re.escape(u) for u in sorted(units, key=len, reverse=True))
    # Alphabetic units must end on a word boundary ("12 miles" is not "12 m").
    return re.compile(
        _NUMBER + r"\s*(" + alternation + r")(?![A-Za-z])",
        re.IGNORECASE,
    )


_LENGTH_RE = _unit_pattern(LENGTH_UNITS)
_ANGLE_RE = _unit_pattern(ANGLE_UNITS)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def extract_length(text: str) -> tuple[float, str] | None:
    """Return the first ``(magnitude, unit)`` length pair found in *text*."""
    m = _LENGTH_RE.search(text or "")
    if m is None:
        return None
    return float(m.group(1)), m.group(2).lower()


def extract_angle(text: str) -> tuple[float, str] | None:
    """Return the first ``(magnitude, unit)`` angle pair found in *text*."""
    m = _ANGLE_RE.search(text or "")
    if m is None:
        return None
    return float(m.group(1)), m.group(2).lower()


def to_meters(value: float, unit: str) -> float:
    """Convert *value* expressed in *unit* to meters.

    Raises:
        KeyError: If *unit* is not a known length unit.
    """
    return value * LENGTH_UNITS[unit.lower()]


def to_degrees(value: float, unit: str) -> float:
    """Convert *value* expressed in *unit* to degrees.

    Raises:
        KeyError: If *unit* is not a known angle unit.
    """
    return value * ANGLE_UNITS[unit.lower()]


def parse_length(text: str) -> float | None:
    """First length in *text*, in meters, or None."""
    found = extract_length(text)
    if found is None:
        return None
    return to_meters(*found)


def parse_angle(text: str) -> float | None:
    """First angle in *text*, in degrees, or None."""
    found = extract_angle(text)
    if found is None:
        return None
    return to_degrees(*found)


def coerce_number(value: object) -> float | None:
    """Return *value* as a finite float, or None if it is not numeric.

    Accepts ints, floats and numeric strings.  Booleans, NaN and infinities
    are rejected -- an extraction service emitting ``true`` for a span is a
    missing value, not 1 m.
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(number):
        return None
    return number


def coerce_length(value: object) -> float | None:
    """Like :func:`coerce_number`, but also accepts strings such as ``"30 ft"``."""
    number = coerce_number(value)
    if number is not None or not isinstance(value, str):
        return number
    return parse_length(value)


def coerce_angle(value: object) -> float | None:
    """Like :func:`coerce_number`, but also accepts strings such as ``"25 deg"``."""
    number = coerce_number(value)
    if number is not None or not isinstance(value, str):
        return number
    return parse_angle(value)
