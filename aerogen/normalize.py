"""Parameter normalizer -- turns a raw extraction record into ComponentParameters.

The raw record comes from the text-extraction service and may be incomplete,
null-valued or plain wrong.  normalize() resolves the component kind, fills
type-specific defaults, reconciles alternate field names, maps a size found in
the description text onto a missing primary dimension, clamps out-of-range
values and drops fields that do not belong to the resolved kind.

Every adjustment yields exactly one human-readable warning.  The only fatal
condition is an unresolvable kind (MissingTypeError).

Re-normalizing an already-normalized record with the same source text gives
the same record and no warnings.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from typing import Any

from aerogen.geometry.airfoil import clean_naca_code
from aerogen.models import (
    ComponentKind,
    FuselageParameters,
    StabilizerParameters,
    WingParameters,
)
from aerogen.units import coerce_angle, coerce_length, parse_length

logger = logging.getLogger("aerogen.normalize")


class MissingTypeError(ValueError):
    """No component kind could be resolved from the record or the text."""

    def __init__(self, message: str | None = None) -> None:
        super().__init__(
            message
            or "Invalid or missing part type. Please describe a wing, fuselage, or stabilizer."
        )


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# Checked in this order; the first family with a hit wins.
KIND_KEYWORDS: tuple[tuple[ComponentKind, tuple[str, ...]], ...] = (
    ("wing", ("wing", "airfoil", "delta", "swept")),
    ("fuselage", ("fuselage", "body", "tube")),
    ("stabilizer", ("stabilizer", "tail", "fin", "rudder")),
)

_KIND_PATTERNS: tuple[tuple[ComponentKind, re.Pattern[str]], ...] = tuple(
    (kind, re.compile(r"\b(?:" + "|".join(words) + r")", re.IGNORECASE))
    for kind, words in KIND_KEYWORDS
)

WING_DEFAULT_SPAN = 10.0
WING_DEFAULT_ROOT_CHORD = 2.0
WING_DEFAULT_TIP_FRACTION = 0.5
WING_MAX_SPAN = 100.0
FUSELAGE_DEFAULT_LENGTH = 8.0
FUSELAGE_DEFAULT_DIAMETER = 2.0
STABILIZER_DEFAULT_SPAN = 4.0
SWEEP_MIN_DEG = 0.0
SWEEP_MAX_DEG = 60.0

# Canonical field -> accepted raw keys, in priority order.  The extraction
# prompt historically used "type" and "sweep".
_FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "kind": ("kind", "type"),
    "span": ("span",),
    "length": ("length",),
    "diameter": ("diameter",),
    "chord": ("chord",),
    "root_chord": ("rootChord", "root_chord"),
    "tip_chord": ("tipChord", "tip_chord"),
    "sweep_deg": ("sweepDeg", "sweep_deg", "sweep"),
    "naca": ("naca", "airfoil"),
    "orientation": ("orientation",),
}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def resolve_kind(label: object) -> ComponentKind | None:
    """Map a free-text label or description to a component kind, or None."""
    if not isinstance(label, str):
        return None
    for kind, pattern in _KIND_PATTERNS:
        if pattern.search(label):
            return kind
    return None


def normalize(
    raw: Mapping[str, Any] | None,
    source_text: str = "",
) -> tuple[WingParameters | FuselageParameters | StabilizerParameters, list[str]]:
    """Normalize a raw extraction record.

    Args:
        raw:         Possibly incomplete record; any field may be absent, null
                     or non-numeric.  Never mutated.
        source_text: The user's original description, used to infer a missing
                     kind, a missing primary dimension, and orientation.

    Returns:
        ``(params, warnings)`` -- a validated parameter record holding only
        the fields meaningful for its kind, and one warning per adjustment.

    Raises:
        MissingTypeError: If no kind is given and none can be inferred.
    """
    source_text = str(source_text or "")
    fields = _canonical_fields(raw or {})
    warnings: list[str] = []

    raw_kind = fields.get("kind")
    kind = resolve_kind(raw_kind)
    if kind is None:
        kind = resolve_kind(source_text)
        if kind is None:
            raise MissingTypeError()
        warnings.append(f"Type not detected from AI. Using inferred type: {kind}.")

    if kind == "wing":
        params = _normalize_wing(fields, source_text, warnings)
    elif kind == "fuselage":
        params = _normalize_fuselage(fields, source_text, warnings)
    else:
        label = raw_kind if isinstance(raw_kind, str) else ""
        params = _normalize_stabilizer(fields, source_text, label, warnings)

    for w in warnings:
        logger.debug("normalize(%s): %s", kind, w)
    return params, warnings


# ---------------------------------------------------------------------------
# Per-kind normalization
# ---------------------------------------------------------------------------


def _normalize_wing(
    fields: dict[str, Any], text: str, out: list[str]
) -> WingParameters:
    span = _primary_dimension(fields.get("span"), text, "wing span", WING_DEFAULT_SPAN, out)
    if span > WING_MAX_SPAN:
        out.append(
            f"Span {span:g} m too large (>{WING_MAX_SPAN:g} m). Clamped to {WING_MAX_SPAN:g} m."
        )
        span = WING_MAX_SPAN

    # A single chord means an untapered wing; explicit root/tip override it.
    root_chord = tip_chord = _positive(coerce_length(fields.get("chord")))
    explicit_root = _positive(coerce_length(fields.get("root_chord")))
    explicit_tip = _positive(coerce_length(fields.get("tip_chord")))
    if explicit_root is not None:
        root_chord = explicit_root
    if explicit_tip is not None:
        tip_chord = explicit_tip

    if root_chord is None:
        out.append(
            f"Root chord missing or invalid. Using default {WING_DEFAULT_ROOT_CHORD:g} m."
        )
        root_chord = WING_DEFAULT_ROOT_CHORD
    if tip_chord is None:
        tip_chord = root_chord * WING_DEFAULT_TIP_FRACTION
        out.append(
            f"Tip chord missing or invalid. Using {WING_DEFAULT_TIP_FRACTION:.0%} "
            f"of root chord ({tip_chord:g} m)."
        )

    sweep = _sweep(fields.get("sweep_deg"), "wing sweep", out)

    return WingParameters(
        span=span,
        root_chord=root_chord,
        tip_chord=tip_chord,
        sweep_deg=sweep,
        naca=clean_naca_code(fields.get("naca")),
    )


def _normalize_fuselage(
    fields: dict[str, Any], text: str, out: list[str]
) -> FuselageParameters:
    length = _primary_dimension(
        fields.get("length"), text, "fuselage length", FUSELAGE_DEFAULT_LENGTH, out
    )
    diameter = _positive(coerce_length(fields.get("diameter")))
    if diameter is None:
        out.append(
            f"Diameter missing or invalid. Using default {FUSELAGE_DEFAULT_DIAMETER:g} m."
        )
        diameter = FUSELAGE_DEFAULT_DIAMETER
    return FuselageParameters(length=length, diameter=diameter)


def _normalize_stabilizer(
    fields: dict[str, Any], text: str, label: str, out: list[str]
) -> StabilizerParameters:
    span = _primary_dimension(
        fields.get("span"), text, "stabilizer span", STABILIZER_DEFAULT_SPAN, out
    )
    sweep = _sweep(fields.get("sweep_deg"), "stabilizer sweep", out)

    orientation = fields.get("orientation")
    if isinstance(orientation, str) and orientation.strip().lower() in ("horizontal", "vertical"):
        orientation = orientation.strip().lower()
    elif "vertical" in label.lower() or "vertical" in text.lower():
        orientation = "vertical"
    else:
        orientation = "horizontal"

    return StabilizerParameters(span=span, sweep_deg=sweep, orientation=orientation)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _canonical_fields(raw: Mapping[str, Any]) -> dict[str, Any]:
    """Collapse aliased raw keys onto canonical names; unknown keys are dropped."""
    fields: dict[str, Any] = {}
    for name, aliases in _FIELD_ALIASES.items():
        for key in aliases:
            value = raw.get(key)
            if value is not None:
                fields[name] = value
                break
    return fields


def _positive(value: float | None) -> float | None:
    if value is None or value <= 0:
        return None
    return value


def _primary_dimension(
    value: object,
    text: str,
    label: str,
    default: float,
    out: list[str],
) -> float:
    """Span/length: explicit value, else a size from the text, else the default."""
    number = _positive(coerce_length(value))
    if number is not None:
        return number

    mapped = _positive(parse_length(text))
    if mapped is not None:
        out.append(f"Mapped provided size to {label}")
        return mapped

    out.append(f"{label.capitalize()} missing or invalid. Using default {default:g} m.")
    return default


def _sweep(value: object, label: str, out: list[str]) -> float:
    """Sweep: explicit value (``25`` or ``"25 deg"``), else 0; then clamp.

    Angles in the free text are not used: they usually describe dihedral,
    incidence or fences rather than sweep.
    """
    sweep = coerce_angle(value)
    if sweep is None:
        out.append(f"{label.capitalize()} missing or invalid. Using 0°.")
        return SWEEP_MIN_DEG

    if sweep < SWEEP_MIN_DEG or sweep > SWEEP_MAX_DEG:
        clamped = min(max(sweep, SWEEP_MIN_DEG), SWEEP_MAX_DEG)
        out.append(
            f"Sweep {sweep:g}° out of range ({SWEEP_MIN_DEG:g}–{SWEEP_MAX_DEG:g}°). "
            f"Clamped to {clamped:g}°."
        )
        sweep = clamped
    return sweep
