"""Aerodynamic metrics -- planform area, aspect ratio, taper ratio.

Pure math, no geometry.  Safe to call on every slider edit.

**Formulas:**
1. planform_area  S = span * (root_chord + tip_chord) / 2
2. aspect_ratio  AR = span^2 / S
3. taper_ratio    l = tip_chord / root_chord

The three are mutually derivable, so an edit to any one of them can be
solved back into span / root_chord / tip_chord (``apply_metric_edit``).
"""

from __future__ import annotations

import math
from typing import Any

from aerogen.models import AeroMetrics, MetricName, WingParameters


def compute_aero_metrics(params: Any) -> AeroMetrics | None:
    """Metrics for a wing; None for other kinds or non-positive dimensions."""
    if getattr(params, "kind", None) != "wing":
        return None
    span = getattr(params, "span", None)
    root = getattr(params, "root_chord", None)
    tip = getattr(params, "tip_chord", None)
    if not all(isinstance(v, (int, float)) and v > 0 for v in (span, root, tip)):
        return None

    area = span * (root + tip) / 2.0
    return AeroMetrics(
        aspect_ratio=span**2 / area,
        taper_ratio=tip / root,
        planform_area=area,
    )


def wing_from_metrics(
    aspect_ratio: float, taper_ratio: float, planform_area: float,
) -> tuple[float, float, float]:
    """Solve ``(span, root_chord, tip_chord)`` from AR, taper ratio and area.

    Raises:
        ValueError: If any input is not positive.
    """
    _require_positive("aspect_ratio", aspect_ratio)
    _require_positive("taper_ratio", taper_ratio)
    _require_positive("planform_area", planform_area)
    span = math.sqrt(aspect_ratio * planform_area)
    root_chord = (2.0 * planform_area / span) / (1.0 + taper_ratio)
    return span, root_chord, root_chord * taper_ratio


def apply_metric_edit(
    params: WingParameters, metric: MetricName, value: float,
) -> WingParameters:
    """Return a new wing with one metric set to *value*.

    - ``aspect_ratio``: span = sqrt(AR * S); chords re-solved so S is held.
    - ``taper_ratio``: tip_chord = root_chord * l.
    - ``planform_area``: root_chord = (2S / span) / (1 + l), tip_chord = root_chord * l.

    The input is never modified.  The result is revalidated, so an edit that
    pushes span past its limit raises ``pydantic.ValidationError``.

    Raises:
        ValueError: If *value* is not positive, *metric* is unknown, or
            *params* has no metrics.
    """
    _require_positive(metric, value)
    current = compute_aero_metrics(params)
    if current is None:
        raise ValueError("metric edits need a wing with positive span and chords")

    if metric == "aspect_ratio":
        span, root, tip = wing_from_metrics(value, current.taper_ratio, current.planform_area)
    elif metric == "taper_ratio":
        span, root, tip = params.span, params.root_chord, params.root_chord * value
    elif metric == "planform_area":
        span = params.span
        root = (2.0 * value / span) / (1.0 + current.taper_ratio)
        tip = root * current.taper_ratio
    else:
        raise ValueError(f"Unknown metric {metric!r}")

    data = params.model_dump()
    data.update(span=span, root_chord=root, tip_chord=tip)
    return WingParameters.model_validate(data)


def _require_positive(name: str, value: float) -> None:
    if not isinstance(value, (int, float)) or isinstance(value, bool) or not value > 0:
        raise ValueError(f"{name} must be positive, got {value!r}")
    if math.isinf(value):
        raise ValueError(f"{name} must be finite, got {value!r}")
