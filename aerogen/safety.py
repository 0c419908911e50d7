"""Safety envelope checker -- classify a parameter record against fixed limits.

Implements:
  - 5 wing checks        (W01-W05)
  - 3 fuselage checks    (F01-F03)
  - 2 stabilizer checks  (T01-T02)

Each check appends at most one SafetyFinding to the list it is given.  A
finding is "critical" when a hard limit is violated and "warning" when the
value is plausible but outside the nominal band.  Checks are independent, so
their order only affects list order, never the findings produced.

The checker never raises: a field that is missing or non-numeric (possible
after unvalidated slider edits) simply skips the checks that need it.
"""

from __future__ import annotations

from typing import Any

from aerogen.models import SafetyFinding, SafetyVerdict


def _num(params: Any, name: str) -> float | None:
    """Field *name* as a float, or None if absent or non-numeric."""
    value = getattr(params, name, None)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if value != value:  # NaN
        return None
    return float(value)


def _finding(level: str, id: str, message: str, fields: list[str]) -> SafetyFinding:
    return SafetyFinding(id=id, level=level, message=message, fields=fields)


# ---------------------------------------------------------------------------
# Wing (W01 - W05)
# ---------------------------------------------------------------------------


def _check_w01(params: Any, out: list[SafetyFinding]) -> None:
    """W01: span > 80 m or < 2 m -- outside the buildable envelope."""
    span = _num(params, "span")
    if span is None:
        return
    if span > 80:
        out.append(_finding("critical", "W01", f"Wing span {span:g} m exceeds 80 m limit", ["span"]))
    elif span < 2:
        out.append(_finding("critical", "W01", f"Wing span {span:g} m below 2 m minimum", ["span"]))


def _check_w02(params: Any, out: list[SafetyFinding]) -> None:
    """W02: root chord < 0.5 m critical, > 15 m warning."""
    root = _num(params, "root_chord")
    if root is None:
        return
    if root < 0.5:
        out.append(_finding(
            "critical", "W02", f"Root chord {root:g} m below 0.5 m minimum", ["root_chord"],
        ))
    elif root > 15:
        out.append(_finding(
            "warning", "W02", f"Root chord {root:g} m unusually large (>15 m)", ["root_chord"],
        ))


def _check_w03(params: Any, out: list[SafetyFinding]) -> None:
    """W03: sweep > 60 deg critical, [50, 60] deg warning."""
    sweep = _num(params, "sweep_deg")
    if sweep is None:
        return
    if sweep > 60:
        out.append(_finding(
            "critical", "W03", f"Sweep {sweep:g}° exceeds 60° limit", ["sweep_deg"],
        ))
    elif sweep >= 50:
        out.append(_finding(
            "warning", "W03", f"High sweep {sweep:g}° (50–60°)", ["sweep_deg"],
        ))


def _check_w04(params: Any, out: list[SafetyFinding]) -> None:
    """W04: aspect ratio > 15 or < 3."""
    span = _num(params, "span")
    root = _num(params, "root_chord")
    tip = _num(params, "tip_chord")
    if span is None or root is None or tip is None:
        return
    area = span * (root + tip) / 2.0
    if area <= 0:
        return
    ar = span**2 / area
    if ar > 15:
        out.append(_finding(
            "warning", "W04", f"Aspect ratio {ar:.1f} very high (>15), structural loading",
            ["span", "root_chord", "tip_chord"],
        ))
    elif ar < 3:
        out.append(_finding(
            "warning", "W04", f"Aspect ratio {ar:.1f} very low (<3), poor lift efficiency",
            ["span", "root_chord", "tip_chord"],
        ))


def _check_w05(params: Any, out: list[SafetyFinding]) -> None:
    """W05: taper ratio < 0.2 (tip stall risk) or > 1.0 (inverse taper)."""
    root = _num(params, "root_chord")
    tip = _num(params, "tip_chord")
    if root is None or tip is None or root <= 0:
        return
    lam = tip / root
    if lam < 0.2:
        out.append(_finding(
            "warning", "W05", f"Aggressive taper λ={lam:.2f} (<0.2), tip stall risk",
            ["root_chord", "tip_chord"],
        ))
    elif lam > 1.0:
        out.append(_finding(
            "warning", "W05", f"Inverse taper λ={lam:.2f} (>1.0)",
            ["root_chord", "tip_chord"],
        ))


# ---------------------------------------------------------------------------
# Fuselage (F01 - F03)
# ---------------------------------------------------------------------------


def _check_f01(params: Any, out: list[SafetyFinding]) -> None:
    """F01: length > 80 m critical, < 5 m warning."""
    length = _num(params, "length")
    if length is None:
        return
    if length > 80:
        out.append(_finding(
            "critical", "F01", f"Fuselage length {length:g} m exceeds 80 m limit", ["length"],
        ))
    elif length < 5:
        out.append(_finding(
            "warning", "F01", f"Fuselage length {length:g} m very short (<5 m)", ["length"],
        ))


def _check_f02(params: Any, out: list[SafetyFinding]) -> None:
    """F02: diameter > 8 m or < 1.5 m."""
    diameter = _num(params, "diameter")
    if diameter is None:
        return
    if diameter > 8 or diameter < 1.5:
        out.append(_finding(
            "warning", "F02", f"Fuselage diameter {diameter:g} m outside 1.5–8 m", ["diameter"],
        ))


def _check_f03(params: Any, out: list[SafetyFinding]) -> None:
    """F03: fineness ratio (length / diameter) > 20 or < 5."""
    length = _num(params, "length")
    diameter = _num(params, "diameter")
    if length is None or diameter is None or diameter <= 0:
        return
    fineness = length / diameter
    if fineness > 20:
        out.append(_finding(
            "warning", "F03", f"Slender fuselage, length/diameter {fineness:.1f} (>20)",
            ["length", "diameter"],
        ))
    elif fineness < 5:
        out.append(_finding(
            "warning", "F03", f"Stubby fuselage, length/diameter {fineness:.1f} (<5)",
            ["length", "diameter"],
        ))


# ---------------------------------------------------------------------------
# Stabilizer (T01 - T02)
# ---------------------------------------------------------------------------


def _check_t01(params: Any, out: list[SafetyFinding]) -> None:
    """T01: span > 15 m or < 2 m."""
    span = _num(params, "span")
    if span is None:
        return
    if span > 15 or span < 2:
        out.append(_finding(
            "warning", "T01", f"Stabilizer span {span:g} m outside 2–15 m", ["span"],
        ))


def _check_t02(params: Any, out: list[SafetyFinding]) -> None:
    """T02: sweep > 50 deg."""
    sweep = _num(params, "sweep_deg")
    if sweep is not None and sweep > 50:
        out.append(_finding(
            "warning", "T02", f"Stabilizer sweep {sweep:g}° high (>50°)", ["sweep_deg"],
        ))


_CHECKS = {
    "wing": (_check_w01, _check_w02, _check_w03, _check_w04, _check_w05),
    "fuselage": (_check_f01, _check_f02, _check_f03),
    "stabilizer": (_check_t01, _check_t02),
}


def check(params: Any) -> SafetyVerdict:
    """Classify *params* against the safety envelopes.

    Pure and deterministic.  Unknown kinds produce a clean verdict.
    """
    findings: list[SafetyFinding] = []
    for rule in _CHECKS.get(getattr(params, "kind", None), ()):
        rule(params, findings)
    return SafetyVerdict(
        critical=[f for f in findings if f.level == "critical"],
        warning=[f for f in findings if f.level == "warning"],
    )
