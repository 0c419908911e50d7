"""Tests for the safety envelope checker (W01-W05, F01-F03, T01-T02)."""

from __future__ import annotations

import pytest

from aerogen.models import FuselageParameters, StabilizerParameters, WingParameters
from aerogen.safety import check


def _ids(findings) -> list[str]:
    return [f.id for f in findings]


class TestCleanRecords:
    @pytest.mark.parametrize("fixture", ["wing_params", "swept_wing_params", "fuselage_params", "stabilizer_params"])
    def test_nominal_fixtures_pass(self, request, fixture: str) -> None:
        verdict = check(request.getfixturevalue(fixture))
        assert verdict.passed
        assert verdict.is_safe

    def test_unknown_kind_is_clean(self) -> None:
        assert check(object()).passed

    def test_deterministic(self) -> None:
        params = WingParameters(span=90.0, root_chord=0.4, tip_chord=0.05)
        assert check(params) == check(params)


class TestWing:
    def test_w01_span_too_large(self) -> None:
        verdict = check(WingParameters(span=90.0, root_chord=2.0, tip_chord=1.0))
        assert _ids(verdict.critical) == ["W01"]
        # 90^2 / 135 = 60
        assert _ids(verdict.warning) == ["W04"]
        assert not verdict.is_safe

    def test_w01_span_too_small(self) -> None:
        verdict = check(WingParameters(span=1.5, root_chord=0.6, tip_chord=0.6))
        assert "W01" in _ids(verdict.critical)
        assert verdict.critical[0].fields == ["span"]

    @pytest.mark.parametrize("root, level", [(0.4, "critical"), (16.0, "warning")])
    def test_w02_root_chord(self, root: float, level: str) -> None:
        verdict = check(WingParameters(span=10.0, root_chord=root, tip_chord=root))
        findings = verdict.critical if level == "critical" else verdict.warning
        assert "W02" in _ids(findings)

    @pytest.mark.parametrize("sweep, expected", [(49.9, None), (50.0, "warning"), (55.0, "warning"), (60.0, "warning")])
    def test_w03_sweep_band(self, sweep: float, expected: str | None) -> None:
        verdict = check(WingParameters(span=10.0, root_chord=2.0, tip_chord=1.0, sweep_deg=sweep))
        assert ("W03" in _ids(verdict.warning)) == (expected == "warning")
        assert "W03" not in _ids(verdict.critical)

    def test_w03_unvalidated_sweep_is_critical(self, wing_params: WingParameters) -> None:
        # Slider edits can bypass model validation.
        wing_params.sweep_deg = 70.0
        verdict = check(wing_params)
        assert _ids(verdict.critical) == ["W03"]
        assert "70" in verdict.critical[0].message

    @pytest.mark.parametrize("span, chord", [(40.0, 2.0), (4.0, 2.0)])
    def test_w04_aspect_ratio(self, span: float, chord: float) -> None:
        verdict = check(WingParameters(span=span, root_chord=chord, tip_chord=chord))
        assert _ids(verdict.warning) == ["W04"]

    def test_w05_inverse_taper(self) -> None:
        verdict = check(WingParameters(span=10.0, root_chord=2.0, tip_chord=2.1))
        assert _ids(verdict.warning) == ["W05"]
        assert "Inverse taper" in verdict.warning[0].message

    def test_w05_aggressive_taper(self) -> None:
        verdict = check(WingParameters(span=10.0, root_chord=2.0, tip_chord=0.3))
        assert "W05" in _ids(verdict.warning)

    def test_missing_field_skips_dependent_checks(self) -> None:
        params = WingParameters.model_construct(span=10.0, root_chord="wide", tip_chord=1.0, sweep_deg=0.0)
        verdict = check(params)
        assert verdict.passed


class TestFuselage:
    def test_default_is_stubby(self) -> None:
        verdict = check(FuselageParameters())
        assert _ids(verdict.warning) == ["F03"]
        assert verdict.is_safe

    def test_f01_too_long(self) -> None:
        verdict = check(FuselageParameters(length=90.0, diameter=6.0))
        assert _ids(verdict.critical) == ["F01"]

    def test_f01_short_is_warning(self) -> None:
        verdict = check(FuselageParameters(length=4.0, diameter=0.5))
        assert _ids(verdict.critical) == []
        assert "F01" in _ids(verdict.warning)

    @pytest.mark.parametrize("diameter", [1.0, 9.0])
    def test_f02_diameter(self, diameter: float) -> None:
        verdict = check(FuselageParameters(length=diameter * 10, diameter=diameter))
        assert "F02" in _ids(verdict.warning)

    def test_f03_slender(self) -> None:
        verdict = check(FuselageParameters(length=50.0, diameter=2.0))
        assert _ids(verdict.warning) == ["F03"]


class TestStabilizer:
    def test_vertical_six_meters_clean(self) -> None:
        assert check(StabilizerParameters(span=6.0, orientation="vertical")).passed

    @pytest.mark.parametrize("span", [1.0, 16.0])
    def test_t01_span(self, span: float) -> None:
        assert _ids(check(StabilizerParameters(span=span)).warning) == ["T01"]

    def test_t02_sweep(self) -> None:
        verdict = check(StabilizerParameters(span=4.0, sweep_deg=55.0))
        assert _ids(verdict.warning) == ["T02"]
        assert verdict.critical == []

    def test_never_critical(self) -> None:
        verdict = check(StabilizerParameters.model_construct(span=500.0, sweep_deg=89.0))
        assert verdict.critical == []
        assert _ids(verdict.warning) == ["T01", "T02"]
