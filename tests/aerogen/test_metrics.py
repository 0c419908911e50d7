"""Tests for planform metrics and metric-driven wing edits."""

from __future__ import annotations

import math
import random

import pytest
from pydantic import ValidationError

from aerogen.metrics import apply_metric_edit, compute_aero_metrics, wing_from_metrics
from aerogen.models import FuselageParameters, StabilizerParameters, WingParameters


class TestComputeAeroMetrics:
    def test_tapered_wing(self, wing_params: WingParameters) -> None:
        metrics = compute_aero_metrics(wing_params)
        assert metrics is not None
        assert metrics.planform_area == pytest.approx(15.0)
        assert metrics.aspect_ratio == pytest.approx(100.0 / 15.0)
        assert metrics.taper_ratio == pytest.approx(0.5)

    def test_rectangular_wing(self) -> None:
        metrics = compute_aero_metrics(WingParameters(span=8.0, root_chord=1.0, tip_chord=1.0))
        assert metrics.aspect_ratio == pytest.approx(8.0)
        assert metrics.taper_ratio == pytest.approx(1.0)

    def test_other_kinds(self, fuselage_params: FuselageParameters, stabilizer_params: StabilizerParameters) -> None:
        assert compute_aero_metrics(fuselage_params) is None
        assert compute_aero_metrics(stabilizer_params) is None

    def test_non_positive_dimensions(self) -> None:
        assert compute_aero_metrics(WingParameters.model_construct(root_chord=0.0)) is None
        assert compute_aero_metrics(WingParameters.model_construct(span=None)) is None

    def test_camel_case_dump(self, wing_params: WingParameters) -> None:
        data = compute_aero_metrics(wing_params).model_dump(by_alias=True)
        assert set(data) == {"aspectRatio", "taperRatio", "planformArea"}


class TestWingFromMetrics:
    def test_known_values(self) -> None:
        span, root, tip = wing_from_metrics(100.0 / 15.0, 0.5, 15.0)
        assert (span, root, tip) == pytest.approx((10.0, 2.0, 1.0))

    def test_recovers_random_wings(self) -> None:
        rng = random.Random(1234)
        for _ in range(200):
            span = rng.uniform(0.5, 100.0)
            root = rng.uniform(0.1, 20.0)
            tip = rng.uniform(0.05, 20.0)
            m = compute_aero_metrics(WingParameters(span=span, root_chord=root, tip_chord=tip))
            got = wing_from_metrics(m.aspect_ratio, m.taper_ratio, m.planform_area)
            assert got == pytest.approx((span, root, tip), rel=1e-9)

    @pytest.mark.parametrize("args", [(0.0, 0.5, 10.0), (6.0, -0.1, 10.0), (6.0, 0.5, 0.0)])
    def test_rejects_non_positive(self, args) -> None:
        with pytest.raises(ValueError):
            wing_from_metrics(*args)


class TestApplyMetricEdit:
    def test_aspect_ratio_holds_area_and_taper(self, wing_params: WingParameters) -> None:
        edited = apply_metric_edit(wing_params, "aspect_ratio", 10.0)
        assert edited.span == pytest.approx(math.sqrt(150.0))
        assert edited.root_chord == pytest.approx(1.632993, rel=1e-5)
        assert edited.tip_chord == pytest.approx(0.816497, rel=1e-5)
        m = compute_aero_metrics(edited)
        assert m.aspect_ratio == pytest.approx(10.0)
        assert m.planform_area == pytest.approx(15.0)
        assert m.taper_ratio == pytest.approx(0.5)

    def test_taper_ratio_moves_tip_only(self, wing_params: WingParameters) -> None:
        edited = apply_metric_edit(wing_params, "taper_ratio", 0.8)
        assert edited.span == wing_params.span
        assert edited.root_chord == wing_params.root_chord
        assert edited.tip_chord == pytest.approx(1.6)

    def test_planform_area_keeps_span_and_taper(self, wing_params: WingParameters) -> None:
        edited = apply_metric_edit(wing_params, "planform_area", 20.0)
        assert edited.span == wing_params.span
        assert edited.root_chord == pytest.approx(8.0 / 3.0)
        assert edited.tip_chord == pytest.approx(4.0 / 3.0)
        assert compute_aero_metrics(edited).planform_area == pytest.approx(20.0)

    def test_other_fields_carried(self, swept_wing_params: WingParameters) -> None:
        edited = apply_metric_edit(swept_wing_params, "taper_ratio", 0.5)
        assert edited.sweep_deg == 30.0
        assert edited.naca == "2412"

    def test_input_not_modified(self, wing_params: WingParameters) -> None:
        before = wing_params.model_dump()
        apply_metric_edit(wing_params, "aspect_ratio", 12.0)
        assert wing_params.model_dump() == before

    def test_edit_past_span_limit_revalidated(self, wing_params: WingParameters) -> None:
        with pytest.raises(ValidationError):
            apply_metric_edit(wing_params, "aspect_ratio", 1000.0)

    @pytest.mark.parametrize("value", [0.0, -2.0, float("nan"), float("inf"), True])
    def test_rejects_bad_values(self, wing_params: WingParameters, value) -> None:
        with pytest.raises(ValueError):
            apply_metric_edit(wing_params, "taper_ratio", value)

    def test_unknown_metric(self, wing_params: WingParameters) -> None:
        with pytest.raises(ValueError, match="Unknown metric"):
            apply_metric_edit(wing_params, "span", 3.0)  # type: ignore[arg-type]

    def test_non_wing(self, fuselage_params: FuselageParameters) -> None:
        with pytest.raises(ValueError):
            apply_metric_edit(fuselage_params, "aspect_ratio", 6.0)  # type: ignore[arg-type]
