"""Tests for the NACA 4-digit and tail-profile generators."""

from __future__ import annotations

import itertools

import pytest

from aerogen.geometry.airfoil import (
    TE_GAP_FRACTION,
    clean_naca_code,
    naca4,
    signed_area,
    tail_profile,
)

SAMPLE_CODES = ["0012", "2412", "4415", "0006", "6409", "9999", "1008"]


class TestNaca4:
    @pytest.mark.parametrize("code", SAMPLE_CODES)
    def test_point_count(self, code: str) -> None:
        assert len(naca4(code, 1.0, 40)) == 81

    @pytest.mark.parametrize("code", SAMPLE_CODES)
    def test_leading_edge_first_on_chord_line(self, code: str) -> None:
        x, y = naca4(code)[0]
        assert x == pytest.approx(0.0, abs=1e-12)
        assert y == pytest.approx(0.0, abs=1e-12)

    @pytest.mark.parametrize("code, chord", itertools.product(SAMPLE_CODES, [1.0, 2.5]))
    def test_trailing_edge_gap_is_two_epsilon(self, code: str, chord: float) -> None:
        pts = naca4(code, chord, 40)
        te_lower, te_upper = pts[40], pts[41]
        assert te_lower[0] == pytest.approx(chord)
        assert te_upper[0] == pytest.approx(chord)
        assert te_upper[1] - te_lower[1] == pytest.approx(2 * TE_GAP_FRACTION * chord, rel=1e-9)

    @pytest.mark.parametrize("code", SAMPLE_CODES)
    def test_counter_clockwise(self, code: str) -> None:
        assert signed_area(naca4(code)) > 0

    def test_not_explicitly_closed(self) -> None:
        pts = naca4("2412")
        assert pts[0] != pts[-1]

    def test_chord_scaling(self) -> None:
        unit = naca4("2412", 1.0)
        scaled = naca4("2412", 3.0)
        for (ux, uy), (sx, sy) in zip(unit, scaled):
            assert sx == pytest.approx(3.0 * ux)
            assert sy == pytest.approx(3.0 * uy)

    def test_symmetric_section_is_mirrored(self) -> None:
        pts = naca4("0012", 1.0, 20)
        lower = pts[1:21]
        upper = pts[21:][::-1]
        for (lx, ly), (ux, uy) in zip(lower[:-1], upper[:-1]):
            assert lx == pytest.approx(ux)
            assert ly == pytest.approx(-uy)

    def test_thickness_close_to_nominal(self) -> None:
        pts = naca4("0012", 1.0, 80)
        ys = [y for _, y in pts]
        assert max(ys) - min(ys) == pytest.approx(0.12, abs=0.002)

    def test_camber_shifts_upper_surface(self) -> None:
        pts = naca4("4412", 1.0, 40)
        ys = [y for _, y in pts]
        assert max(ys) > -min(ys)

    def test_cosine_spacing_clusters_at_edges(self) -> None:
        pts = naca4("0012", 1.0, 40)
        lower_x = [x for x, _ in pts[1:41]]
        assert lower_x[0] < 0.01
        assert lower_x[20] - lower_x[19] > lower_x[1] - lower_x[0]

    @pytest.mark.parametrize("code", ["012", "24a2", "", "12345"])
    def test_invalid_code_raises(self, code: str) -> None:
        with pytest.raises(ValueError):
            naca4(code)

    def test_too_few_samples_raises(self) -> None:
        with pytest.raises(ValueError):
            naca4("0012", 1.0, 1)


class TestCleanNacaCode:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("2412", "2412"),
            ("NACA 2412", "2412"),
            ("naca-4415", "4415"),
            (2412, "2412"),
            ("24123", "0012"),
            ("12", "0012"),
            ("", "0012"),
            (None, "0012"),
            (True, "0012"),
        ],
    )
    def test_clean(self, raw: object, expected: str) -> None:
        assert clean_naca_code(raw) == expected


class TestTailProfile:
    def test_shape(self) -> None:
        flat = [c for point in tail_profile(1.5) for c in point]
        assert flat == pytest.approx([0.0, 0.0, 1.5, 0.0, 1.2, 0.225, 0.3, 0.225])

    def test_counter_clockwise(self) -> None:
        assert signed_area(tail_profile()) > 0
