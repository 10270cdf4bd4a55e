"""
Tests for planning/reference_line.py (Frenet projection conventions).
"""

import math

import pytest

from planning.path_bounds.errors import EmptyReferenceError
from planning.reference_line import ReferenceLine


def test_straight_line_length():
    ref = ReferenceLine.from_straight(100.0)
    assert ref.length == pytest.approx(100.0)
    assert not ref.is_degenerate


def test_lateral_offset_positive_to_the_left():
    ref = ReferenceLine.from_straight(100.0)
    s, l = ref.xy_to_sl(10.0, 2.0)
    assert s == pytest.approx(10.0)
    assert l == pytest.approx(2.0)

    s, l = ref.xy_to_sl(10.0, -1.0)
    assert l == pytest.approx(-1.0)


def test_northbound_line_left_is_west():
    ref = ReferenceLine.from_straight(50.0, heading=math.pi / 2.0)
    s, l = ref.xy_to_sl(-1.0, 10.0)
    assert s == pytest.approx(10.0)
    assert l == pytest.approx(1.0)


def test_point_before_start_projects_on_extension():
    ref = ReferenceLine.from_straight(100.0)
    s, l = ref.xy_to_sl(-5.0, 1.0)
    assert s == pytest.approx(-5.0)
    assert l == pytest.approx(1.0)


def test_sl_to_xy_inverts_projection():
    ref = ReferenceLine.from_straight(100.0)
    x, y = ref.sl_to_xy(12.5, 1.0)
    assert x == pytest.approx(12.5)
    assert y == pytest.approx(1.0)


class TestPolyline:
    def _l_shape(self) -> ReferenceLine:
        # East for 10m, then north for 10m.
        return ReferenceLine([(0.0, 0.0), (10.0, 0.0), (10.0, 10.0)])

    def test_arc_length_across_corner(self):
        ref = self._l_shape()
        assert ref.length == pytest.approx(20.0)
        s, l = ref.xy_to_sl(10.0, 5.0)
        assert s == pytest.approx(15.0)
        assert l == pytest.approx(0.0)

    def test_offset_on_second_segment(self):
        s, l = self._l_shape().xy_to_sl(9.0, 5.0)
        assert s == pytest.approx(15.0)
        assert l == pytest.approx(1.0)

    def test_heading_follows_segment(self):
        ref = self._l_shape()
        assert ref.heading_at(5.0) == pytest.approx(0.0)
        assert ref.heading_at(15.0) == pytest.approx(math.pi / 2.0)


class TestDegenerate:
    def test_single_point_is_degenerate(self):
        ref = ReferenceLine([(0.0, 0.0)])
        assert ref.is_degenerate
        assert ref.length == 0.0

    def test_repeated_points_are_collapsed(self):
        ref = ReferenceLine([(1.0, 1.0), (1.0, 1.0)])
        assert ref.is_degenerate

    def test_projection_raises(self):
        ref = ReferenceLine([(0.0, 0.0)])
        with pytest.raises(EmptyReferenceError):
            ref.xy_to_sl(1.0, 0.0)
        with pytest.raises(EmptyReferenceError):
            ref.heading_at(0.0)
