"""
Tests for the boundary initializer (station grid and lane + ADC narrowing).
"""

import pytest

from planning.lane_map import Lane, LaneMap
from planning.path_bounds.boundary_initializer import (
    HIGHEST_L,
    LOWEST_L,
    get_boundary_from_lanes_and_adc,
    init_path_boundary,
)
from planning.path_bounds.config import PathBoundsDeciderConfig
from planning.path_bounds.errors import EmptyReferenceError
from planning.path_bounds.path_boundary import ADCFrenetState, LaneBorrowMode
from planning.reference_line import ReferenceLine


def _road(num_left_lanes: int = 0, num_right_lanes: int = 0, length: float = 200.0):
    ref = ReferenceLine.from_straight(length)
    lane_map = LaneMap.straight_road(ref, lane_width=3.5, num_left_lanes=num_left_lanes,
                                     num_right_lanes=num_right_lanes)
    return ref, lane_map


def _adc(lane_map: LaneMap, s: float = 0.0, l: float = 0.0, l_dot: float = 0.0,
         lane_id: str = "lane_0") -> ADCFrenetState:
    return ADCFrenetState(s=s, s_dot=0.0, l=l, l_dot=l_dot, lane_width=3.5,
                          lane_handle=lane_map.get_lane(lane_id))


class TestInitPathBoundary:
    def test_default_horizon(self):
        ref, lane_map = _road()
        boundary = init_path_boundary(ref, _adc(lane_map), PathBoundsDeciderConfig())
        assert len(boundary) == 200
        assert boundary.start_s == 0.0
        assert boundary.end_s == pytest.approx(99.5)
        assert boundary[0].l_min == LOWEST_L
        assert boundary[0].l_max == HIGHEST_L

    def test_horizon_grows_with_cruise_speed(self):
        ref, lane_map = _road()
        boundary = init_path_boundary(ref, _adc(lane_map), PathBoundsDeciderConfig(), cruise_speed=20.0)
        # 20 m/s * 8 s = 160 m
        assert len(boundary) == 320

    def test_clipped_at_reference_end(self):
        ref, lane_map = _road()
        boundary = init_path_boundary(ref, _adc(lane_map, s=150.0), PathBoundsDeciderConfig())
        assert len(boundary) == 100
        assert boundary.end_s < ref.length

    def test_stations_are_strictly_increasing(self):
        ref, lane_map = _road()
        boundary = init_path_boundary(ref, _adc(lane_map, s=3.2), PathBoundsDeciderConfig())
        s_values = [station.s for station in boundary]
        assert all(b > a for a, b in zip(s_values, s_values[1:]))
        assert s_values[0] == pytest.approx(3.2)

    def test_adc_at_end_gives_empty_boundary(self):
        ref, lane_map = _road()
        boundary = init_path_boundary(ref, _adc(lane_map, s=200.0), PathBoundsDeciderConfig())
        assert len(boundary) == 0

    def test_empty_reference_raises(self):
        ref = ReferenceLine([(0.0, 0.0)])
        state = ADCFrenetState(s=0.0, s_dot=0.0, l=0.0, l_dot=0.0, lane_width=0.0)
        with pytest.raises(EmptyReferenceError):
            init_path_boundary(ref, state, PathBoundsDeciderConfig())


class TestLanesAndAdc:
    def _narrow(self, lane_map, ref, adc, borrow_mode=LaneBorrowMode.NO_BORROW, adc_buffer=0.1):
        config = PathBoundsDeciderConfig()
        boundary = init_path_boundary(ref, adc, config)
        ok = get_boundary_from_lanes_and_adc(boundary, adc, lane_map, borrow_mode, adc_buffer, config)
        return ok, boundary

    def test_clear_road_matches_lane_width(self):
        ref, lane_map = _road()
        ok, boundary = self._narrow(lane_map, ref, _adc(lane_map))
        assert ok
        assert not boundary.is_blocked
        for station in boundary:
            assert station.l_min == pytest.approx(-1.75)
            assert station.l_max == pytest.approx(1.75)
            assert station.width == pytest.approx(3.5)

    def test_off_center_adc_stays_contained(self):
        ref, lane_map = _road()
        adc = _adc(lane_map, l=1.5)
        ok, boundary = self._narrow(lane_map, ref, adc)
        assert ok
        # 1.5 + 2.11 / 2 + 0.1
        assert boundary[0].l_max == pytest.approx(2.655)
        assert boundary[0].l_min == pytest.approx(-1.75)
        assert all(station.contains(adc.l) for station in boundary)

    def test_lateral_speed_extends_bound(self):
        ref, lane_map = _road()
        ok, boundary = self._narrow(lane_map, ref, _adc(lane_map, l_dot=1.5))
        assert ok
        # 1.5^2 / 1.5 / 2 = 0.75 ahead of the ADC edge
        assert boundary[0].l_max == pytest.approx(0.75 + 1.155)
        assert boundary[0].l_min == pytest.approx(-1.75)

    def test_left_borrow_widens_into_neighbor(self):
        ref, lane_map = _road(num_left_lanes=1)
        ok, boundary = self._narrow(lane_map, ref, _adc(lane_map), LaneBorrowMode.LEFT_BORROW)
        assert ok
        assert boundary[10].l_max == pytest.approx(5.25)
        assert boundary[10].l_min == pytest.approx(-1.75)

    def test_right_borrow_widens_into_neighbor(self):
        ref, lane_map = _road(num_right_lanes=1)
        ok, boundary = self._narrow(lane_map, ref, _adc(lane_map), LaneBorrowMode.RIGHT_BORROW)
        assert ok
        assert boundary[10].l_min == pytest.approx(-5.25)
        assert boundary[10].l_max == pytest.approx(1.75)

    def test_borrow_without_neighbor_fails(self):
        ref, lane_map = _road()
        ok, _ = self._narrow(lane_map, ref, _adc(lane_map), LaneBorrowMode.LEFT_BORROW)
        assert not ok

    def test_unknown_lane_fails(self):
        ref, lane_map = _road()
        adc = ADCFrenetState(s=0.0, s_dot=0.0, l=0.0, l_dot=0.0, lane_width=0.0, lane_handle=None)
        ok, _ = self._narrow(lane_map, ref, adc)
        assert not ok

    def test_lane_ending_inside_horizon_fails(self):
        ref = ReferenceLine.from_straight(200.0)
        lane_map = LaneMap(ref, [Lane("short", center_offset=0.0, width=3.5, s_end=50.0)])
        adc = ADCFrenetState(s=0.0, s_dot=0.0, l=0.0, l_dot=0.0, lane_width=3.5,
                             lane_handle=lane_map.get_lane("short"))
        ok, _ = self._narrow(lane_map, ref, adc)
        assert not ok
