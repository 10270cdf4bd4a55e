"""
Tests for planning/obstacles.py (footprint projection and scope filter).
"""

import pytest

from planning.obstacles import Obstacle, project_obstacle_footprints
from planning.reference_line import ReferenceLine


REF = ReferenceLine.from_straight(100.0)


def test_box_extent_on_straight_reference():
    obstacle = Obstacle.from_box("a", x=20.0, y=0.0, heading=0.0, length=4.0, width=2.0)
    s_start, s_end, l_min, l_max = obstacle.sl_extent(REF)
    assert s_start == pytest.approx(18.0)
    assert s_end == pytest.approx(22.0)
    assert l_min == pytest.approx(-1.0)
    assert l_max == pytest.approx(1.0)


def test_sl_boundary_is_normalized():
    obstacle = Obstacle("b", sl_boundary=(30.0, 25.0, 1.0, -1.0))
    assert obstacle.sl_extent(REF) == (25.0, 30.0, -1.0, 1.0)


def test_obstacle_requires_geometry():
    with pytest.raises(ValueError):
        Obstacle("c")


class TestProjectFootprints:
    def test_buffers_inflate_footprint(self):
        obstacle = Obstacle("a", sl_boundary=(20.0, 25.0, -0.5, 0.5))
        (footprint,) = project_obstacle_footprints(
            [obstacle], REF, adc_s=0.0, lon_start_buffer=3.0, lon_end_buffer=1.0, lat_buffer=0.4
        )
        assert footprint.obstacle_id == "a"
        assert footprint.s_start == pytest.approx(17.0)
        assert footprint.s_end == pytest.approx(26.0)
        assert footprint.l_min == pytest.approx(-0.9)
        assert footprint.l_max == pytest.approx(0.9)

    def test_scope_filter(self):
        obstacles = [
            Obstacle("static", sl_boundary=(20.0, 25.0, -0.5, 0.5)),
            Obstacle("moving", sl_boundary=(20.0, 25.0, -0.5, 0.5), is_static=False),
            Obstacle("virtual", sl_boundary=(20.0, 25.0, -0.5, 0.5), is_virtual=True),
            Obstacle("behind", sl_boundary=(1.0, 4.0, -0.5, 0.5)),
            Obstacle("alongside", sl_boundary=(3.0, 8.0, 2.0, 3.0)),
        ]
        footprints = project_obstacle_footprints(obstacles, REF, adc_s=5.0)
        assert sorted(fp.obstacle_id for fp in footprints) == ["alongside", "static"]
