"""
In-process map service: lanes laid out as lateral bands along a reference line.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from planning.path_bounds.path_boundary import LaneBorrowMode
from planning.reference_line import ReferenceLine

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Lane:
    """A lane running along the reference line."""

    lane_id: str
    center_offset: float  # lateral offset of the lane center from the reference (m)
    width: float  # m
    s_start: float = 0.0
    s_end: float = math.inf
    left_neighbor_id: Optional[str] = None
    right_neighbor_id: Optional[str] = None
    width_profile: Tuple[Tuple[float, float], ...] = ()  # optional (s, width) knots

    def covers(self, s: float) -> bool:
        return self.s_start <= s <= self.s_end

    def width_at(self, s: float) -> float:
        if not self.width_profile:
            return float(self.width)
        knots = np.asarray(self.width_profile, dtype=np.float64)
        return float(np.interp(s, knots[:, 0], knots[:, 1]))

    def edges_at(self, s: float) -> Tuple[float, float]:
        """(left_edge, right_edge) as signed lateral offsets."""
        half = 0.5 * self.width_at(s)
        return self.center_offset + half, self.center_offset - half


class LaneMap:
    """
    Lane lookup keyed on the reference line.

    All lateral quantities are signed offsets from the reference line, so a
    lane's edges can be used directly as corridor bounds.
    """

    def __init__(self, reference_line: ReferenceLine, lanes: Iterable[Lane],
                 heading_tolerance: float = math.pi / 2.0):
        self.reference_line = reference_line
        self.heading_tolerance = float(heading_tolerance)
        self._lanes: Dict[str, Lane] = {}
        for lane in lanes:
            if lane.lane_id in self._lanes:
                raise ValueError(f"duplicate lane id: {lane.lane_id}")
            self._lanes[lane.lane_id] = lane

    @classmethod
    def straight_road(cls, reference_line: ReferenceLine, lane_width: float = 3.5,
                      num_left_lanes: int = 0, num_right_lanes: int = 0,
                      heading_tolerance: float = math.pi / 2.0) -> LaneMap:
        """
        Parallel lanes of equal width; the reference line is the center of
        lane "lane_0". Left lanes are "lane_L1", "lane_L2", ... and right lanes
        "lane_R1", ...
        """
        ids: List[str] = [f"lane_R{i}" for i in range(num_right_lanes, 0, -1)]
        ids.append("lane_0")
        ids.extend(f"lane_L{i}" for i in range(1, num_left_lanes + 1))
        ego_pos = num_right_lanes

        lanes = []
        for pos, lane_id in enumerate(ids):
            lanes.append(Lane(
                lane_id=lane_id,
                center_offset=(pos - ego_pos) * lane_width,
                width=lane_width,
                s_start=0.0,
                s_end=reference_line.length,
                left_neighbor_id=ids[pos + 1] if pos + 1 < len(ids) else None,
                right_neighbor_id=ids[pos - 1] if pos > 0 else None,
            ))
        return cls(reference_line, lanes, heading_tolerance=heading_tolerance)

    @property
    def lanes(self) -> List[Lane]:
        return list(self._lanes.values())

    def get_lane(self, lane_id: Optional[str]) -> Optional[Lane]:
        if lane_id is None:
            return None
        return self._lanes.get(lane_id)

    def resolve_lane(self, point: Sequence[float], heading: float) -> Optional[Lane]:
        """Lane containing the point and roughly aligned with heading, or None."""
        if self.reference_line.is_degenerate:
            return None
        s, l = self.reference_line.xy_to_sl(float(point[0]), float(point[1]))
        ref_heading = self.reference_line.heading_at(s)
        heading_diff = math.atan2(math.sin(heading - ref_heading), math.cos(heading - ref_heading))
        if abs(heading_diff) > self.heading_tolerance:
            logger.debug(f"[MAP] heading mismatch {math.degrees(heading_diff):.1f}deg at s={s:.2f}")
            return None

        best: Optional[Lane] = None
        best_dist = math.inf
        for lane in self._lanes.values():
            if not lane.covers(s):
                continue
            left_edge, right_edge = lane.edges_at(s)
            if right_edge <= l <= left_edge:
                dist = abs(l - lane.center_offset)
                if dist < best_dist:
                    best, best_dist = lane, dist
        return best

    def lane_width_at(self, lane: Optional[Lane], s: float) -> Optional[Tuple[float, float]]:
        """(left_edge, right_edge) of the lane at s, or None if it does not cover s."""
        if lane is None or not lane.covers(s):
            return None
        return lane.edges_at(s)

    def neighbor_lane(self, lane: Optional[Lane], side: str) -> Optional[Lane]:
        if lane is None:
            return None
        if side == "left":
            return self.get_lane(lane.left_neighbor_id)
        if side == "right":
            return self.get_lane(lane.right_neighbor_id)
        raise ValueError(f"Unknown neighbor side: {side}")

    def has_neighbor(self, lane: Optional[Lane], borrow_mode: LaneBorrowMode) -> bool:
        """Whether road geometry permits the given borrow mode from lane."""
        if borrow_mode is LaneBorrowMode.NO_BORROW:
            return lane is not None
        side = "left" if borrow_mode is LaneBorrowMode.LEFT_BORROW else "right"
        return self.neighbor_lane(lane, side) is not None
