"""
Ego Frenet state resolution.
"""

from __future__ import annotations

import dataclasses
import logging
import math
from dataclasses import dataclass

from planning.lane_map import LaneMap
from planning.path_bounds.errors import EmptyReferenceError, InitError, LaneResolutionError
from planning.path_bounds.path_boundary import ADCFrenetState
from planning.reference_line import ReferenceLine

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EgoPose:
    """Cartesian ego pose."""
    x: float
    y: float
    heading: float  # radians
    speed: float = 0.0  # m/s


class FrenetStateResolver:
    """Converts the ego pose to an ADCFrenetState and matches its lane."""

    def __init__(self, reference_line: ReferenceLine, lane_map: LaneMap):
        self.reference_line = reference_line
        self.lane_map = lane_map

    def project(self, pose: EgoPose) -> ADCFrenetState:
        """
        Frenet projection only; the returned state carries no lane.

        Raises:
            EmptyReferenceError: the reference line has zero length.
            InitError: the pose does not yield a finite Frenet state.
        """
        if self.reference_line.is_degenerate:
            raise EmptyReferenceError("cannot project ego pose onto an empty reference line")
        s, l = self.reference_line.xy_to_sl(pose.x, pose.y)
        heading_diff = pose.heading - self.reference_line.heading_at(s)
        s_dot = pose.speed * math.cos(heading_diff)
        l_dot = pose.speed * math.sin(heading_diff)
        if not all(math.isfinite(v) for v in (s, l, s_dot, l_dot)):
            raise InitError(f"non-finite ego Frenet state: s={s}, l={l}")
        return ADCFrenetState(s=s, s_dot=s_dot, l=l, l_dot=l_dot, lane_width=0.0, lane_handle=None)

    def attach_lane(self, state: ADCFrenetState, pose: EgoPose) -> ADCFrenetState:
        """Return state with the ego lane resolved.

        Raises:
            LaneResolutionError: no lane matches the pose (e.g. off-map).
        """
        lane = self.lane_map.resolve_lane((pose.x, pose.y), pose.heading)
        if lane is None:
            raise LaneResolutionError(
                f"no lane found near ego at s={state.s:.2f}, l={state.l:.2f}"
            )
        edges = self.lane_map.lane_width_at(lane, state.s)
        lane_width = edges[0] - edges[1] if edges is not None else lane.width
        return dataclasses.replace(state, lane_width=lane_width, lane_handle=lane)

    def resolve(self, pose: EgoPose) -> ADCFrenetState:
        state = self.attach_lane(self.project(pose), pose)
        logger.debug(
            f"[FRENET] s={state.s:.2f} s_dot={state.s_dot:.2f} l={state.l:.2f} "
            f"l_dot={state.l_dot:.2f} lane={state.lane_handle.lane_id}"
        )
        return state
