"""
Boundary initialization: the empty corridor and its narrowing to lane + ADC.
"""

from __future__ import annotations

import logging
import math
import sys
from typing import Optional, Tuple

from planning.lane_map import Lane, LaneMap
from planning.path_bounds.boundary_finalizer import (
    mark_blocked,
    update_path_boundary_and_center_line,
)
from planning.path_bounds.config import PathBoundsDeciderConfig
from planning.path_bounds.errors import EmptyReferenceError, LaneResolutionError
from planning.path_bounds.path_boundary import (
    ADCFrenetState,
    LaneBorrowMode,
    PathBoundary,
    ReferenceStation,
)
from planning.reference_line import ReferenceLine

logger = logging.getLogger(__name__)

LOWEST_L = -sys.float_info.max
HIGHEST_L = sys.float_info.max


def init_path_boundary(
    reference_line: ReferenceLine,
    adc_state: ADCFrenetState,
    config: PathBoundsDeciderConfig,
    cruise_speed: float = 0.0,
) -> PathBoundary:
    """
    Build the un-narrowed corridor ahead of the ADC.

    Stations start at the ADC's s and advance by the configured resolution up
    to the planning horizon or the end of the reference line, whichever comes
    first. The result is empty when the ADC is already past the end.

    Raises:
        EmptyReferenceError: the reference line has zero length.
    """
    if reference_line.is_degenerate:
        raise EmptyReferenceError("cannot initialize path boundary on an empty reference line")

    resolution = config.resolution_m
    horizon = max(config.horizon_m, max(0.0, cruise_speed) * config.trajectory_time_length_s)
    start_s = adc_state.s
    end_s = min(start_s + horizon, reference_line.length)

    stations = []
    if end_s > start_s:
        # Station count for start_s + i * resolution < end_s.
        count = int(math.ceil((end_s - start_s) / resolution - 1e-9))
        stations = [
            ReferenceStation(start_s + i * resolution, LOWEST_L, HIGHEST_L)
            for i in range(count)
        ]
    if not stations:
        logger.warning(
            f"[PATH_BOUNDS] No stations between s={start_s:.2f} and reference end "
            f"{reference_line.length:.2f}"
        )
    return PathBoundary(stations=stations, resolution=resolution)


def _lane_edges(lane_map: LaneMap, lane: Optional[Lane], s: float) -> Tuple[float, float]:
    edges = lane_map.lane_width_at(lane, s)
    if edges is None:
        lane_id = lane.lane_id if lane is not None else None
        raise LaneResolutionError(f"lane {lane_id} has no geometry at s={s:.2f}")
    return edges


def _borrowed_lane(lane_map: LaneMap, lane: Lane, borrow_mode: LaneBorrowMode) -> Optional[Lane]:
    if borrow_mode is LaneBorrowMode.NO_BORROW:
        return None
    side = "left" if borrow_mode is LaneBorrowMode.LEFT_BORROW else "right"
    neighbor = lane_map.neighbor_lane(lane, side)
    if neighbor is None:
        raise LaneResolutionError(f"lane {lane.lane_id} has no {side} neighbor to borrow")
    return neighbor


def get_boundary_from_lanes_and_adc(
    boundary: PathBoundary,
    adc_state: ADCFrenetState,
    lane_map: LaneMap,
    borrow_mode: LaneBorrowMode,
    adc_buffer: float,
    config: PathBoundsDeciderConfig,
) -> bool:
    """
    Narrow every station to the lane edges, extended into the borrowed
    neighbor lane if requested, while always containing the ADC.

    The ADC bound is l +/- (half width + adc_buffer), pushed further in the
    direction of lateral motion by the distance needed to stop that motion at
    max_lateral_acceleration.

    Returns:
        False if lane geometry cannot be resolved for some station.
    """
    lane = adc_state.lane_handle
    if lane is None:
        logger.warning("[PATH_BOUNDS] ADC lane is unknown; cannot derive lane boundary")
        return False

    try:
        neighbor = _borrowed_lane(lane_map, lane, borrow_mode)
    except LaneResolutionError as exc:
        logger.warning(f"[PATH_BOUNDS] {exc}")
        return False

    l_dot = adc_state.l_dot
    speed_buffer = math.copysign(l_dot * l_dot / config.max_lateral_acceleration / 2.0, l_dot)
    adc_extent = config.adc_half_width_m + adc_buffer
    adc_left = max(adc_state.l, adc_state.l + speed_buffer) + adc_extent
    adc_right = min(adc_state.l, adc_state.l + speed_buffer) - adc_extent

    center_line = adc_state.l
    for idx, station in enumerate(boundary.stations):
        try:
            lane_left, lane_right = _lane_edges(lane_map, lane, station.s)
            if neighbor is not None:
                neighbor_left, neighbor_right = _lane_edges(lane_map, neighbor, station.s)
                if borrow_mode is LaneBorrowMode.LEFT_BORROW:
                    lane_left = max(lane_left, neighbor_left)
                else:
                    lane_right = min(lane_right, neighbor_right)
        except LaneResolutionError as exc:
            logger.warning(f"[PATH_BOUNDS] {exc}")
            return False

        left_bound = min(station.l_max, max(lane_left, adc_left))
        right_bound = max(station.l_min, min(lane_right, adc_right))
        is_feasible, center_line = update_path_boundary_and_center_line(
            idx, left_bound, right_bound, boundary, center_line
        )
        if not is_feasible:
            mark_blocked(boundary, idx, None)
            break

    return True
