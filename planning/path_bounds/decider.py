"""
Path bounds decider: sequences boundary construction per lane-borrow
strategy and writes the chosen corridor to the planning context.

Attempt order is NO_BORROW, then LEFT_BORROW and RIGHT_BORROW when borrowing
is enabled and the road has the neighbor lane, then the fallback corridor
(lane + ADC only, no obstacles). Every failure below the orchestrator is a
string; nothing is raised to the caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from planning.frenet_state import EgoPose, FrenetStateResolver
from planning.lane_map import LaneMap
from planning.obstacles import Obstacle, project_obstacle_footprints
from planning.path_bounds.boundary_finalizer import path_bounds_debug_string
from planning.path_bounds.boundary_initializer import (
    get_boundary_from_lanes_and_adc,
    init_path_boundary,
)
from planning.path_bounds.config import PathBoundsDeciderConfig
from planning.path_bounds.errors import (
    AllStrategiesExhausted,
    EmptyReferenceError,
    InitError,
    LaneResolutionError,
)
from planning.path_bounds.obstacle_sweep import get_boundary_from_static_obstacles, sweep_deadline
from planning.path_bounds.path_boundary import (
    ADCFrenetState,
    DeciderOutcome,
    LaneBorrowMode,
    ObstacleFootprint,
    PathBoundary,
)
from planning.reference_line import ReferenceLine

logger = logging.getLogger(__name__)

FALLBACK_LABEL = "fallback/self"


def regular_label(borrow_mode: LaneBorrowMode) -> str:
    return f"regular/{borrow_mode.value}"


@dataclass
class PlanningContext:
    """Output slot shared with the downstream path and speed optimizers."""

    path_boundary: Optional[PathBoundary] = None
    blocking_obstacle_id: Optional[str] = None
    failure_reason: str = ""
    debug: Dict[str, Any] = field(default_factory=dict)


@dataclass
class PlanningFrame:
    """Read-only inputs of one planning cycle plus its output context."""

    ego_pose: EgoPose
    reference_line: ReferenceLine
    lane_map: LaneMap
    obstacles: List[Obstacle] = field(default_factory=list)
    cruise_speed: float = 0.0
    context: PlanningContext = field(default_factory=PlanningContext)


def generate_regular_path_boundary(
    reference_line: ReferenceLine,
    lane_map: LaneMap,
    adc_state: ADCFrenetState,
    borrow_mode: LaneBorrowMode,
    footprints: Sequence[ObstacleFootprint],
    config: PathBoundsDeciderConfig,
    cruise_speed: float = 0.0,
    deadline: Optional[float] = None,
) -> Tuple[Optional[PathBoundary], str]:
    """
    Lane + ADC + static obstacle corridor for one borrow mode.

    Returns:
        (boundary, "") on success, (None, failure message) otherwise. A
        blocked boundary is a success.
    """
    boundary = init_path_boundary(reference_line, adc_state, config, cruise_speed)
    if not boundary.stations:
        return None, "Failed to initialize path boundaries."

    if not get_boundary_from_lanes_and_adc(
        boundary, adc_state, lane_map, borrow_mode, config.adc_buffer_m, config
    ):
        return None, "Failed to decide a rough boundary based on road information."

    boundary = get_boundary_from_static_obstacles(
        boundary, footprints, center_line=adc_state.l, deadline=deadline
    )
    if not boundary.stations:
        return None, "Failed to decide fine tune the boundaries after taking into consideration all static obstacles."

    boundary.label = regular_label(borrow_mode)
    path_bounds_debug_string(boundary)
    return boundary, ""


def generate_fallback_path_boundary(
    reference_line: ReferenceLine,
    lane_map: LaneMap,
    adc_state: ADCFrenetState,
    config: PathBoundsDeciderConfig,
    cruise_speed: float = 0.0,
) -> Tuple[Optional[PathBoundary], str]:
    """
    Last-resort corridor: own lane and ADC position only, no obstacles and
    no borrowing. Stopping before obstacles is left to the speed decider.
    """
    boundary = init_path_boundary(reference_line, adc_state, config, cruise_speed)
    if not boundary.stations:
        return None, "Failed to initialize fallback path boundaries."

    if not get_boundary_from_lanes_and_adc(
        boundary, adc_state, lane_map, LaneBorrowMode.NO_BORROW, config.fallback_adc_buffer_m, config
    ):
        return None, "Failed to decide a rough fallback boundary based on road information."

    if len(boundary) < config.min_boundary_stations:
        return None, "Fallback path boundaries are empty."

    boundary.label = FALLBACK_LABEL
    path_bounds_debug_string(boundary)
    return boundary, ""


class PathBoundsDecider:
    """
    Builds the path boundary for one planning cycle.

    Holds configuration only; all per-cycle state lives in the call chain,
    so one instance may serve consecutive cycles.
    """

    def __init__(self, config: Optional[PathBoundsDeciderConfig] = None):
        self.config = config if config is not None else PathBoundsDeciderConfig()
        self.config.validate()

    def process(self, frame: PlanningFrame) -> DeciderOutcome:
        """Run the decider and write the outcome to frame.context."""
        outcome = self.decide(frame)

        ctx = frame.context
        ctx.path_boundary = outcome.path_boundary
        ctx.blocking_obstacle_id = outcome.blocking_obstacle_id
        ctx.failure_reason = outcome.failure_reason
        ctx.debug["path_bounds_attempts"] = dict(outcome.attempts)
        if outcome.path_boundary is not None:
            ctx.debug["path_bounds_label"] = outcome.path_boundary.label
        if not outcome.ok:
            logger.error(f"[PATH_BOUNDS] {outcome.failure_reason}")
        return outcome

    def decide(self, frame: PlanningFrame) -> DeciderOutcome:
        # Init
        resolver = FrenetStateResolver(frame.reference_line, frame.lane_map)
        try:
            adc_state = resolver.project(frame.ego_pose)
        except (EmptyReferenceError, InitError) as exc:
            return DeciderOutcome.failure(f"{InitError.__name__}: {exc}")
        try:
            adc_state = resolver.attach_lane(adc_state, frame.ego_pose)
        except LaneResolutionError as exc:
            logger.warning(f"[PATH_BOUNDS] {exc}; every attempt will fail on lane geometry")
        frame.context.debug["adc_frenet_state"] = {
            "s": adc_state.s,
            "s_dot": adc_state.s_dot,
            "l": adc_state.l,
            "l_dot": adc_state.l_dot,
            "lane_width": adc_state.lane_width,
            "lane_id": adc_state.lane_handle.lane_id if adc_state.lane_handle is not None else None,
        }

        cfg = self.config
        footprints = project_obstacle_footprints(
            frame.obstacles,
            frame.reference_line,
            adc_state.s,
            lon_start_buffer=cfg.obstacle_lon_start_buffer_m,
            lon_end_buffer=cfg.obstacle_lon_end_buffer_m,
            lat_buffer=cfg.obstacle_lat_buffer_m,
        )
        deadline = sweep_deadline(cfg.sweep_time_budget_s)

        attempts: Dict[str, str] = {}
        for borrow_mode in self._borrow_sequence(frame.lane_map, adc_state):
            label = regular_label(borrow_mode)
            boundary, message = generate_regular_path_boundary(
                frame.reference_line, frame.lane_map, adc_state, borrow_mode,
                footprints, cfg, frame.cruise_speed, deadline,
            )
            if not message:
                message = self._rejection_reason(boundary, adc_state)
            attempts[label] = message
            if message:
                logger.info(f"[PATH_BOUNDS] {label} rejected: {message}")
                continue
            logger.info(
                f"[PATH_BOUNDS] Using {label}: {len(boundary)} station(s), "
                f"blocking={boundary.blocking_obstacle_id}"
            )
            return DeciderOutcome.success(boundary, attempts)

        boundary, message = generate_fallback_path_boundary(
            frame.reference_line, frame.lane_map, adc_state, cfg, frame.cruise_speed
        )
        if not message:
            message = self._validity_violation(boundary, adc_state)
        attempts[FALLBACK_LABEL] = message
        if not message:
            logger.warning(f"[FALLBACK] Regular path boundaries failed; using fallback ({len(boundary)} stations)")
            return DeciderOutcome.success(boundary, attempts)

        details = "; ".join(f"{label}: {reason}" for label, reason in attempts.items())
        return DeciderOutcome.failure(f"{AllStrategiesExhausted.__name__}: {details}", attempts)

    def _borrow_sequence(self, lane_map: LaneMap, adc_state: ADCFrenetState) -> List[LaneBorrowMode]:
        modes = [LaneBorrowMode.NO_BORROW]
        if not self.config.lane_borrow_enabled:
            return modes
        for mode in (LaneBorrowMode.LEFT_BORROW, LaneBorrowMode.RIGHT_BORROW):
            if lane_map.has_neighbor(adc_state.lane_handle, mode):
                modes.append(mode)
            else:
                logger.debug(f"[PATH_BOUNDS] Skipping {regular_label(mode)}: no neighbor lane")
        return modes

    @staticmethod
    def _validity_violation(boundary: PathBoundary, adc_state: ADCFrenetState) -> str:
        """Non-empty message if the boundary crosses or misses the ADC."""
        for station in boundary.stations:
            if station.l_min > station.l_max:
                return f"Boundary crosses itself at s={station.s:.2f}."
        ego_station = boundary[boundary.nearest_index(adc_state.s)]
        if not ego_station.contains(adc_state.l):
            return f"Boundary does not contain ADC l={adc_state.l:.2f} at s={ego_station.s:.2f}."
        return ""

    def _rejection_reason(self, boundary: PathBoundary, adc_state: ADCFrenetState) -> str:
        violation = self._validity_violation(boundary, adc_state)
        if violation:
            return violation
        if len(boundary) < self.config.min_boundary_stations:
            return f"Boundary too short ({len(boundary)} station(s))."
        if boundary.is_blocked and boundary.blocked_s - adc_state.s < self.config.min_unblocked_distance_m:
            return (
                f"Blocked by {boundary.blocking_obstacle_id} at s={boundary.blocked_s:.2f}, "
                f"within {self.config.min_unblocked_distance_m:.1f}m of the ADC."
            )
        return ""
