"""
Path bounds stack entry point.
Loads configuration and a scenario, runs the path bounds decider and
optionally records the outcome.
"""

import time
import math
import sys
from pathlib import Path
from typing import Optional
import logging
import yaml

# Add paths
sys.path.insert(0, str(Path(__file__).parent))

from planning.frenet_state import EgoPose
from planning.lane_map import Lane, LaneMap
from planning.obstacles import Obstacle
from planning.path_bounds.config import build_path_bounds_config
from planning.path_bounds.decider import PathBoundsDecider, PlanningFrame
from planning.path_bounds.path_boundary import DeciderOutcome
from planning.reference_line import ReferenceLine
from data.recorder import PathBoundsRecorder
from data.formats.data_format import PathBoundsRecord

# Configure logging
log_dir = Path(__file__).parent / 'logs'
log_dir.mkdir(parents=True, exist_ok=True)
log_file = log_dir / 'path_bounds.log'

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(),
        logging.FileHandler(str(log_file))
    ]
)
logger = logging.getLogger(__name__)


def load_config(config_path: Optional[str] = None) -> dict:
    """Load configuration from YAML file or use defaults."""
    if config_path is None:
        config_path = Path(__file__).parent / "config" / "path_bounds_config.yaml"
    else:
        config_path = Path(config_path)

    if config_path.exists():
        with open(config_path, 'r') as f:
            config = yaml.safe_load(f) or {}
        logger.info(f"Loaded configuration from {config_path}")
        return config
    else:
        logger.warning(f"Config file not found at {config_path}, using defaults")
        return {}


def load_scenario(scenario_path: str) -> dict:
    """Load a scenario YAML file."""
    path = Path(scenario_path)
    if not path.exists():
        raise FileNotFoundError(f"Scenario file not found: {scenario_path}")
    with open(path, 'r') as f:
        return yaml.safe_load(f) or {}


def build_frame_from_scenario(scenario: dict, heading_tolerance: float = math.pi / 2.0) -> PlanningFrame:
    """
    Build a PlanningFrame from a scenario dictionary.

    Expected sections:
        reference: {length_m, heading_rad, origin: [x, y], spacing_m}
        road: {lane_width_m, num_left_lanes, num_right_lanes} or
              lanes: [{lane_id, center_offset, width, ...}, ...]
        ego: {x, y, heading, speed}
        obstacles: [{id, x, y, heading, length, width, is_static, is_virtual}]
        cruise_speed: m/s
    """
    ref_cfg = scenario.get('reference', {}) or {}
    reference_line = ReferenceLine.from_straight(
        length=float(ref_cfg.get('length_m', 200.0)),
        heading=float(ref_cfg.get('heading_rad', 0.0)),
        origin=tuple(ref_cfg.get('origin', (0.0, 0.0))),
        spacing=float(ref_cfg.get('spacing_m', 1.0)),
    )

    lanes_cfg = scenario.get('lanes')
    if lanes_cfg:
        lanes = []
        for lane_cfg in lanes_cfg:
            lanes.append(Lane(
                lane_id=str(lane_cfg['lane_id']),
                center_offset=float(lane_cfg.get('center_offset', 0.0)),
                width=float(lane_cfg.get('width', 3.5)),
                s_start=float(lane_cfg.get('s_start', 0.0)),
                s_end=float(lane_cfg.get('s_end', reference_line.length)),
                left_neighbor_id=lane_cfg.get('left_neighbor_id'),
                right_neighbor_id=lane_cfg.get('right_neighbor_id'),
                width_profile=tuple(tuple(knot) for knot in lane_cfg.get('width_profile', ())),
            ))
        lane_map = LaneMap(reference_line, lanes, heading_tolerance=heading_tolerance)
    else:
        road_cfg = scenario.get('road', {}) or {}
        lane_map = LaneMap.straight_road(
            reference_line,
            lane_width=float(road_cfg.get('lane_width_m', 3.5)),
            num_left_lanes=int(road_cfg.get('num_left_lanes', 0)),
            num_right_lanes=int(road_cfg.get('num_right_lanes', 0)),
            heading_tolerance=heading_tolerance,
        )

    ego_cfg = scenario.get('ego', {}) or {}
    ego_pose = EgoPose(
        x=float(ego_cfg.get('x', 0.0)),
        y=float(ego_cfg.get('y', 0.0)),
        heading=float(ego_cfg.get('heading', 0.0)),
        speed=float(ego_cfg.get('speed', 0.0)),
    )

    obstacles = []
    for obs_cfg in scenario.get('obstacles', []) or []:
        obstacles.append(Obstacle.from_box(
            str(obs_cfg['id']),
            x=float(obs_cfg['x']),
            y=float(obs_cfg['y']),
            heading=float(obs_cfg.get('heading', 0.0)),
            length=float(obs_cfg.get('length', 4.5)),
            width=float(obs_cfg.get('width', 1.8)),
            is_static=bool(obs_cfg.get('is_static', True)),
            is_virtual=bool(obs_cfg.get('is_virtual', False)),
        ))

    return PlanningFrame(
        ego_pose=ego_pose,
        reference_line=reference_line,
        lane_map=lane_map,
        obstacles=obstacles,
        cruise_speed=float(scenario.get('cruise_speed', 0.0)),
    )


def run_cycle(decider: PathBoundsDecider, frame: PlanningFrame,
              recorder: Optional[PathBoundsRecorder] = None,
              cycle_id: int = 0) -> DeciderOutcome:
    """Run one planning cycle and record it if a recorder is given."""
    start = time.perf_counter()
    outcome = decider.process(frame)
    elapsed_ms = (time.perf_counter() - start) * 1000.0
    logger.info(f"[PATH_BOUNDS] Cycle {cycle_id} finished in {elapsed_ms:.1f}ms (ok={outcome.ok})")

    if recorder is not None:
        recorder.record_cycle(PathBoundsRecord.from_context(frame.context, time.time(), cycle_id))
    return outcome


def summarize(outcome: DeciderOutcome) -> str:
    if not outcome.ok:
        return f"FAILED: {outcome.failure_reason}"
    boundary = outcome.path_boundary
    lines = [
        f"label: {boundary.label}",
        f"stations: {len(boundary)} (s={boundary.start_s:.2f}..{boundary.end_s:.2f})",
    ]
    if boundary.is_blocked:
        lines.append(
            f"blocked at s={boundary.blocked_s:.2f} by {boundary.blocking_obstacle_id}"
            + (" (time budget exhausted)" if boundary.timed_out else "")
        )
    for label, reason in outcome.attempts.items():
        lines.append(f"  {label}: {reason or 'ok'}")
    return "\n".join(lines)


def main():
    """Main entry point."""
    import argparse

    parser = argparse.ArgumentParser(description='Run the path bounds decider on a scenario')
    parser.add_argument('--config', type=str, default=None,
                        help='Path to configuration YAML file (default: config/path_bounds_config.yaml)')
    parser.add_argument('--scenario', type=str, required=True,
                        help='Path to scenario YAML file')
    parser.add_argument('--record', action='store_true',
                        help='Record the cycle to HDF5')
    parser.add_argument('--recording_dir', type=str, default='data/recordings',
                        help='Directory for recordings')

    args = parser.parse_args()

    config = load_config(args.config)
    decider_config = build_path_bounds_config(config)
    frame = build_frame_from_scenario(
        load_scenario(args.scenario),
        heading_tolerance=decider_config.lane_heading_tolerance_rad,
    )
    decider = PathBoundsDecider(decider_config)

    if args.record:
        with PathBoundsRecorder(args.recording_dir) as recorder:
            outcome = run_cycle(decider, frame, recorder)
    else:
        outcome = run_cycle(decider, frame)

    print(summarize(outcome))
    sys.exit(0 if outcome.ok else 1)


if __name__ == "__main__":
    main()
