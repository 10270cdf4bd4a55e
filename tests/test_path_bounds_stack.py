"""
Tests for the path_bounds_stack entry point helpers (config and scenario loading).
"""

from pathlib import Path

import pytest
import yaml

from data.replay import PathBoundsReplay
from data.recorder import PathBoundsRecorder
from path_bounds_stack import (
    build_frame_from_scenario,
    load_config,
    load_scenario,
    run_cycle,
    summarize,
)
from planning.path_bounds.config import build_path_bounds_config
from planning.path_bounds.decider import PathBoundsDecider

project_root = Path(__file__).parent.parent
SCENARIO_DIR = project_root / 'tools' / 'scenarios'


def test_load_config_missing_file_returns_empty(tmp_path):
    assert load_config(str(tmp_path / 'nope.yaml')) == {}


def test_load_default_config():
    config = load_config()
    if not config:
        pytest.skip('path_bounds_config.yaml not found')
    assert 'path_bounds' in config


def test_load_scenario_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_scenario(str(tmp_path / 'nope.yaml'))


def test_build_frame_from_scenario_dict():
    frame = build_frame_from_scenario({
        'reference': {'length_m': 80.0},
        'road': {'lane_width_m': 3.0, 'num_left_lanes': 1},
        'ego': {'x': 5.0, 'y': 0.2, 'heading': 0.0, 'speed': 3.0},
        'obstacles': [{'id': 'box', 'x': 30.0, 'y': 0.0, 'length': 4.0, 'width': 2.0}],
        'cruise_speed': 6.0,
    })
    assert frame.reference_line.length == pytest.approx(80.0)
    assert sorted(lane.lane_id for lane in frame.lane_map.lanes) == ['lane_0', 'lane_L1']
    assert frame.ego_pose.speed == 3.0
    assert [ob.obstacle_id for ob in frame.obstacles] == ['box']
    assert frame.cruise_speed == 6.0


def test_build_frame_with_explicit_lanes():
    frame = build_frame_from_scenario({
        'lanes': [
            {'lane_id': 'a', 'center_offset': 0.0, 'width': 3.5, 'left_neighbor_id': 'b'},
            {'lane_id': 'b', 'center_offset': 3.5, 'width': 3.5, 'right_neighbor_id': 'a'},
        ],
    })
    lane = frame.lane_map.get_lane('a')
    assert frame.lane_map.neighbor_lane(lane, 'left').lane_id == 'b'


def test_blocked_lane_scenario(tmp_path):
    scenario_path = SCENARIO_DIR / 'blocked_lane.yaml'
    if not scenario_path.exists():
        pytest.skip('blocked_lane.yaml not found')
    frame = build_frame_from_scenario(load_scenario(str(scenario_path)))
    decider = PathBoundsDecider(build_path_bounds_config({}))

    with PathBoundsRecorder(str(tmp_path), recording_name='scenario') as recorder:
        outcome = run_cycle(decider, frame, recorder, cycle_id=3)

    assert outcome.ok
    assert outcome.blocking_obstacle_id == 'truck_1'
    assert 'blocked at s=17.00 by truck_1' in summarize(outcome)

    with PathBoundsReplay(str(tmp_path / 'scenario.h5')) as replay:
        (record,) = list(replay.get_records())
    assert record.cycle_id == 3
    assert record.blocking_obstacle_id == 'truck_1'


def test_scenario_files_parse():
    for path in sorted(SCENARIO_DIR.glob('*.yaml')):
        with open(path, 'r') as f:
            scenario = yaml.safe_load(f)
        frame = build_frame_from_scenario(scenario)
        assert frame.obstacles, f'{path.name} has no obstacles'


def test_summarize_failure():
    frame = build_frame_from_scenario({'ego': {'x': 10.0, 'y': 30.0}})
    outcome = run_cycle(PathBoundsDecider(), frame)
    assert summarize(outcome).startswith('FAILED: AllStrategiesExhausted')
