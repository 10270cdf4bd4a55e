"""
Plot path bounds from a recording.

Draws the corridor of each recorded cycle in the s-l plane, its center line,
the ego position and, if a scenario is given, the raw obstacle footprints.

Usage:
    python tools/visualize_path_bounds.py [recording_file] [--scenario file] [--cycle N]
"""

import sys
import argparse
from pathlib import Path
from typing import Optional

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
from matplotlib.patches import Rectangle

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from data.replay import PathBoundsReplay
from data.formats.data_format import PathBoundsRecord


def plot_record(ax, record: PathBoundsRecord, frame=None):
    """Plot one cycle on ax."""
    if record.num_stations:
        ax.fill_between(record.s, record.l_min, record.l_max, color="tab:green", alpha=0.25,
                        label=f"corridor ({record.label})")
        ax.plot(record.s, record.l_min, color="tab:green", linewidth=1.0)
        ax.plot(record.s, record.l_max, color="tab:green", linewidth=1.0)
        ax.plot(record.s, 0.5 * (record.l_min + record.l_max), "--", color="tab:gray",
                linewidth=0.8, label="center line")
    ax.plot([record.ego.s], [record.ego.l], "o", color="tab:blue", label="ego")

    if record.blocking_obstacle_id or record.timed_out:
        ax.axvline(record.blocked_s, color="tab:red", linestyle=":",
                   label=f"blocked ({record.blocking_obstacle_id or 'time budget'})")

    if frame is not None:
        for obstacle in frame.obstacles:
            s_start, s_end, l_min, l_max = obstacle.sl_extent(frame.reference_line)
            color = "tab:orange" if obstacle.is_static and not obstacle.is_virtual else "tab:purple"
            ax.add_patch(Rectangle((s_start, l_min), s_end - s_start, l_max - l_min,
                                   color=color, alpha=0.6))
            ax.annotate(obstacle.obstacle_id, (s_start, l_max), fontsize=7)

    title = f"cycle {record.cycle_id}"
    if not record.ok:
        title += f" FAILED: {record.failure_reason[:80]}"
    ax.set_title(title, fontsize=9)
    ax.set_xlabel("s (m)")
    ax.set_ylabel("l (m)")
    ax.grid(True, alpha=0.3)
    ax.legend(loc="upper right", fontsize=7)


def visualize(recording_file: str, output: Optional[str] = None,
              scenario: Optional[str] = None, cycle: Optional[int] = None) -> Path:
    """Render the recorded cycles to a PNG and return its path."""
    frame = None
    if scenario is not None:
        from path_bounds_stack import build_frame_from_scenario, load_scenario
        frame = build_frame_from_scenario(load_scenario(scenario))

    with PathBoundsReplay(recording_file) as replay:
        records = list(replay.get_records())
    if cycle is not None:
        records = [r for r in records if r.cycle_id == cycle]
    if not records:
        raise ValueError(f"No cycles to plot in {recording_file}")

    fig, axes = plt.subplots(len(records), 1, figsize=(12, 3.5 * len(records)), squeeze=False)
    for ax, record in zip(axes[:, 0], records):
        plot_record(ax, record, frame)

    output_path = Path(output) if output else Path(recording_file).with_suffix(".png")
    plt.tight_layout()
    plt.savefig(output_path, dpi=150)
    plt.close(fig)
    return output_path


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Plot path bounds from a recording")
    parser.add_argument("recording", nargs='?', default=None,
                        help="Path to recording file (default: latest)")
    parser.add_argument("--scenario", type=str, default=None,
                        help="Scenario YAML to overlay obstacles")
    parser.add_argument("--cycle", type=int, default=None, help="Only plot this cycle id")
    parser.add_argument("--output", type=str, default=None, help="Output PNG path")
    args = parser.parse_args()

    if args.recording:
        input_file = args.recording
        if not Path(input_file).exists():
            print(f"Error: Recording not found: {input_file}")
            sys.exit(1)
    else:
        recordings = sorted(Path("data/recordings").glob("*.h5"),
                            key=lambda p: p.stat().st_mtime, reverse=True)
        if not recordings:
            print("No recordings found!")
            sys.exit(1)
        input_file = str(recordings[0])
        print(f"Using latest recording: {Path(input_file).name}")

    print(f"Saved plot to {visualize(input_file, args.output, args.scenario, args.cycle)}")
