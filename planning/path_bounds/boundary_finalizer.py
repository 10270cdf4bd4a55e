"""
Per-station commit, blockage marking and trimming of a path boundary.
"""

from __future__ import annotations

import logging
from typing import Optional, Tuple

from planning.path_bounds.path_boundary import PathBoundary

logger = logging.getLogger(__name__)


def update_path_boundary_and_center_line(
    idx: int,
    left_bound: float,
    right_bound: float,
    boundary: PathBoundary,
    center_line: float,
) -> Tuple[bool, float]:
    """
    Commit [right_bound, left_bound] at station idx and recompute the center line.

    left_bound/right_bound name the geometric sides: they are stored as
    l_max/l_min. A collapsed interval (left_bound < right_bound) is not
    written; the station is blocked and center_line is returned unchanged.

    Returns:
        (is_feasible, center_line)
    """
    if left_bound < right_bound:
        logger.debug(
            f"[PATH_BOUNDS] Blocked at idx={idx}: left={left_bound:.3f} < right={right_bound:.3f}"
        )
        return False, center_line

    station = boundary.stations[idx]
    station.l_min = right_bound
    station.l_max = left_bound
    return True, 0.5 * (right_bound + left_bound)


def trim_path_bounds(blocked_idx: Optional[int], boundary: PathBoundary) -> None:
    """Drop every station from blocked_idx onward (None or -1 keeps all)."""
    if blocked_idx is None or blocked_idx < 0:
        return
    if blocked_idx == 0:
        logger.warning("[PATH_BOUNDS] Completely blocked. Cannot move at all.")
    del boundary.stations[blocked_idx:]


def mark_blocked(
    boundary: PathBoundary,
    blocked_idx: int,
    obstacle_id: Optional[str],
    timed_out: bool = False,
) -> None:
    """Record a blockage at blocked_idx and trim the tail."""
    boundary.blocked_index = blocked_idx
    boundary.blocked_s = boundary.stations[blocked_idx].s
    boundary.blocking_obstacle_id = obstacle_id
    boundary.timed_out = timed_out
    trim_path_bounds(blocked_idx, boundary)


def path_bounds_debug_string(boundary: PathBoundary) -> None:
    """Log the boundary one station per line (DEBUG only)."""
    if not logger.isEnabledFor(logging.DEBUG):
        return
    logger.debug(
        f"[PATH_BOUNDS] {boundary.label or 'unlabeled'}: {len(boundary)} station(s), "
        f"blocked_s={boundary.blocked_s}, blocking={boundary.blocking_obstacle_id}"
    )
    for station in boundary.stations:
        logger.debug(f"  s={station.s:.2f} l_min={station.l_min:.3f} l_max={station.l_max:.3f}")
