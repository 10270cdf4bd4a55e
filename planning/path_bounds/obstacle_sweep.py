"""
Obstacle sweep engine.

Static obstacles are turned into Enter/Exit events along s and swept station
by station. When obstacles enter, every feasible left/right pass assignment
is enumerated and the one leaving the widest corridor is committed; the
choice then narrows each following station until the obstacle exits.

The search is greedy: an earlier pass choice is never revisited, so a
corridor that only a different earlier choice would have opened can be
missed.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from planning.path_bounds.boundary_finalizer import (
    mark_blocked,
    update_path_boundary_and_center_line,
)
from planning.path_bounds.path_boundary import (
    ObstacleFootprint,
    PassChoice,
    PathBoundary,
    SweepEvent,
    SweepEventKind,
)

logger = logging.getLogger(__name__)

PassCombination = Tuple[PassChoice, ...]


@dataclass(frozen=True)
class ActiveObstacle:
    """An obstacle inside the sweep window with its committed pass side."""

    footprint: ObstacleFootprint
    choice: PassChoice

    @property
    def exit_s(self) -> float:
        return self.footprint.s_end

    @property
    def bound(self) -> float:
        """Lateral limit imposed on the corridor."""
        if self.choice is PassChoice.PASS_LEFT:
            return self.footprint.l_max
        return self.footprint.l_min


def sort_obstacles_for_sweep_line(footprints: Iterable[ObstacleFootprint]) -> List[SweepEvent]:
    """
    Enter/Exit events ordered by s; at equal s Enter comes before Exit, then
    ascending obstacle id. The order does not depend on the input order.
    """
    events: List[SweepEvent] = []
    for footprint in footprints:
        events.append(SweepEvent(footprint.s_start, SweepEventKind.ENTER, footprint))
        events.append(SweepEvent(footprint.s_end, SweepEventKind.EXIT, footprint))
    events.sort(key=lambda ev: ev.sort_key() + (ev.footprint.l_min, ev.footprint.l_max))
    return events


def _free_gaps(l_min: float, l_max: float,
               footprints: Sequence[ObstacleFootprint]) -> List[Tuple[float, float]]:
    """Sub-intervals of [l_min, l_max] of positive width not covered by any footprint.

    Touching footprints, or a footprint touching a corridor edge, leave no gap.
    """
    gaps: List[Tuple[float, float]] = []
    cursor = l_min
    for footprint in sorted(footprints, key=lambda fp: (fp.l_min, fp.l_max)):
        if footprint.l_min > cursor:
            gaps.append((cursor, min(footprint.l_min, l_max)))
        cursor = max(cursor, footprint.l_max)
    if cursor < l_max:
        gaps.append((cursor, l_max))
    return gaps


def residual_interval(
    l_min: float,
    l_max: float,
    footprints: Sequence[ObstacleFootprint],
    combination: Sequence[PassChoice],
) -> Tuple[float, float]:
    """[l_min, l_max] after removing each footprint on its assigned side."""
    lo, hi = l_min, l_max
    for footprint, choice in zip(footprints, combination):
        if choice is PassChoice.PASS_LEFT:
            lo = max(lo, footprint.l_max)
        else:
            hi = min(hi, footprint.l_min)
    return lo, hi


def decide_pass_directions(
    l_min: float,
    l_max: float,
    newly_entering: Sequence[ObstacleFootprint],
) -> List[PassCombination]:
    """
    All feasible pass combinations for obstacles entering at one station.

    Each returned tuple is aligned with newly_entering. Footprints that do
    not overlap [l_min, l_max] are not enumerated: they keep the side they
    already lie on. For the overlapping ones, every free lateral gap of
    positive width fixes exactly one assignment whose residual interval is
    that gap, so enumerating the gaps yields all feasible combinations out
    of the 2^k candidates. With no entering obstacle the result is a single
    empty combination; when nothing is feasible the result is empty.
    """
    if l_min > l_max:
        return []

    fixed: Dict[int, PassChoice] = {}
    overlapping: List[ObstacleFootprint] = []
    for i, footprint in enumerate(newly_entering):
        if footprint.l_max < l_min:
            fixed[i] = PassChoice.PASS_LEFT
        elif footprint.l_min > l_max:
            fixed[i] = PassChoice.PASS_RIGHT
        else:
            overlapping.append(footprint)

    if not overlapping:
        return [tuple(fixed[i] for i in range(len(newly_entering)))]

    combinations: List[PassCombination] = []
    seen: Set[PassCombination] = set()
    for gap_lo, _gap_hi in _free_gaps(l_min, l_max, overlapping):
        combination = tuple(
            fixed[i] if i in fixed
            else (PassChoice.PASS_LEFT if footprint.l_max <= gap_lo else PassChoice.PASS_RIGHT)
            for i, footprint in enumerate(newly_entering)
        )
        if combination not in seen:
            seen.add(combination)
            combinations.append(combination)
    return combinations


def _select_combination(
    l_min: float,
    l_max: float,
    newly_entering: Sequence[ObstacleFootprint],
    combinations: Sequence[PassCombination],
    pass_history: Mapping[str, PassChoice],
    center_line: float,
) -> PassCombination:
    def score(combination: PassCombination):
        lo, hi = residual_interval(l_min, l_max, newly_entering, combination)
        repeated = sum(
            1 for footprint, choice in zip(newly_entering, combination)
            if pass_history.get(footprint.obstacle_id) is choice
        )
        return (-(hi - lo), -repeated, abs(0.5 * (lo + hi) - center_line),
                tuple(choice.value for choice in combination))

    return min(combinations, key=score)


def _apply_active(l_min: float, l_max: float,
                  active: Mapping[str, ActiveObstacle]) -> Tuple[float, float]:
    lo, hi = l_min, l_max
    for obstacle in active.values():
        if obstacle.choice is PassChoice.PASS_LEFT:
            lo = max(lo, obstacle.bound)
        else:
            hi = min(hi, obstacle.bound)
    return lo, hi


def _binding_obstacle_id(l_min: float, l_max: float,
                         active: Mapping[str, ActiveObstacle]) -> Optional[str]:
    """Active obstacle providing the tightest limit that narrows [l_min, l_max]."""
    lo, hi = _apply_active(l_min, l_max, active)
    binding = [
        obstacle for obstacle in active.values()
        if (obstacle.choice is PassChoice.PASS_LEFT and obstacle.bound == lo and lo > l_min)
        or (obstacle.choice is PassChoice.PASS_RIGHT and obstacle.bound == hi and hi < l_max)
    ]
    if not binding:
        return None
    return min(binding, key=lambda ob: (ob.footprint.s_start, ob.footprint.obstacle_id)).footprint.obstacle_id


def _is_due(event: SweepEvent, s: float) -> bool:
    # Obstacles constrain their closed [s_start, s_end] interval.
    if event.kind is SweepEventKind.ENTER:
        return event.s <= s
    return event.s < s


def construct_subsequent_path_bounds(
    sorted_events: Sequence[SweepEvent],
    start_path_idx: int,
    start_obs_idx: int,
    active_obstacle_details: Mapping[str, ActiveObstacle],
    current_bounds: PathBoundary,
    center_line: Optional[float] = None,
    deadline: Optional[float] = None,
) -> PathBoundary:
    """
    Sweep stations from start_path_idx onward and return the narrowed corridor.

    Args:
        sorted_events: Output of sort_obstacles_for_sweep_line.
        start_path_idx: First station to process.
        start_obs_idx: First event not yet applied.
        active_obstacle_details: Obstacles already inside the window (id -> detail).
        current_bounds: Corridor so far; it is copied, never modified.
        center_line: Center line before start_path_idx (defaults to that station's center).
        deadline: time.monotonic() value after which the sweep stops at the
            next station boundary with an implicit blockage.

    Returns:
        A new PathBoundary. If the corridor collapses it is trimmed before the
        blocked station and carries the blocking obstacle id.
    """
    boundary = current_bounds.copy()
    active: Dict[str, ActiveObstacle] = dict(active_obstacle_details)
    pass_history: Dict[str, PassChoice] = {oid: ob.choice for oid, ob in active.items()}
    if center_line is None:
        ref_idx = max(0, min(start_path_idx - 1, len(boundary) - 1))
        center_line = boundary[ref_idx].center if len(boundary) else 0.0

    obs_idx = start_obs_idx
    for idx in range(start_path_idx, len(boundary)):
        if deadline is not None and time.monotonic() >= deadline:
            logger.warning(f"[SWEEP] Time budget exhausted; stopping at idx={idx}")
            mark_blocked(boundary, idx, None, timed_out=True)
            break

        station = boundary[idx]
        curr_s = station.s

        # 1. Apply obstacle changes up to this station.
        entering: List[ObstacleFootprint] = []
        exited: Set[str] = set()
        while obs_idx < len(sorted_events) and _is_due(sorted_events[obs_idx], curr_s):
            event = sorted_events[obs_idx]
            if event.kind is SweepEventKind.ENTER:
                entering.append(event.footprint)
            else:
                active.pop(event.obstacle_id, None)
                exited.add(event.obstacle_id)
            obs_idx += 1
        for oid in [oid for oid, ob in active.items() if ob.exit_s < curr_s]:
            del active[oid]

        # 2. Bounds from obstacles already committed.
        lo, hi = _apply_active(station.l_min, station.l_max, active)

        # 3. Decide pass directions for the newly entering ones.
        if entering:
            combinations = decide_pass_directions(lo, hi, entering)
            if not combinations:
                if lo > hi:
                    blocker = _binding_obstacle_id(station.l_min, station.l_max, active)
                else:
                    blocker = next(fp.obstacle_id for fp in entering if fp.overlaps_laterally(lo, hi))
                logger.info(f"[SWEEP] No feasible pass direction at s={curr_s:.2f}; blocked by {blocker}")
                mark_blocked(boundary, idx, blocker)
                break
            combination = _select_combination(lo, hi, entering, combinations, pass_history, center_line)
            for footprint, choice in zip(entering, combination):
                pass_history[footprint.obstacle_id] = choice
                # An obstacle entering and exiting between two stations only
                # constrains this station.
                if footprint.obstacle_id not in exited:
                    active[footprint.obstacle_id] = ActiveObstacle(footprint, choice)
                logger.debug(f"[SWEEP] s={curr_s:.2f} obstacle {footprint.obstacle_id} -> {choice.value}")
            lo, hi = residual_interval(lo, hi, entering, combination)

        # 4. Commit.
        is_feasible, center_line = update_path_boundary_and_center_line(idx, hi, lo, boundary, center_line)
        if not is_feasible:
            blocker = _binding_obstacle_id(station.l_min, station.l_max, active)
            logger.info(f"[SWEEP] Corridor collapsed at s={curr_s:.2f}; blocked by {blocker}")
            mark_blocked(boundary, idx, blocker)
            break

    return boundary


def get_boundary_from_static_obstacles(
    boundary: PathBoundary,
    footprints: Iterable[ObstacleFootprint],
    center_line: float,
    deadline: Optional[float] = None,
) -> PathBoundary:
    """
    Narrow a lane-derived corridor around static obstacles.

    Station 0 is the ADC's own station and is left untouched; footprints
    ending before station 1 therefore constrain nothing and are dropped.
    """
    if len(boundary) < 2:
        return boundary.copy()
    first_swept_s = boundary[1].s
    sorted_events = sort_obstacles_for_sweep_line(
        fp for fp in footprints if fp.s_end >= first_swept_s
    )
    return construct_subsequent_path_bounds(
        sorted_events,
        start_path_idx=1,
        start_obs_idx=0,
        active_obstacle_details={},
        current_bounds=boundary,
        center_line=center_line,
        deadline=deadline,
    )


def sweep_deadline(time_budget_s: float) -> Optional[float]:
    """Monotonic deadline for a time budget (None when the budget is 0)."""
    if time_budget_s <= 0.0:
        return None
    return time.monotonic() + time_budget_s
