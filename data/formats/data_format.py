"""
Data format definitions for path bounds recordings.
"""

from dataclasses import dataclass, field
from typing import Optional, Dict, Any
import numpy as np


@dataclass
class EgoFrenetSnapshot:
    """Ego Frenet state at decision time."""
    s: float
    l: float
    s_dot: float = 0.0
    l_dot: float = 0.0
    lane_id: Optional[str] = None  # None when the ego lane could not be resolved


@dataclass
class PathBoundsRecord:
    """One planning cycle of the path bounds decider."""
    timestamp: float
    cycle_id: int
    ego: EgoFrenetSnapshot
    s: np.ndarray = field(default_factory=lambda: np.zeros(0))  # [N] station s (m)
    l_min: np.ndarray = field(default_factory=lambda: np.zeros(0))  # [N] right bound (m)
    l_max: np.ndarray = field(default_factory=lambda: np.zeros(0))  # [N] left bound (m)
    label: str = ""  # "regular/self", "regular/left", "regular/right", "fallback/self"
    blocking_obstacle_id: str = ""
    blocked_s: float = float("nan")  # NaN when not blocked
    timed_out: bool = False
    failure_reason: str = ""  # empty on success
    attempts: Dict[str, str] = field(default_factory=dict)  # label -> failure message ("" = ok)
    metadata: Optional[Dict[str, Any]] = None

    @property
    def ok(self) -> bool:
        return not self.failure_reason

    @property
    def num_stations(self) -> int:
        return int(len(self.s))

    @classmethod
    def from_context(cls, context, timestamp: float, cycle_id: int) -> "PathBoundsRecord":
        """Build a record from a PlanningContext written by PathBoundsDecider.process."""
        adc = context.debug.get("adc_frenet_state", {})
        ego = EgoFrenetSnapshot(
            s=float(adc.get("s", np.nan)),
            l=float(adc.get("l", np.nan)),
            s_dot=float(adc.get("s_dot", 0.0)),
            l_dot=float(adc.get("l_dot", 0.0)),
            lane_id=adc.get("lane_id"),
        )
        record = cls(
            timestamp=float(timestamp),
            cycle_id=int(cycle_id),
            ego=ego,
            blocking_obstacle_id=context.blocking_obstacle_id or "",
            failure_reason=context.failure_reason,
            attempts=dict(context.debug.get("path_bounds_attempts", {})),
        )
        boundary = context.path_boundary
        if boundary is not None:
            record.s, record.l_min, record.l_max = boundary.as_arrays()
            record.label = boundary.label
            record.timed_out = boundary.timed_out
            if boundary.blocked_s is not None:
                record.blocked_s = float(boundary.blocked_s)
        return record
