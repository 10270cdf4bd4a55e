"""
Value types shared by the path bounds decider stages.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Dict, List, Optional

import numpy as np

if TYPE_CHECKING:
    from planning.lane_map import Lane


class LaneBorrowMode(Enum):
    """Which adjacent lane, if any, may extend the corridor."""

    NO_BORROW = "self"
    LEFT_BORROW = "left"
    RIGHT_BORROW = "right"


class PassChoice(Enum):
    """Side on which the ADC passes an obstacle."""

    PASS_LEFT = "left"  # obstacle stays on the right, its l_max bounds l_min
    PASS_RIGHT = "right"  # obstacle stays on the left, its l_min bounds l_max


class SweepEventKind(Enum):
    ENTER = 1
    EXIT = 0


@dataclass
class ReferenceStation:
    """Drivable lateral interval at one arc-length station."""

    s: float  # meters along the reference line
    l_min: float  # right edge (meters, positive = left)
    l_max: float  # left edge

    @property
    def width(self) -> float:
        return self.l_max - self.l_min

    @property
    def center(self) -> float:
        return 0.5 * (self.l_min + self.l_max)

    def contains(self, l: float) -> bool:
        return self.l_min <= l <= self.l_max


@dataclass
class PathBoundary:
    """Ordered corridor of stations at a fixed resolution.

    A blocked boundary keeps the stations before the blockage; blocked_index
    is the index (in the untrimmed boundary) where the corridor collapsed.
    """

    stations: List[ReferenceStation]
    resolution: float
    label: str = ""
    blocked_index: Optional[int] = None
    blocked_s: Optional[float] = None
    blocking_obstacle_id: Optional[str] = None
    timed_out: bool = False

    def __len__(self) -> int:
        return len(self.stations)

    def __getitem__(self, idx: int) -> ReferenceStation:
        return self.stations[idx]

    def __iter__(self):
        return iter(self.stations)

    @property
    def is_blocked(self) -> bool:
        return self.blocked_index is not None

    @property
    def start_s(self) -> float:
        return self.stations[0].s if self.stations else float("nan")

    @property
    def end_s(self) -> float:
        return self.stations[-1].s if self.stations else float("nan")

    def copy(self) -> PathBoundary:
        return PathBoundary(
            stations=[ReferenceStation(st.s, st.l_min, st.l_max) for st in self.stations],
            resolution=self.resolution,
            label=self.label,
            blocked_index=self.blocked_index,
            blocked_s=self.blocked_s,
            blocking_obstacle_id=self.blocking_obstacle_id,
            timed_out=self.timed_out,
        )

    def nearest_index(self, s: float) -> int:
        """Index of the station closest to s (clamped to the boundary)."""
        if not self.stations:
            raise IndexError("empty path boundary")
        idx = int(round((float(s) - self.stations[0].s) / self.resolution))
        return max(0, min(len(self.stations) - 1, idx))

    def as_arrays(self) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Return (s, l_min, l_max) arrays."""
        if not self.stations:
            empty = np.zeros(0, dtype=np.float64)
            return empty, empty.copy(), empty.copy()
        data = np.array([(st.s, st.l_min, st.l_max) for st in self.stations], dtype=np.float64)
        return data[:, 0], data[:, 1], data[:, 2]


@dataclass(frozen=True)
class ADCFrenetState:
    """Ego snapshot in Frenet coordinates, resolved once per cycle."""

    s: float
    s_dot: float
    l: float
    l_dot: float
    lane_width: float
    lane_handle: Optional["Lane"] = None


@dataclass(frozen=True)
class ObstacleFootprint:
    """Static obstacle projected into Frenet space (buffers included)."""

    obstacle_id: str
    s_start: float
    s_end: float
    l_min: float
    l_max: float

    def overlaps_laterally(self, l_min: float, l_max: float) -> bool:
        return not (self.l_max < l_min or self.l_min > l_max)


@dataclass(frozen=True)
class SweepEvent:
    s: float
    kind: SweepEventKind
    footprint: ObstacleFootprint

    @property
    def obstacle_id(self) -> str:
        return self.footprint.obstacle_id

    def sort_key(self) -> tuple:
        # Enter before Exit at equal s, then by id.
        return (self.s, 0 if self.kind is SweepEventKind.ENTER else 1, self.footprint.obstacle_id)


@dataclass
class DeciderOutcome:
    """Result of one planning cycle of the decider.

    failure_reason follows the empty-string-on-success convention.
    """

    path_boundary: Optional[PathBoundary] = None
    blocking_obstacle_id: Optional[str] = None
    failure_reason: str = ""
    attempts: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failure_reason

    @classmethod
    def success(cls, boundary: PathBoundary, attempts: Dict[str, str]) -> DeciderOutcome:
        return cls(
            path_boundary=boundary,
            blocking_obstacle_id=boundary.blocking_obstacle_id,
            attempts=dict(attempts),
        )

    @classmethod
    def failure(cls, reason: str, attempts: Optional[Dict[str, str]] = None) -> DeciderOutcome:
        return cls(failure_reason=reason or "unknown failure", attempts=dict(attempts or {}))
