"""
Obstacle snapshot and Frenet footprint projection.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

import numpy as np

from planning.path_bounds.path_boundary import ObstacleFootprint
from planning.reference_line import ReferenceLine

logger = logging.getLogger(__name__)


@dataclass
class Obstacle:
    """
    One obstacle from the perception/prediction snapshot.

    Either corners (Cartesian polygon, shape (M, 2)) or sl_boundary
    (s_start, s_end, l_min, l_max) must be given.
    """

    obstacle_id: str
    corners: Optional[np.ndarray] = None
    sl_boundary: Optional[Tuple[float, float, float, float]] = None
    is_static: bool = True
    is_virtual: bool = False

    def __post_init__(self):
        if self.corners is None and self.sl_boundary is None:
            raise ValueError(f"Obstacle {self.obstacle_id} needs corners or an sl_boundary")
        if self.corners is not None:
            self.corners = np.asarray(self.corners, dtype=np.float64).reshape(-1, 2)

    @classmethod
    def from_box(cls, obstacle_id: str, x: float, y: float, heading: float,
                 length: float, width: float, **kwargs) -> Obstacle:
        """Oriented rectangle centered at (x, y)."""
        c, s = math.cos(heading), math.sin(heading)
        half_l, half_w = 0.5 * length, 0.5 * width
        local = np.array([
            [half_l, half_w],
            [half_l, -half_w],
            [-half_l, -half_w],
            [-half_l, half_w],
        ])
        rot = np.array([[c, -s], [s, c]])
        corners = local @ rot.T + np.array([x, y])
        return cls(obstacle_id=obstacle_id, corners=corners, **kwargs)

    def sl_extent(self, reference_line: ReferenceLine) -> Tuple[float, float, float, float]:
        """(s_start, s_end, l_min, l_max) on the reference line."""
        if self.sl_boundary is not None:
            s_start, s_end, l_min, l_max = (float(v) for v in self.sl_boundary)
            return min(s_start, s_end), max(s_start, s_end), min(l_min, l_max), max(l_min, l_max)
        sl = np.array([reference_line.xy_to_sl(px, py) for px, py in self.corners])
        return (float(sl[:, 0].min()), float(sl[:, 0].max()),
                float(sl[:, 1].min()), float(sl[:, 1].max()))


def project_obstacle_footprints(
    obstacles: Iterable[Obstacle],
    reference_line: ReferenceLine,
    adc_s: float,
    lon_start_buffer: float = 0.0,
    lon_end_buffer: float = 0.0,
    lat_buffer: float = 0.0,
) -> List[ObstacleFootprint]:
    """
    Project the in-scope obstacles into inflated Frenet footprints.

    Only static, non-virtual obstacles that are not entirely behind the ADC
    are kept.
    """
    footprints: List[ObstacleFootprint] = []
    for obstacle in obstacles:
        if obstacle.is_virtual or not obstacle.is_static:
            continue
        s_start, s_end, l_min, l_max = obstacle.sl_extent(reference_line)
        if s_end < adc_s:
            continue
        footprints.append(ObstacleFootprint(
            obstacle_id=str(obstacle.obstacle_id),
            s_start=s_start - lon_start_buffer,
            s_end=s_end + lon_end_buffer,
            l_min=l_min - lat_buffer,
            l_max=l_max + lat_buffer,
        ))
    logger.debug(f"[OBSTACLES] {len(footprints)} static obstacle(s) in scope ahead of s={adc_s:.2f}")
    return footprints
