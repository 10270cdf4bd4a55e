"""
Reference line: arc-length parameterized polyline with Cartesian <-> Frenet
conversion.
"""

from __future__ import annotations

import math
from typing import Tuple

import numpy as np

from planning.path_bounds.errors import EmptyReferenceError


class ReferenceLine:
    """
    Piecewise-linear reference curve.

    Frenet convention: s is arc length from the first point, l is the signed
    lateral offset (positive = left of the travel direction).
    """

    def __init__(self, points):
        pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
        if len(pts) > 1:
            # Repeated points would create zero-length segments.
            keep = np.concatenate(([True], np.any(np.abs(np.diff(pts, axis=0)) > 1e-9, axis=1)))
            pts = pts[keep]
        self.points = pts

        if len(pts) >= 2:
            seg = np.diff(pts, axis=0)
            self._seg_len = np.hypot(seg[:, 0], seg[:, 1])
            self._seg_dir = seg / self._seg_len[:, None]
            self._accumulated_s = np.concatenate(([0.0], np.cumsum(self._seg_len)))
        else:
            self._seg_len = np.zeros(0, dtype=np.float64)
            self._seg_dir = np.zeros((0, 2), dtype=np.float64)
            self._accumulated_s = np.zeros(len(pts), dtype=np.float64)

    @classmethod
    def from_straight(cls, length: float, heading: float = 0.0,
                      origin: Tuple[float, float] = (0.0, 0.0),
                      spacing: float = 1.0) -> ReferenceLine:
        """Straight reference line of the given length."""
        n = max(2, int(math.ceil(max(0.0, length) / max(spacing, 1e-3))) + 1)
        s = np.linspace(0.0, max(0.0, length), n)
        xs = origin[0] + s * math.cos(heading)
        ys = origin[1] + s * math.sin(heading)
        return cls(np.column_stack((xs, ys)))

    @property
    def length(self) -> float:
        if len(self._accumulated_s) == 0:
            return 0.0
        return float(self._accumulated_s[-1])

    @property
    def is_degenerate(self) -> bool:
        return len(self._seg_len) == 0 or self.length <= 0.0

    def _require_geometry(self) -> None:
        if self.is_degenerate:
            raise EmptyReferenceError("reference line has zero length")

    def _segment_index(self, s: float) -> int:
        idx = int(np.searchsorted(self._accumulated_s, s, side="right")) - 1
        return max(0, min(len(self._seg_len) - 1, idx))

    def xy_to_sl(self, x: float, y: float) -> Tuple[float, float]:
        """Project a Cartesian point onto the reference line.

        Points before the start or past the end project onto the extension of
        the first or last segment, so s may fall outside [0, length].
        """
        self._require_geometry()
        rel = np.array([x, y], dtype=np.float64) - self.points[:-1]
        along = np.einsum("ij,ij->i", rel, self._seg_dir)

        lo = np.zeros_like(along)
        hi = self._seg_len.copy()
        lo[0] = -np.inf
        hi[-1] = np.inf
        along_clamped = np.clip(along, lo, hi)

        foot = self.points[:-1] + self._seg_dir * along_clamped[:, None]
        dist = np.hypot(foot[:, 0] - x, foot[:, 1] - y)
        i = int(np.argmin(dist))

        cross = self._seg_dir[i, 0] * rel[i, 1] - self._seg_dir[i, 1] * rel[i, 0]
        s = float(self._accumulated_s[i] + along_clamped[i])
        return s, float(cross)

    def sl_to_xy(self, s: float, l: float) -> Tuple[float, float]:
        self._require_geometry()
        i = self._segment_index(s)
        dx, dy = self._seg_dir[i]
        base = self.points[i] + self._seg_dir[i] * (float(s) - self._accumulated_s[i])
        return float(base[0] - l * dy), float(base[1] + l * dx)

    def heading_at(self, s: float) -> float:
        """Heading (radians) of the reference line at s."""
        self._require_geometry()
        dx, dy = self._seg_dir[self._segment_index(s)]
        return float(math.atan2(dy, dx))
