"""
Error taxonomy for path-boundary construction.

Blocked is not an error: a collapsed corridor is reported on the
PathBoundary itself (blocked index + blocking obstacle id).
"""


class PathBoundsError(Exception):
    """Base class for path-boundary failures."""


class LaneResolutionError(PathBoundsError):
    """Ego or a station cannot be mapped to a lane.

    Fatal to the current borrow attempt, not to the planning cycle.
    """


class EmptyReferenceError(PathBoundsError):
    """The reference line has zero length (fatal to the cycle)."""


class InitError(PathBoundsError):
    """Ego state could not be resolved on the reference line."""


class AllStrategiesExhausted(PathBoundsError):
    """Every regular attempt and the fallback failed."""
