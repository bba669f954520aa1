"""Utility functions for the fleet repositioning project."""

import numpy as np
from typing import Callable, Hashable, Iterable, List, Optional, Tuple, TypeVar

from .config import RANDOM_SEED
from .models import ScoredCandidate

T = TypeVar("T")


def set_seed(seed: int = RANDOM_SEED) -> None:
    """Set random seed for reproducibility."""
    np.random.seed(seed)


def time_bin(time_seconds: float, time_bin_size_seconds: float) -> int:
    """Map a simulation time to its fixed-width time bin index."""
    return int(time_seconds // time_bin_size_seconds)


def euclidean_distance(x1: float, y1: float, x2: float, y2: float) -> float:
    """
    Distance between two points in a projected coordinate system.
    
    Args:
        x1, y1: Coordinates of first point (meters)
        x2, y2: Coordinates of second point (meters)
        
    Returns:
        Distance in meters
    """
    return float(np.hypot(x2 - x1, y2 - y1))


def rank_top_n(
    items: Iterable[T],
    score: Callable[[T], float],
    key: Callable[[T], Hashable],
    n: Optional[int] = None,
) -> List[ScoredCandidate]:
    """
    Score every item and return the best ``n`` as scored candidates.
    
    Ordering is score descending, then ``key`` ascending, so equal scores
    always come out in the same order.
    """
    candidates = [ScoredCandidate(key=key(item), item=item, score=score(item)) for item in items]
    candidates.sort(key=lambda c: (-c.score, c.key))
    if n is None:
        return candidates
    return candidates[:max(n, 0)]


def format_duration(seconds: float) -> str:
    """Format a duration in seconds to a human-readable string."""
    minutes = int(seconds // 60)
    hours, mins = divmod(minutes, 60)
    if hours > 0:
        return f"{hours}h {mins}m"
    return f"{mins}m"


def bin_range(start_bin: int, end_bin: int) -> Tuple[int, ...]:
    """Inclusive range of time bins; empty when start is after end."""
    return tuple(range(start_bin, end_bin + 1))
