"""Demand scoring of regions over a look-ahead horizon."""

from enum import Enum
from typing import Tuple, Union

from .config import DEFAULT_HORIZON_MODE
from .demand_statistics import DemandStatisticsStore
from .utils import bin_range, time_bin


class HorizonMode(Enum):
    """How the last bin of a look-ahead horizon is derived.
    
    DURATION bins the horizon length on its own, ignoring the current tick.
    TICK_PLUS_DURATION offsets the horizon from the current tick's bin.
    """
    DURATION = "duration"
    TICK_PLUS_DURATION = "tick_plus_duration"


class RepositioningScorer:
    """
    Scores regions by the waiting times recorded in a statistics snapshot.
    
    The score of a region is the sum of ``sum_of_waiting_times`` over an
    inclusive range of time bins; empty bins and unknown regions add 0.
    """

    def __init__(
        self,
        statistics: DemandStatisticsStore,
        horizon_mode: Union[HorizonMode, str] = DEFAULT_HORIZON_MODE,
    ):
        self.statistics = statistics
        self.horizon_mode = HorizonMode(horizon_mode)

    def score_region(self, region_id: str, start_bin: int, end_bin_inclusive: int) -> float:
        """Sum of waiting times of a region from ``start_bin`` to ``end_bin_inclusive``."""
        score = 0.0
        for index in bin_range(start_bin, end_bin_inclusive):
            entry = self.statistics.lookup(region_id, index)
            if entry is not None:
                score += entry.sum_of_waiting_times
        return score

    def horizon_bins(self, tick: float, horizon_seconds: float) -> Tuple[int, int]:
        """
        First and last time bin to score for a decision made at ``tick``.
        
        The end bin is clamped to the store's last bin, so a horizon reaching
        past the end of the statistics simply scores fewer bins. The range is
        empty when the tick's bin lies past the last bin, and in DURATION
        mode whenever the tick's bin lies beyond the horizon's bin.
        
        Args:
            tick: Current simulation time in seconds
            horizon_seconds: Length of the look-ahead window in seconds
            
        Returns:
            (start_bin, end_bin) tuple, end inclusive
        """
        bin_size = self.statistics.time_bin_size_seconds
        last_bin = self.statistics.number_of_time_bins - 1
        if last_bin < 0:
            return 0, -1

        start_bin = time_bin(tick, bin_size)
        if self.horizon_mode is HorizonMode.DURATION:
            end_bin = time_bin(horizon_seconds, bin_size)
        else:
            end_bin = start_bin + time_bin(horizon_seconds, bin_size)

        return start_bin, min(end_bin, last_bin)

    def score_horizon(self, region_id: str, tick: float, horizon_seconds: float) -> float:
        """Score of a region over the horizon starting at ``tick``."""
        start_bin, end_bin = self.horizon_bins(tick, horizon_seconds)
        return self.score_region(region_id, start_bin, end_bin)
