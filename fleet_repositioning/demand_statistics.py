"""Per-region, per-time-bin demand statistics and their cross-replica merge."""

import logging
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from .config import NUMBER_OF_TIME_BINS, TIME_BIN_SIZE_SECONDS
from .exceptions import ConfigMismatchError
from .models import StatsEntry
from .spatial_index import SpatialIndex

_logger = logging.getLogger(__name__)

STATS_COLUMNS = [
    "region_id",
    "time_bin",
    "sum_of_requested_rides",
    "sum_of_waiting_times",
    "sum_of_idling_vehicles",
]

Bins = Tuple[Optional[StatsEntry], ...]


class DemandStatisticsStore:
    """
    Immutable snapshot of demand aggregates keyed by region and time bin.
    
    Every region maps to exactly ``number_of_time_bins`` slots, each either a
    StatsEntry or None when nothing was observed. The bin configuration is
    part of the store's identity: two stores only merge when it matches.
    """

    def __init__(
        self,
        statistics: Mapping[str, Sequence[Optional[StatsEntry]]],
        time_bin_size_seconds: float = TIME_BIN_SIZE_SECONDS,
        number_of_time_bins: int = NUMBER_OF_TIME_BINS,
    ):
        if time_bin_size_seconds <= 0:
            raise ValueError(f"time_bin_size_seconds must be positive, got {time_bin_size_seconds}")
        if number_of_time_bins < 0:
            raise ValueError(f"number_of_time_bins must not be negative, got {number_of_time_bins}")

        frozen: Dict[str, Bins] = {}
        for region_id, bins in statistics.items():
            bins = tuple(bins)
            if len(bins) != number_of_time_bins:
                raise ValueError(
                    f"Region {region_id!r} has {len(bins)} time bins, "
                    f"expected {number_of_time_bins}"
                )
            frozen[str(region_id)] = bins

        self._statistics = MappingProxyType(frozen)
        self._time_bin_size_seconds = float(time_bin_size_seconds)
        self._number_of_time_bins = int(number_of_time_bins)

    @property
    def time_bin_size_seconds(self) -> float:
        return self._time_bin_size_seconds

    @property
    def number_of_time_bins(self) -> int:
        return self._number_of_time_bins

    @property
    def config(self) -> Tuple[float, int]:
        return (self._time_bin_size_seconds, self._number_of_time_bins)

    @property
    def statistics(self) -> Mapping[str, Bins]:
        return self._statistics

    def __len__(self) -> int:
        return len(self._statistics)

    def __contains__(self, region_id: object) -> bool:
        return region_id in self._statistics

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DemandStatisticsStore):
            return NotImplemented
        return self.config == other.config and dict(self._statistics) == dict(other._statistics)

    def __repr__(self) -> str:
        return (
            f"DemandStatisticsStore(regions={len(self)}, "
            f"time_bin_size_seconds={self._time_bin_size_seconds}, "
            f"number_of_time_bins={self._number_of_time_bins})"
        )

    def region_ids(self) -> List[str]:
        return list(self._statistics.keys())

    def bins(self, region_id: str) -> Bins:
        """All slots of a region; an all-empty row for unknown regions."""
        return self._statistics.get(region_id, (None,) * self._number_of_time_bins)

    def lookup(self, region_id: str, time_bin: int) -> Optional[StatsEntry]:
        """
        Statistics of one region in one time bin.
        
        Unknown regions and empty bins both give None. A bin outside
        ``[0, number_of_time_bins)`` is a caller bug and raises IndexError.
        """
        if not 0 <= time_bin < self._number_of_time_bins:
            raise IndexError(
                f"time bin {time_bin} out of range [0, {self._number_of_time_bins})"
            )
        bins = self._statistics.get(region_id)
        if bins is None:
            return None
        return bins[time_bin]

    def with_statistics(
        self, statistics: Mapping[str, Sequence[Optional[StatsEntry]]]
    ) -> "DemandStatisticsStore":
        """New store with the same bin configuration and different contents."""
        return DemandStatisticsStore(
            statistics,
            time_bin_size_seconds=self._time_bin_size_seconds,
            number_of_time_bins=self._number_of_time_bins,
        )

    def to_frame(self) -> pd.DataFrame:
        """Long-format table with one row per non-empty (region, bin) entry."""
        rows = []
        for region_id, bins in self._statistics.items():
            for index, entry in enumerate(bins):
                if entry is None:
                    continue
                rows.append({"region_id": region_id, "time_bin": index, **entry.to_dict()})
        return pd.DataFrame(rows, columns=STATS_COLUMNS)

    @classmethod
    def from_frame(
        cls,
        df: pd.DataFrame,
        time_bin_size_seconds: float = TIME_BIN_SIZE_SECONDS,
        number_of_time_bins: int = NUMBER_OF_TIME_BINS,
        region_ids: Optional[Iterable[str]] = None,
    ) -> "DemandStatisticsStore":
        """
        Rebuild a store from the table produced by ``to_frame``.
        
        Args:
            df: Long-format statistics table
            time_bin_size_seconds: Bin width the table was built with
            number_of_time_bins: Bin count the table was built with
            region_ids: Regions to include even when they have no entries
            
        Returns:
            DemandStatisticsStore
        """
        statistics: Dict[str, List[Optional[StatsEntry]]] = {}
        for region_id in region_ids or []:
            statistics[str(region_id)] = [None] * number_of_time_bins

        for row in df.itertuples(index=False):
            bins = statistics.setdefault(str(row.region_id), [None] * number_of_time_bins)
            time_bin = int(row.time_bin)
            if not 0 <= time_bin < number_of_time_bins:
                raise IndexError(
                    f"time bin {time_bin} out of range [0, {number_of_time_bins})"
                )
            bins[time_bin] = StatsEntry(
                sum_of_waiting_times=float(row.sum_of_waiting_times),
                sum_of_requested_rides=float(row.sum_of_requested_rides),
                sum_of_idling_vehicles=float(row.sum_of_idling_vehicles),
            )

        return cls(statistics, time_bin_size_seconds, number_of_time_bins)


def build_statistics(
    events: pd.DataFrame,
    time_bin_size_seconds: float = TIME_BIN_SIZE_SECONDS,
    number_of_time_bins: int = NUMBER_OF_TIME_BINS,
    spatial_index: Optional[SpatialIndex] = None,
) -> DemandStatisticsStore:
    """
    Aggregate raw ride-request events into a statistics store.
    
    Each event needs a ``time`` (seconds) and a ``waiting_time`` (seconds).
    The region comes from a ``region_id`` column, or is resolved from ``x``/``y``
    through ``spatial_index``. An optional ``idling_vehicles`` column is summed
    as well. Events falling outside the configured bins are dropped.
    """
    df = events.copy()

    if "region_id" not in df.columns:
        if spatial_index is None:
            raise ValueError("events need a region_id column or a spatial_index to resolve x/y")
        df["region_id"] = [
            spatial_index.region_containing(x, y) for x, y in zip(df["x"], df["y"])
        ]
    if "idling_vehicles" not in df.columns:
        df["idling_vehicles"] = 0

    df["time_bin"] = np.floor(df["time"] / time_bin_size_seconds).astype(int)
    in_range = df["time_bin"].between(0, number_of_time_bins - 1)
    if not in_range.all():
        _logger.warning(
            "Dropping %d events outside the %d configured time bins",
            int((~in_range).sum()), number_of_time_bins,
        )
    df = df[in_range]

    aggregated = df.groupby(["region_id", "time_bin"]).agg(
        sum_of_requested_rides=("waiting_time", "count"),
        sum_of_waiting_times=("waiting_time", "sum"),
        sum_of_idling_vehicles=("idling_vehicles", "sum"),
    ).reset_index()

    return DemandStatisticsStore.from_frame(
        aggregated[STATS_COLUMNS],
        time_bin_size_seconds=time_bin_size_seconds,
        number_of_time_bins=number_of_time_bins,
    )


def _merge_entries(
    entry_a: Optional[StatsEntry], entry_b: Optional[StatsEntry]
) -> Optional[StatsEntry]:
    if entry_a is not None and entry_b is not None:
        return entry_a.average(entry_b)
    if entry_a is not None:
        return entry_a
    return entry_b


def merge_statistics(
    stats_a: DemandStatisticsStore, stats_b: DemandStatisticsStore
) -> DemandStatisticsStore:
    """
    Combine two stores bin by bin.
    
    Entries present in both stores are averaged, single-sided entries are
    copied, and slots empty in both stay empty. Neither input is modified.
    
    Raises:
        ConfigMismatchError: the stores use different time-bin settings
    """
    if stats_a.config != stats_b.config:
        raise ConfigMismatchError(
            f"Cannot merge statistics with bin configuration {stats_a.config} "
            f"into {stats_b.config}",
            left=stats_a.config,
            right=stats_b.config,
        )

    # Sorted so the result does not depend on argument order
    region_ids = sorted(set(stats_a.statistics) | set(stats_b.statistics))

    merged = {
        region_id: [
            _merge_entries(a, b)
            for a, b in zip(stats_a.bins(region_id), stats_b.bins(region_id))
        ]
        for region_id in region_ids
    }
    return stats_a.with_statistics(merged)


def _mean_entry(entries: List[StatsEntry]) -> StatsEntry:
    count = len(entries)
    return StatsEntry(
        sum_of_waiting_times=sum(e.sum_of_waiting_times for e in entries) / count,
        sum_of_requested_rides=sum(e.sum_of_requested_rides for e in entries) / count,
        sum_of_idling_vehicles=sum(e.sum_of_idling_vehicles for e in entries) / count,
    )


def merge_all(stores: Iterable[DemandStatisticsStore]) -> DemandStatisticsStore:
    """
    Reduce the stores of any number of replicas into one.
    
    Each slot becomes the mean of the entries present for it across all
    stores. For two stores this equals ``merge_statistics``; unlike a chain
    of pairwise merges, the result does not depend on the order of
    ``stores`` beyond floating-point rounding.
    
    Raises:
        ValueError: no stores were given
        ConfigMismatchError: the stores use different time-bin settings
    """
    stores = list(stores)
    if not stores:
        raise ValueError("merge_all needs at least one statistics store")

    first = stores[0]
    for other in stores[1:]:
        if other.config != first.config:
            raise ConfigMismatchError(
                f"Cannot merge statistics with bin configuration {other.config} "
                f"into {first.config}",
                left=first.config,
                right=other.config,
            )

    region_ids = sorted(set().union(*(store.statistics for store in stores)))

    merged = {}
    for region_id in region_ids:
        rows = [store.bins(region_id) for store in stores]
        merged[region_id] = [
            _mean_entry(present) if present else None
            for present in (
                [entry for entry in slot if entry is not None] for slot in zip(*rows)
            )
        ]
    return first.with_statistics(merged)
