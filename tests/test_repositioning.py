"""Tests for vehicle grouping, repositioning assignment and idle selection."""

import pytest

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from fleet_repositioning.demand_statistics import DemandStatisticsStore
from fleet_repositioning.models import Assignment, Region, StatsEntry, VehicleLocation
from fleet_repositioning.repositioning import (
    assign_repositioning,
    group_by_region,
    rank_destinations,
    select_idling_candidates,
)
from fleet_repositioning.scoring import RepositioningScorer
from fleet_repositioning.spatial_index import CentroidSpatialIndex


@pytest.fixture
def index():
    """Five regions 1 km apart along the x axis."""
    return CentroidSpatialIndex([
        Region(f"R{i}", i * 1000.0, 0.0) for i in range(1, 6)
    ])


@pytest.fixture
def scorer():
    """Single bin statistics; R3 busiest, R5 has no data."""
    stats = DemandStatisticsStore(
        {
            "R1": [StatsEntry(10.0)],
            "R2": [StatsEntry(40.0)],
            "R3": [StatsEntry(50.0)],
            "R4": [StatsEntry(20.0)],
            "R5": [None],
        },
        time_bin_size_seconds=3600.0,
        number_of_time_bins=1,
    )
    return RepositioningScorer(stats)


def vehicle(vehicle_id, region_number, offset=0.0):
    return VehicleLocation(vehicle_id, region_number * 1000.0 + offset, 0.0)


class TestGroupByRegion:
    """Tests for grouping vehicles by their current region."""

    def test_vehicles_in_different_regions(self, index):
        v1, v2 = vehicle("V1", 1), vehicle("V2", 2)
        expected = {"R1": ["V1"], "R2": ["V2"]}
        assert group_by_region([v1, v2], index) == expected
        assert group_by_region([v2, v1], index) == expected

    def test_preserves_input_order_within_group(self, index):
        vehicles = [vehicle("V9", 1, 10.0), vehicle("V2", 1, -10.0), vehicle("V5", 1)]
        assert group_by_region(vehicles, index) == {"R1": ["V9", "V2", "V5"]}

    def test_empty_fleet(self, index):
        assert group_by_region([], index) == {}


class TestRankDestinations:
    def test_score_descending(self, scorer):
        assert rank_destinations(["R1", "R2", "R3", "R4"], scorer, 0, 0, 3) == ["R3", "R2", "R4"]

    def test_ties_broken_by_region_id(self):
        stats = DemandStatisticsStore(
            {"B": [StatsEntry(5.0)], "A": [StatsEntry(5.0)], "C": [StatsEntry(5.0)]}, 60.0, 1
        )
        ranked = rank_destinations(["C", "B", "A"], RepositioningScorer(stats), 0, 0, 3)
        assert ranked == ["A", "B", "C"]


class TestAssignRepositioning:
    """Tests for matching vehicle groups to high-demand regions nearby."""

    def test_group_gets_top_regions_in_rank_order(self, index, scorer):
        vehicles = [vehicle("V1", 2), vehicle("V2", 2)]
        assignments = assign_repositioning(vehicles, index, scorer, 1000.0, 0.0, 0.0)
        # Within 1 km of R2: R1 (10), R2 (40), R3 (50)
        assert assignments == [
            Assignment("V1", (3000.0, 0.0)),
            Assignment("V2", (2000.0, 0.0)),
        ]

    def test_fewer_destinations_than_vehicles(self):
        """Test that excess vehicles stay unassigned."""
        index = CentroidSpatialIndex([Region("R1", 0.0, 0.0), Region("R2", 10000.0, 0.0)])
        stats = DemandStatisticsStore({"R1": [StatsEntry(3.0)]}, 3600.0, 1)
        vehicles = [VehicleLocation("V1", 10.0, 0.0), VehicleLocation("V2", -10.0, 0.0)]

        assignments = assign_repositioning(
            vehicles, index, RepositioningScorer(stats), 500.0, 0.0, 0.0
        )

        assert assignments == [Assignment("V1", (0.0, 0.0))]

    def test_each_group_searches_around_its_own_region(self, index, scorer):
        vehicles = [vehicle("V1", 1), vehicle("V5", 5)]
        assignments = dict(assign_repositioning(vehicles, index, scorer, 1000.0, 0.0, 0.0))
        # R1 neighbourhood: R1, R2 -> R2 wins; R5 neighbourhood: R4, R5 -> R4 wins
        assert assignments == {"V1": (2000.0, 0.0), "V5": (4000.0, 0.0)}

    def test_zero_scores_still_assign_by_region_id(self, index):
        stats = DemandStatisticsStore({}, 3600.0, 1)
        assignments = assign_repositioning(
            [vehicle("V1", 3)], index, RepositioningScorer(stats), 1000.0, 0.0, 0.0
        )
        assert assignments == [Assignment("V1", (2000.0, 0.0))]

    def test_no_vehicles(self, index, scorer):
        assert assign_repositioning([], index, scorer, 1000.0, 0.0, 0.0) == []


class TestSelectIdlingCandidates:
    """Tests for bounding the set of idle vehicles to reposition."""

    @pytest.fixture
    def idle_vehicles(self):
        return [
            vehicle("V1", 1),
            vehicle("V2", 2),
            vehicle("V3", 3),
            vehicle("V4", 4),
            vehicle("V5", 5),
        ]

    def test_returns_top_scoring_vehicles(self, index, scorer, idle_vehicles):
        selected = select_idling_candidates(idle_vehicles, index, scorer, 2, 0.0, 0.0)
        assert [v.vehicle_id for v in selected] == ["V3", "V2"]

    def test_scores_own_region_not_neighbours(self, index, scorer):
        # V5 sits in R5 which has no data even though R4 next door does
        selected = select_idling_candidates(
            [vehicle("V5", 5), vehicle("V1", 1)], index, scorer, 1, 0.0, 0.0
        )
        assert [v.vehicle_id for v in selected] == ["V1"]

    def test_max_count_above_available(self, index, scorer, idle_vehicles):
        selected = select_idling_candidates(idle_vehicles, index, scorer, 10, 0.0, 0.0)
        assert [v.vehicle_id for v in selected] == ["V3", "V2", "V4", "V1", "V5"]

    def test_fractional_max_count_truncated(self, index, scorer, idle_vehicles):
        selected = select_idling_candidates(idle_vehicles, index, scorer, 2.9, 0.0, 0.0)
        assert len(selected) == 2

    def test_non_positive_max_count_selects_nothing(self, index, scorer, idle_vehicles):
        assert select_idling_candidates(idle_vehicles, index, scorer, 0, 0.0, 0.0) == []
        assert select_idling_candidates(idle_vehicles, index, scorer, -3, 0.0, 0.0) == []

    def test_repeatable_with_ties(self, index, scorer):
        vehicles = [vehicle(f"V{i}", 3, offset=i) for i in (7, 2, 9, 4)]
        first = select_idling_candidates(vehicles, index, scorer, 3, 0.0, 0.0)
        second = select_idling_candidates(list(reversed(vehicles)), index, scorer, 3, 0.0, 0.0)
        assert [v.vehicle_id for v in first] == ["V2", "V4", "V7"]
        assert first == second
