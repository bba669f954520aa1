"""Tests for the repositioning decision-cycle simulation."""

import pytest
import pandas as pd

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from fleet_repositioning.config import AREA_BOUNDS
from fleet_repositioning.data_generation import (
    generate_demand_events,
    generate_fleet,
    generate_regions,
    to_vehicle_locations,
)
from fleet_repositioning.demand_statistics import merge_all
from fleet_repositioning.repositioning_simulation import (
    DecisionCycleResult,
    build_replica_statistics,
    run_decision_cycle,
    run_horizon_comparison,
)
from fleet_repositioning.spatial_index import CentroidSpatialIndex


@pytest.fixture(scope="module")
def spatial_index():
    return CentroidSpatialIndex(generate_regions(grid_size=4, spacing_meters=1500.0))


@pytest.fixture(scope="module")
def statistics(spatial_index):
    stores = build_replica_statistics(
        spatial_index, num_replicas=3, num_events=400,
        time_bin_size_seconds=3600.0, number_of_time_bins=12, seed=7,
    )
    return merge_all(stores)


@pytest.fixture
def fleet():
    return generate_fleet(num_vehicles=30, idle_share=0.8, seed=11)


class TestDataGeneration:
    """Tests for synthetic scenario generation."""

    def test_events_deterministic(self):
        first = generate_demand_events(num_events=50, seed=3)
        second = generate_demand_events(num_events=50, seed=3)
        pd.testing.assert_frame_equal(first, second)

    def test_events_inside_area(self):
        events = generate_demand_events(num_events=500, seed=3)
        assert events["x"].between(AREA_BOUNDS["x_min"], AREA_BOUNDS["x_max"]).all()
        assert events["y"].between(AREA_BOUNDS["y_min"], AREA_BOUNDS["y_max"]).all()
        assert (events["waiting_time"] >= 0).all()

    def test_fleet_filtering(self):
        fleet = generate_fleet(num_vehicles=40, seed=5)
        idle = to_vehicle_locations(fleet, idle_only=True)
        busy = to_vehicle_locations(fleet, idle_only=False)
        assert len(idle) + len(busy) == 40
        assert len(to_vehicle_locations(fleet)) == 40


class TestBuildReplicaStatistics:
    def test_one_store_per_replica(self, spatial_index):
        stores = build_replica_statistics(
            spatial_index, num_replicas=2, num_events=100,
            time_bin_size_seconds=3600.0, number_of_time_bins=12,
        )
        assert len(stores) == 2
        assert all(store.config == (3600.0, 12) for store in stores)

    def test_replicas_differ(self, spatial_index):
        first, second = build_replica_statistics(
            spatial_index, num_replicas=2, num_events=100,
            time_bin_size_seconds=3600.0, number_of_time_bins=12,
        )
        assert first != second


class TestRunDecisionCycle:
    """Tests for a full decision cycle."""

    def test_selection_bounded(self, statistics, spatial_index, fleet):
        _, selected, result = run_decision_cycle(
            statistics, spatial_index, fleet, tick=3 * 3600.0,
            horizon_seconds=7200.0, max_vehicles=5, horizon_mode="tick_plus_duration",
        )
        assert len(selected) == 5
        assert result.selected_vehicles == 5
        assert list(selected["idle_score"]) == sorted(selected["idle_score"], reverse=True)

    def test_only_selected_vehicles_repositioned(self, statistics, spatial_index, fleet):
        assignments, selected, result = run_decision_cycle(
            statistics, spatial_index, fleet, tick=3 * 3600.0,
            horizon_seconds=7200.0, max_vehicles=8, horizon_mode="tick_plus_duration",
        )
        assert set(assignments["vehicle_id"]) <= set(selected["vehicle_id"])
        assert result.repositioned_vehicles == len(assignments)
        assert result.unassigned_vehicles == len(selected) - len(assignments)

    def test_destinations_are_region_centroids(self, statistics, spatial_index, fleet):
        assignments, _, _ = run_decision_cycle(
            statistics, spatial_index, fleet, tick=3 * 3600.0, horizon_seconds=7200.0,
        )
        centroids = {region.coord for region in spatial_index.regions}
        for row in assignments.itertuples(index=False):
            assert (row.destination_x, row.destination_y) in centroids

    def test_repeatable(self, statistics, spatial_index, fleet):
        first, _, _ = run_decision_cycle(statistics, spatial_index, fleet, tick=3600.0)
        second, _, _ = run_decision_cycle(statistics, spatial_index, fleet, tick=3600.0)
        pd.testing.assert_frame_equal(first, second)

    def test_no_idle_vehicles(self, statistics, spatial_index):
        fleet = generate_fleet(num_vehicles=5, idle_share=0.0)
        assignments, selected, result = run_decision_cycle(
            statistics, spatial_index, fleet, tick=3600.0
        )
        assert assignments.empty
        assert selected.empty
        assert result.avg_selected_score == 0.0


class TestDecisionCycleResult:
    def test_to_dict(self):
        result = DecisionCycleResult(
            horizon_mode="duration",
            idle_vehicles=20,
            selected_vehicles=10,
            repositioned_vehicles=7,
            total_reposition_meters=12500.0,
            avg_selected_score=88.888,
        )

        d = result.to_dict()

        assert d["horizon_mode"] == "duration"
        assert d["unassigned_vehicles"] == 3
        assert d["total_reposition_km"] == 12.5
        assert d["avg_selected_score"] == 88.89


class TestHorizonComparison:
    def test_one_row_per_mode(self):
        results = run_horizon_comparison(tick=8 * 3600.0, num_replicas=1)
        assert list(results["horizon_mode"]) == ["duration", "tick_plus_duration"]

    def test_only_tick_relative_horizon_sees_morning_demand(self):
        """Test that a morning tick scores 0 under the duration horizon but not the tick-relative one."""
        results = run_horizon_comparison(tick=8 * 3600.0, num_replicas=1).set_index("horizon_mode")
        assert results.loc["duration", "avg_selected_score"] == 0.0
        assert results.loc["tick_plus_duration", "avg_selected_score"] > 0.0
