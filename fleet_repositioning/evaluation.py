"""Evaluation metrics and reporting for repositioning decision cycles."""

import pandas as pd
from typing import Dict

from .config import PROCESSED_DIR
from .data_generation import generate_fleet, generate_regions
from .demand_statistics import DemandStatisticsStore, merge_all
from .repositioning_simulation import build_replica_statistics, run_decision_cycle
from .scoring import HorizonMode
from .spatial_index import CentroidSpatialIndex
from .utils import format_duration


def calculate_statistics_coverage(statistics: DemandStatisticsStore) -> Dict:
    """How much of a statistics snapshot carries data."""
    frame = statistics.to_frame()
    total_slots = len(statistics) * statistics.number_of_time_bins

    return {
        "regions": len(statistics),
        "time_bins": statistics.number_of_time_bins,
        "filled_slots": len(frame),
        "coverage_rate": len(frame) / total_slots * 100 if total_slots else 0.0,
        "total_waiting_time": float(frame["sum_of_waiting_times"].sum()),
        "total_requests": float(frame["sum_of_requested_rides"].sum()),
    }


def calculate_region_demand(statistics: DemandStatisticsStore, top_n: int = 5) -> pd.DataFrame:
    """Regions with the most accumulated waiting time over all bins."""
    frame = statistics.to_frame()

    region_demand = frame.groupby("region_id").agg({
        "sum_of_waiting_times": "sum",
        "sum_of_requested_rides": "sum",
    }).reset_index()

    return region_demand.sort_values(
        ["sum_of_waiting_times", "region_id"], ascending=[False, True]
    ).head(top_n)


def calculate_destination_spread(assignments: pd.DataFrame) -> pd.DataFrame:
    """Number of vehicles sent to each destination region."""
    if assignments.empty:
        return pd.DataFrame(columns=["destination_region", "vehicles"])

    spread = assignments.groupby("destination_region").size().reset_index(name="vehicles")
    return spread.sort_values(["vehicles", "destination_region"], ascending=[False, True])


def generate_evaluation_report(
    statistics: DemandStatisticsStore,
    assignments: pd.DataFrame,
    selected: pd.DataFrame,
) -> str:
    """Generate a text-based report of one decision cycle."""
    coverage = calculate_statistics_coverage(statistics)
    top_regions = calculate_region_demand(statistics)
    spread = calculate_destination_spread(assignments)

    report = []
    report.append("=" * 60)
    report.append("RIDE-HAIL REPOSITIONING REPORT")
    report.append("=" * 60)

    report.append("\nDEMAND STATISTICS")
    report.append("-" * 40)
    report.append(f"Regions: {coverage['regions']:,}")
    report.append(f"Time Bins: {coverage['time_bins']:,}")
    report.append(f"Filled Slots: {coverage['filled_slots']:,} ({coverage['coverage_rate']:.1f}%)")
    report.append(f"Total Waiting Time: {format_duration(coverage['total_waiting_time'])}")

    report.append("Highest Demand Regions:")
    for r in top_regions.to_dict("records"):
        report.append(f"  {r['region_id']} - Waiting: {format_duration(r['sum_of_waiting_times'])}")

    report.append("\nDECISION CYCLE")
    report.append("-" * 40)
    report.append(f"Selected Idle Vehicles: {len(selected):,}")
    report.append(f"Repositioned: {len(assignments):,}")
    report.append(f"Left In Place: {len(selected) - len(assignments):,}")
    if not assignments.empty:
        report.append(f"Avg Reposition Distance: {assignments['reposition_meters'].mean():,.0f} m")

    report.append("Destinations:")
    for d in spread.to_dict("records"):
        report.append(f"  {d['destination_region']} - {d['vehicles']} vehicles")

    report.append("\n" + "=" * 60)

    return "\n".join(report)


def run_evaluation_pipeline(
    tick: float = 8 * 3600.0,
    horizon_mode: str = HorizonMode.TICK_PLUS_DURATION.value,
) -> str:
    """
    Run one decision cycle on merged replica statistics and report on it.
    
    Defaults to the tick-relative horizon: with the duration horizon, a
    morning tick lies past the horizon's bin and every score is 0.
    """
    spatial_index = CentroidSpatialIndex(generate_regions())

    print("Building and merging replica statistics...")
    statistics = merge_all(build_replica_statistics(spatial_index))

    print(f"Running decision cycle with {horizon_mode} horizon...")
    assignments, selected, _ = run_decision_cycle(
        statistics, spatial_index, generate_fleet(), tick=tick, horizon_mode=horizon_mode
    )

    return generate_evaluation_report(statistics, assignments, selected)


if __name__ == "__main__":
    report = run_evaluation_pipeline()
    print(report)

    PROCESSED_DIR.mkdir(parents=True, exist_ok=True)
    with open(PROCESSED_DIR / "repositioning_report.txt", "w") as f:
        f.write(report)
