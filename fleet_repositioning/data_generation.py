"""Synthetic ride-hail scenarios: regions, demand events and fleets."""

import pandas as pd
import numpy as np
from typing import List, Optional
from faker import Faker

from .config import (
    RANDOM_SEED,
    DEFAULT_NUM_EVENTS,
    DEFAULT_NUM_VEHICLES,
    DEFAULT_GRID_SIZE,
    REGION_SPACING_METERS,
    AREA_BOUNDS,
    DEMAND_HOTSPOTS,
    HOTSPOT_STDDEV_METERS,
    MEAN_WAITING_TIME_SECONDS,
    TIME_BIN_SIZE_SECONDS,
    NUMBER_OF_TIME_BINS,
    RAW_DIR,
)
from .models import Region, VehicleLocation
from .spatial_index import build_grid_regions
from .utils import set_seed


fake = Faker()
Faker.seed(RANDOM_SEED)


def generate_regions(
    grid_size: int = DEFAULT_GRID_SIZE,
    spacing_meters: float = REGION_SPACING_METERS,
) -> List[Region]:
    """Square grid of regions covering the study area."""
    return build_grid_regions(grid_size, spacing_meters)


def _clip_to_area(values: np.ndarray, low: float, high: float) -> np.ndarray:
    return np.clip(values, low, high - 1e-6)


def generate_demand_events(
    num_events: int = DEFAULT_NUM_EVENTS,
    simulated_seconds: float = TIME_BIN_SIZE_SECONDS * NUMBER_OF_TIME_BINS,
    seed: int = RANDOM_SEED,
) -> pd.DataFrame:
    """
    Generate ride requests clustered around the demand hotspots.
    
    Args:
        num_events: Number of ride requests to generate
        simulated_seconds: Requests are spread uniformly over [0, this)
        seed: Random seed for reproducibility
        
    Returns:
        DataFrame with one row per request (time, x, y, waiting_time)
    """
    set_seed(seed)

    weights = np.array([w for _, _, w in DEMAND_HOTSPOTS])
    hotspot = np.random.choice(len(DEMAND_HOTSPOTS), size=num_events, p=weights / weights.sum())
    centers = np.array([(x, y) for x, y, _ in DEMAND_HOTSPOTS])[hotspot]

    # Requests scatter normally around their hotspot
    offsets = np.random.normal(0, HOTSPOT_STDDEV_METERS, size=(num_events, 2))
    x = _clip_to_area(centers[:, 0] + offsets[:, 0], AREA_BOUNDS["x_min"], AREA_BOUNDS["x_max"])
    y = _clip_to_area(centers[:, 1] + offsets[:, 1], AREA_BOUNDS["y_min"], AREA_BOUNDS["y_max"])

    times = np.sort(np.random.uniform(0, simulated_seconds, size=num_events))
    waiting_times = np.random.exponential(MEAN_WAITING_TIME_SECONDS, size=num_events)

    return pd.DataFrame({
        "request_id": [f"REQ_{i:06d}" for i in range(num_events)],
        "time": times,
        "x": x,
        "y": y,
        "waiting_time": np.round(waiting_times, 1),
    })


def generate_fleet(
    num_vehicles: int = DEFAULT_NUM_VEHICLES,
    idle_share: float = 0.6,
    seed: int = RANDOM_SEED,
) -> pd.DataFrame:
    """
    Generate ride-hail vehicles scattered uniformly over the study area.
    
    Args:
        num_vehicles: Fleet size
        idle_share: Probability that a vehicle is idle this cycle
        seed: Random seed for reproducibility
        
    Returns:
        DataFrame with vehicle positions and idle flags
    """
    set_seed(seed)
    Faker.seed(seed)

    vehicles = []
    for i in range(num_vehicles):
        vehicles.append({
            "vehicle_id": f"RH_{i:04d}",
            "license_plate": fake.license_plate(),
            "x": np.random.uniform(AREA_BOUNDS["x_min"], AREA_BOUNDS["x_max"]),
            "y": np.random.uniform(AREA_BOUNDS["y_min"], AREA_BOUNDS["y_max"]),
            "is_idle": np.random.random() < idle_share,
        })

    return pd.DataFrame(vehicles)


def to_vehicle_locations(
    fleet: pd.DataFrame, idle_only: Optional[bool] = None
) -> List[VehicleLocation]:
    """Convert a fleet table into vehicle locations, optionally filtering on idleness."""
    if idle_only is not None:
        fleet = fleet[fleet["is_idle"] == idle_only]
    return [
        VehicleLocation(vehicle_id=str(row.vehicle_id), x=float(row.x), y=float(row.y))
        for row in fleet.itertuples(index=False)
    ]


def save_raw_data(df: pd.DataFrame, filename: str) -> None:
    """Save generated data to raw directory."""
    RAW_DIR.mkdir(parents=True, exist_ok=True)
    filepath = RAW_DIR / filename
    df.to_csv(filepath, index=False)
    print(f"Saved {len(df)} records to {filepath}")


if __name__ == "__main__":
    print("Generating synthetic ride-hail data...")

    events_df = generate_demand_events()
    save_raw_data(events_df, "demand_events.csv")

    fleet_df = generate_fleet()
    save_raw_data(fleet_df, "fleet.csv")

    print("Done!")
