"""Ride-hail Fleet Repositioning - Configuration Module"""

from pathlib import Path

# Project paths
PROJECT_ROOT = Path(__file__).resolve().parents[1]

DATA_DIR = PROJECT_ROOT / "data"
RAW_DIR = DATA_DIR / "raw"
PROCESSED_DIR = DATA_DIR / "processed"

# Reproducibility
RANDOM_SEED = 42

# Demand statistics discretization
TIME_BIN_SIZE_SECONDS = 3600.0  # 1 hour
NUMBER_OF_TIME_BINS = 30  # Covers a 30 hour simulated day

# Repositioning decision settings
REPOSITION_RADIUS_METERS = 3000
HORIZON_SECONDS = 1200  # 20 minute look-ahead
MAX_VEHICLES_TO_REPOSITION = 25

# Which end bin the look-ahead horizon uses ("duration" or "tick_plus_duration")
DEFAULT_HORIZON_MODE = "duration"

# Synthetic scenario settings
DEFAULT_NUM_REPLICAS = 4
DEFAULT_NUM_EVENTS = 3000
DEFAULT_NUM_VEHICLES = 60
DEFAULT_GRID_SIZE = 6  # Regions per side of the square region grid
REGION_SPACING_METERS = 1000.0

# Projected coordinate bounds of the synthetic study area (meters)
AREA_BOUNDS = {
    "x_min": 0.0,
    "x_max": DEFAULT_GRID_SIZE * REGION_SPACING_METERS,
    "y_min": 0.0,
    "y_max": DEFAULT_GRID_SIZE * REGION_SPACING_METERS,
}

# Demand hotspots as (x, y, weight) - requests cluster around these
DEMAND_HOTSPOTS = [
    (1500.0, 1500.0, 0.45),
    (4500.0, 2500.0, 0.35),
    (3000.0, 5000.0, 0.20),
]
HOTSPOT_STDDEV_METERS = 700.0

# Waiting time distribution for ride requests (seconds)
MEAN_WAITING_TIME_SECONDS = 240.0
