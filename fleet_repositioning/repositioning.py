"""Repositioning decisions for idle ride-hail vehicles."""

import logging
from typing import Dict, Iterable, List, Sequence

from .models import Assignment, VehicleLocation
from .scoring import RepositioningScorer
from .spatial_index import SpatialIndex
from .utils import rank_top_n

_logger = logging.getLogger(__name__)


def group_by_region(
    vehicles: Iterable[VehicleLocation], spatial_index: SpatialIndex
) -> Dict[str, List[str]]:
    """
    Group vehicle ids by the region they are currently in.
    
    Groups appear in the order their first vehicle was seen, and vehicles
    keep their input order within a group.
    """
    groups: Dict[str, List[str]] = {}
    for vehicle in vehicles:
        region_id = spatial_index.region_containing(vehicle.x, vehicle.y)
        groups.setdefault(region_id, []).append(vehicle.vehicle_id)
    return groups


def rank_destinations(
    region_ids: Sequence[str],
    scorer: RepositioningScorer,
    start_bin: int,
    end_bin: int,
    top_n: int,
) -> List[str]:
    """Best ``top_n`` regions by demand score, ties broken by region id."""
    ranked = rank_top_n(
        region_ids,
        score=lambda region_id: scorer.score_region(region_id, start_bin, end_bin),
        key=lambda region_id: region_id,
        n=top_n,
    )
    return [candidate.item for candidate in ranked]


def assign_repositioning(
    vehicles: Iterable[VehicleLocation],
    spatial_index: SpatialIndex,
    scorer: RepositioningScorer,
    radius_meters: float,
    tick: float,
    horizon_seconds: float,
) -> List[Assignment]:
    """
    Decide where to reposition each vehicle.
    
    Vehicles are grouped by region. For a group of k vehicles, every region
    within ``radius_meters`` of the group region's centroid is scored over the
    horizon, and the k best regions are handed out one per vehicle in rank
    order. When fewer regions qualify than there are vehicles, the remaining
    vehicles get no assignment.
    
    Args:
        vehicles: Vehicles to reposition this cycle
        spatial_index: Region lookups
        scorer: Demand scorer over the current statistics snapshot
        radius_meters: Search radius around the group's region centroid
        tick: Current simulation time in seconds
        horizon_seconds: Look-ahead window in seconds
        
    Returns:
        List of (vehicle_id, destination) assignments
    """
    start_bin, end_bin = scorer.horizon_bins(tick, horizon_seconds)

    assignments: List[Assignment] = []
    for region_id, vehicle_ids in group_by_region(vehicles, spatial_index).items():
        centroid = spatial_index.region(region_id)
        nearby = spatial_index.regions_within_radius(centroid.x, centroid.y, radius_meters)

        destinations = rank_destinations(nearby, scorer, start_bin, end_bin, len(vehicle_ids))

        if len(destinations) < len(vehicle_ids):
            _logger.debug(
                "Region %s: %d vehicles but only %d destinations within %sm, "
                "leaving %d unassigned",
                region_id, len(vehicle_ids), len(destinations), radius_meters,
                len(vehicle_ids) - len(destinations),
            )

        for vehicle_id, destination_id in zip(vehicle_ids, destinations):
            assignments.append(
                Assignment(vehicle_id, spatial_index.region(destination_id).coord)
            )

    return assignments


def select_idling_candidates(
    idle_vehicles: Iterable[VehicleLocation],
    spatial_index: SpatialIndex,
    scorer: RepositioningScorer,
    max_count: float,
    tick: float,
    horizon_seconds: float,
) -> List[VehicleLocation]:
    """
    Pick the idle vehicles most worth repositioning.
    
    Each vehicle is scored by the demand of the region it is standing in over
    the horizon. The ``max_count`` highest scoring vehicles are returned,
    highest first; ties go to the lower vehicle id.
    """
    start_bin, end_bin = scorer.horizon_bins(tick, horizon_seconds)

    ranked = rank_top_n(
        idle_vehicles,
        score=lambda vehicle: scorer.score_region(
            spatial_index.region_containing(vehicle.x, vehicle.y), start_bin, end_bin
        ),
        key=lambda vehicle: vehicle.vehicle_id,
        n=int(max_count),
    )
    return [candidate.item for candidate in ranked]
