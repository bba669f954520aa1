"""Spatial lookups from coordinates to regions."""

import numpy as np
from typing import Dict, Iterable, List, Protocol, Sequence

from .models import Region


class SpatialIndex(Protocol):
    """Query contract the repositioning logic relies on.
    
    ``regions_within_radius`` must return the same order for the same
    query; the order itself carries no meaning.
    """

    def region_containing(self, x: float, y: float) -> str:
        ...

    def regions_within_radius(self, x: float, y: float, radius_meters: float) -> Sequence[str]:
        ...

    def region(self, region_id: str) -> Region:
        ...


class CentroidSpatialIndex:
    """
    Spatial index over region centroids.
    
    A point belongs to the region with the nearest centroid, which makes the
    regions a Voronoi partition of the plane. Coordinates are projected
    (meters), so plain Euclidean distance applies.
    """

    def __init__(self, regions: Iterable[Region]):
        ordered = sorted(regions, key=lambda r: r.region_id)
        if not ordered:
            raise ValueError("CentroidSpatialIndex needs at least one region")

        self._regions: Dict[str, Region] = {}
        for region in ordered:
            if region.region_id in self._regions:
                raise ValueError(f"Duplicate region id: {region.region_id}")
            self._regions[region.region_id] = region

        self._ids: List[str] = [r.region_id for r in ordered]
        self._centroids = np.array([[r.x, r.y] for r in ordered], dtype=float)

    def __len__(self) -> int:
        return len(self._ids)

    @property
    def regions(self) -> List[Region]:
        return [self._regions[rid] for rid in self._ids]

    def region(self, region_id: str) -> Region:
        return self._regions[region_id]

    def _distances(self, x: float, y: float) -> np.ndarray:
        return np.hypot(self._centroids[:, 0] - x, self._centroids[:, 1] - y)

    def region_containing(self, x: float, y: float) -> str:
        # argmin returns the first minimum, i.e. the lowest region id on ties
        return self._ids[int(np.argmin(self._distances(x, y)))]

    def regions_within_radius(self, x: float, y: float, radius_meters: float) -> List[str]:
        within = np.flatnonzero(self._distances(x, y) <= radius_meters)
        return [self._ids[i] for i in within]


def build_grid_regions(
    grid_size: int,
    spacing_meters: float,
    prefix: str = "TAZ",
) -> List[Region]:
    """Square grid of equally sized regions with centroids at cell centers."""
    regions = []
    for row in range(grid_size):
        for col in range(grid_size):
            regions.append(Region(
                region_id=f"{prefix}_{row:02d}_{col:02d}",
                x=(col + 0.5) * spacing_meters,
                y=(row + 0.5) * spacing_meters,
                area=spacing_meters ** 2,
            ))
    return regions
