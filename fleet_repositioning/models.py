"""Value types shared by the statistics store and the repositioning logic."""

from dataclasses import dataclass
from typing import Any, Dict, Hashable, NamedTuple, Tuple

Coord = Tuple[float, float]


@dataclass(frozen=True)
class StatsEntry:
    """Demand aggregates of one region in one time bin."""
    sum_of_waiting_times: float
    sum_of_requested_rides: float = 0.0
    sum_of_idling_vehicles: float = 0.0

    def average(self, other: "StatsEntry") -> "StatsEntry":
        """Field-wise mean with an entry for the same region and time bin."""
        return StatsEntry(
            sum_of_waiting_times=(self.sum_of_waiting_times + other.sum_of_waiting_times) / 2,
            sum_of_requested_rides=(self.sum_of_requested_rides + other.sum_of_requested_rides) / 2,
            sum_of_idling_vehicles=(self.sum_of_idling_vehicles + other.sum_of_idling_vehicles) / 2,
        )

    def to_dict(self) -> Dict[str, float]:
        return {
            "sum_of_requested_rides": self.sum_of_requested_rides,
            "sum_of_waiting_times": self.sum_of_waiting_times,
            "sum_of_idling_vehicles": self.sum_of_idling_vehicles,
        }


@dataclass(frozen=True)
class Region:
    """A traffic analysis zone: id, centroid and area (square meters)."""
    region_id: str
    x: float
    y: float
    area: float = 0.0

    @property
    def coord(self) -> Coord:
        return (self.x, self.y)


@dataclass(frozen=True)
class VehicleLocation:
    """Where a vehicle is at the start of a decision cycle."""
    vehicle_id: str
    x: float
    y: float

    @property
    def coord(self) -> Coord:
        return (self.x, self.y)


@dataclass(frozen=True)
class ScoredCandidate:
    """An item paired with its ranking score."""
    key: Hashable
    item: Any
    score: float


class Assignment(NamedTuple):
    """A vehicle and the coordinate it should be repositioned to."""
    vehicle_id: str
    destination: Coord
