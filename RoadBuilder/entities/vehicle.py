from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum

from RoadBuilder.config import Defaults
from RoadBuilder.entities.intersection import IntersectionKey
from RoadBuilder.entities.road import Point, as_point


class VehicleStatus(str, Enum):
    GOING_TO_OFFICE = "going-to-office"
    AT_OFFICE = "at-office"
    GOING_HOME = "going-home"
    AT_HOME = "at-home"

    @property
    def is_en_route(self) -> bool:
        return self in (VehicleStatus.GOING_TO_OFFICE, VehicleStatus.GOING_HOME)


@dataclass
class Vehicle:
    """One commuter car.

    ``path`` holds graph nodes only; the stretch between a building and its
    nearest node is implicit. ``intersection_arrival_times`` maps intersection
    keys to the tick timestamp (ms) at which the car entered that arrival zone.
    """
    id: str
    position: Point
    path: list[Point]
    from_building: str
    to_building: str
    color: str
    target_index: int = 1
    speed: float = Defaults.VEHICLE_SPEED
    wait_time: float = 0.0
    lane: str = Defaults.DEFAULT_LANE
    direction: float = 0.0
    status: VehicleStatus = VehicleStatus.GOING_TO_OFFICE
    office_arrival_time: int = 0
    intersection_arrival_times: dict[IntersectionKey, int] = field(default_factory=dict)

    def __post_init__(self):
        self.position = as_point(self.position)
        self.path = [as_point(p) for p in self.path]
        self.status = VehicleStatus(self.status)

    @property
    def is_en_route(self) -> bool:
        return self.status.is_en_route

    @property
    def has_arrived(self) -> bool:
        return self.target_index >= len(self.path)

    def copy(self, **changes) -> "Vehicle":
        """Detached copy; the path list and arrival map are never shared."""
        changes.setdefault("path", list(self.path))
        changes.setdefault("intersection_arrival_times", dict(self.intersection_arrival_times))
        return replace(self, **changes)

