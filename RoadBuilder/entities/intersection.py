from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum

from RoadBuilder.config import Defaults
from RoadBuilder.entities.road import Point, as_point


class IntersectionKind(str, Enum):
    JUNCTION = "junction"   # two or more roads share an exact endpoint
    CROSSING = "crossing"   # two straight roads meet strictly inside both


IntersectionKey = tuple[int, int]


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def intersection_key(point: Point) -> IntersectionKey:
    """Quantised integer key for arrival bookkeeping and queues."""
    return _round_half_up(point[0]), _round_half_up(point[1])


@dataclass
class Intersection:
    point: Point
    kind: IntersectionKind = IntersectionKind.JUNCTION
    vehicle_count: int = 0

    def __post_init__(self):
        self.point = as_point(self.point)

    @property
    def key(self) -> IntersectionKey:
        return intersection_key(self.point)

    @property
    def congestion_level(self) -> str:
        if self.vehicle_count >= Defaults.HEAVY_CONGESTION_VEHICLE_COUNT:
            return "heavy"
        if self.vehicle_count >= Defaults.CONGESTED_VEHICLE_COUNT:
            return "congested"
        return "free"
