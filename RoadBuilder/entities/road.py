from __future__ import annotations

import math
from dataclasses import dataclass
from typing import NamedTuple


class Point(NamedTuple):
    """Plane coordinates. Equality is exact, which is what graph node keys rely on."""
    x: float
    y: float


class MalformedRoadError(ValueError):
    """Raised when a road cannot exist in the network at all (zero length, NaN, ...)."""


def as_point(value) -> Point:
    """Accept a Point, an (x, y) tuple or anything with ``.x``/``.y``."""
    if isinstance(value, Point):
        return value
    if hasattr(value, "x") and hasattr(value, "y"):
        return Point(value.x, value.y)
    x, y = value
    return Point(x, y)


@dataclass(frozen=True)
class Road:
    """A straight segment, or a quadratic Bézier when *control_point* is set.

    Roads are never edited in place; the network is rebuilt whenever the road
    set changes.
    """
    id: str
    start: Point
    end: Point
    control_point: Point | None = None

    @staticmethod
    def check_coordinates(road_id: str, *points: Point | None):
        """Raise :class:`MalformedRoadError` unless every given coordinate is finite."""
        coords = [c for p in points if p is not None for c in p]
        if not all(math.isfinite(c) for c in coords):
            raise MalformedRoadError(f"Road {road_id} has non-finite coordinates: {coords}")

    def __post_init__(self):
        object.__setattr__(self, "start", as_point(self.start))
        object.__setattr__(self, "end", as_point(self.end))
        if self.control_point is not None:
            object.__setattr__(self, "control_point", as_point(self.control_point))

        self.check_coordinates(self.id, self.start, self.end, self.control_point)

        if self.start == self.end:
            raise MalformedRoadError(f"Road {self.id} has zero length at {self.start}")

    @property
    def is_curved(self) -> bool:
        return self.control_point is not None

    @property
    def is_straight(self) -> bool:
        return self.control_point is None

    def endpoints(self) -> tuple[Point, Point]:
        return self.start, self.end

    def connects(self, a: Point, b: Point, tolerance: float = 5.0) -> bool:
        """True if the road runs between *a* and *b* in either direction."""
        a, b = as_point(a), as_point(b)

        def close(p: Point, q: Point) -> bool:
            return math.hypot(p.x - q.x, p.y - q.y) < tolerance

        return ((close(self.start, a) and close(self.end, b))
                or (close(self.start, b) and close(self.end, a)))
