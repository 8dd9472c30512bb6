# road_placement.py ─ rules a freshly drawn road must pass before it joins the network
from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Sequence

import numpy as np

from RoadBuilder.config import Defaults
from RoadBuilder.entities.building import Building
from RoadBuilder.entities.intersection import Intersection
from RoadBuilder.entities.river import RiverSegment, any_point_in_river
from RoadBuilder.entities.road import Point, Road, as_point
from RoadBuilder.utilities.geometry import (
    distance,
    pairwise_distances,
    sample_segment_points,
    snap_to_grid,
)


class RejectionReason(str, Enum):
    TOO_SHORT = "too-short"
    CROSSES_RIVER = "crosses-river"
    OVERLAPS_ROAD = "overlaps-road"
    CROSSES_BUILDING = "crosses-building"


@dataclass(frozen=True)
class PlacementResult:
    accepted: bool
    road: Road | None = None
    reason: RejectionReason | None = None

    @classmethod
    def ok(cls, road: Road) -> "PlacementResult":
        return cls(accepted=True, road=road)

    @classmethod
    def rejected(cls, reason: RejectionReason) -> "PlacementResult":
        return cls(accepted=False, reason=reason)


# ════════════════════════════════════════════════════════════
#  SAMPLING
# ════════════════════════════════════════════════════════════

def _river_samples(start: Point, end: Point, control: Point | None) -> np.ndarray:
    if control is not None:
        return sample_segment_points(start, end, control, 10)

    # One sample per ROAD_SAMPLE_SPACING px along the dominant axis, starting at
    # *start*; the last one falls short of *end* when the span is not a multiple.
    span = max(abs(end[0] - start[0]), abs(end[1] - start[1])) / Defaults.ROAD_SAMPLE_SPACING
    if span == 0:
        return np.asarray([start], dtype=np.float64)
    t = (np.arange(math.floor(span) + 1) / span)[:, None]
    a = np.asarray(start, dtype=np.float64)
    b = np.asarray(end, dtype=np.float64)
    return a + (b - a) * t


# ════════════════════════════════════════════════════════════
#  INDIVIDUAL CHECKS
# ════════════════════════════════════════════════════════════

def crosses_river(start: Point, end: Point, river: Sequence[RiverSegment],
                  control: Point | None = None) -> bool:
    if len(river) < 2:
        return False
    return any_point_in_river(_river_samples(start, end, control), river, Defaults.RIVER_ROAD_MARGIN)


def overlaps_existing_road(start: Point, end: Point, roads: Sequence[Road],
                           control: Point | None = None) -> bool:
    """True if the new road runs along any single existing road for too long.

    Both roads are sampled at ``ROAD_OVERLAP_SAMPLES + 1`` points; a new-road
    sample counts when it lies within ``ROAD_OVERLAP_THRESHOLD`` of any sample
    of the existing road.
    """
    steps = Defaults.ROAD_OVERLAP_SAMPLES
    new_samples = sample_segment_points(start, end, control, steps)
    limit = steps * Defaults.ROAD_OVERLAP_RATIO

    for road in roads:
        existing = sample_segment_points(road.start, road.end, road.control_point, steps)
        near = pairwise_distances(new_samples, existing) < Defaults.ROAD_OVERLAP_THRESHOLD
        if int(np.count_nonzero(near.any(axis=1))) > limit:
            return True
    return False


def crosses_building(start: Point, end: Point, buildings: Sequence[Building],
                     control: Point | None = None) -> bool:
    """True if any sample of the road falls inside a building footprint.

    Buildings the road starts or ends on are exempt, that is how roads connect
    to them.
    """
    steps = math.ceil(distance(start, end) / Defaults.ROAD_SAMPLE_SPACING)
    samples = sample_segment_points(start, end, control, steps)

    for building in buildings:
        if building.position == start or building.position == end:
            continue
        left, top, right, bottom = building.bounds(Defaults.BUILDING_FOOTPRINT_MARGIN)
        inside = ((samples[:, 0] > left) & (samples[:, 0] < right)
                  & (samples[:, 1] > top) & (samples[:, 1] < bottom))
        if inside.any():
            return True
    return False


def validate_road(start, end, control=None, *,
                  roads: Sequence[Road] = (),
                  buildings: Sequence[Building] = (),
                  river: Sequence[RiverSegment] = ()) -> RejectionReason | None:
    """First rule the candidate road breaks, or ``None`` if it may be built.

    Raises :class:`MalformedRoadError` for non-finite coordinates, which no
    rule can judge.
    """
    start, end = as_point(start), as_point(end)
    control = as_point(control) if control is not None else None
    Road.check_coordinates("candidate", start, end, control)

    if distance(start, end) <= Defaults.GRID_SIZE:
        return RejectionReason.TOO_SHORT
    if crosses_river(start, end, river, control):
        return RejectionReason.CROSSES_RIVER
    if overlaps_existing_road(start, end, roads, control):
        return RejectionReason.OVERLAPS_ROAD
    if crosses_building(start, end, buildings, control):
        return RejectionReason.CROSSES_BUILDING
    return None


# ════════════════════════════════════════════════════════════
#  DRAWING HELPERS
# ════════════════════════════════════════════════════════════

def snap_to_feature(point, roads: Sequence[Road] = (), intersections: Sequence[Intersection] = (),
                    buildings: Sequence[Building] = (),
                    snap_distance: float = Defaults.POINT_SNAP_DISTANCE) -> Point | None:
    """Nearest road endpoint, intersection or building within reach, else ``None``.

    Buildings get ``BUILDING_SNAP_BONUS`` extra reach. Candidates are scanned in
    that order and only a strictly closer one replaces the current pick.
    """
    point = as_point(point)
    closest: Point | None = None
    closest_dist = math.inf

    def consider(candidate: Point, reach: float):
        nonlocal closest, closest_dist
        d = distance(point, candidate)
        if d < closest_dist and d < reach:
            closest_dist = d
            closest = candidate

    for road in roads:
        consider(road.start, snap_distance)
        consider(road.end, snap_distance)
    for intersection in intersections:
        consider(intersection.point, snap_distance)
    for building in buildings:
        consider(building.position, snap_distance + Defaults.BUILDING_SNAP_BONUS)

    return closest


def snap_point(point, roads: Sequence[Road] = (), intersections: Sequence[Intersection] = (),
               buildings: Sequence[Building] = (), grid_size: int = Defaults.GRID_SIZE) -> Point:
    snapped = snap_to_feature(point, roads, intersections, buildings)
    if snapped is not None:
        return snapped
    return snap_to_grid(as_point(point), grid_size)


def curve_control_point(start, end, cursor, strength: float = Defaults.CURVE_STRENGTH) -> Point | None:
    """Control point bulging toward the cursor's side of the chord.

    The bulge is ``strength`` times the chord length. ``None`` for a zero chord.
    """
    start, end, cursor = as_point(start), as_point(end), as_point(cursor)
    mid_x = (start.x + end.x) / 2
    mid_y = (start.y + end.y) / 2
    dx = end.x - start.x
    dy = end.y - start.y
    length = math.hypot(dx, dy)
    if length == 0:
        return None

    perp_x = -dy / length
    perp_y = dx / length
    side = 1 if (cursor.x - mid_x) * perp_x + (cursor.y - mid_y) * perp_y > 0 else -1
    bulge = length * strength * side
    return Point(mid_x + perp_x * bulge, mid_y + perp_y * bulge)
