# world_generation.py ─ river and building placement for a new session
from __future__ import annotations

import logging
import math
import random
from typing import Sequence

from RoadBuilder.config import Defaults
from RoadBuilder.entities.building import Building, BuildingRole, building_id
from RoadBuilder.entities.river import RiverSegment, is_point_in_river
from RoadBuilder.entities.road import Point, Road
from RoadBuilder.utilities.geometry import distance, sample_road

logger = logging.getLogger(__name__)


# ════════════════════════════════════════════════════════════
#  RIVER
# ════════════════════════════════════════════════════════════

def catmull_rom(p0, p1, p2, p3, t: float) -> Point:
    t2 = t * t
    t3 = t2 * t
    return Point(
        0.5 * ((2 * p1[0]) + (-p0[0] + p2[0]) * t
               + (2 * p0[0] - 5 * p1[0] + 4 * p2[0] - p3[0]) * t2
               + (-p0[0] + 3 * p1[0] - 3 * p2[0] + p3[0]) * t3),
        0.5 * ((2 * p1[1]) + (-p0[1] + p2[1]) * t
               + (2 * p0[1] - 5 * p1[1] + 4 * p2[1] - p3[1]) * t2
               + (-p0[1] + 3 * p1[1] - 3 * p2[1] + p3[1]) * t3),
    )


def _river_width(rng: random.Random) -> float:
    return Defaults.RIVER_MIN_WIDTH + rng.random() * (Defaults.RIVER_MAX_WIDTH - Defaults.RIVER_MIN_WIDTH)


def _river_control_points(direction: str, width: float, height: float,
                          rng: random.Random) -> list[RiverSegment]:
    pad = Defaults.RIVER_EDGE_PADDING
    meander = Defaults.RIVER_MEANDER
    points: list[RiverSegment] = []

    if direction == "horizontal":
        current_y = height * 0.25 + rng.random() * height * 0.5
        count = 4 + rng.randrange(3)
        for i in range(count + 1):
            current_y += (rng.random() - 0.5) * meander
            current_y = max(pad, min(height - pad, current_y))
            points.append(RiverSegment(i / count * width, current_y, _river_width(rng)))

    elif direction == "vertical":
        current_x = width * 0.25 + rng.random() * width * 0.5
        count = 4 + rng.randrange(3)
        for i in range(count + 1):
            current_x += (rng.random() - 0.5) * meander
            current_x = max(pad, min(width - pad, current_x))
            points.append(RiverSegment(current_x, i / count * height, _river_width(rng)))

    elif direction == "diagonal":
        from_top = rng.random() > 0.5
        count = 5 + rng.randrange(3)
        for i in range(count + 1):
            t = i / count
            x = t * width
            if from_top:
                y = 50 + t * (height - 100)
            else:
                y = height - 50 - t * (height - 100)
            y += math.sin(t * math.pi * 2) * meander
            x += (rng.random() - 0.5) * 40
            y += (rng.random() - 0.5) * 40
            x = max(0.0, min(width, x))
            y = max(50.0, min(height - 50, y))
            points.append(RiverSegment(x, y, _river_width(rng)))

    else:
        raise ValueError(f"Unknown river direction {direction!r}; expected one of {Defaults.RIVER_DIRECTIONS}")

    return points


def generate_river(width: float = Defaults.WIDTH, height: float = Defaults.HEIGHT,
                   rng: random.Random | None = None, direction: str | None = None) -> list[RiverSegment]:
    """A meandering river across the map, sampled along a Catmull-Rom spline."""
    rng = rng or random.Random()
    if direction is None:
        direction = rng.choice(Defaults.RIVER_DIRECTIONS)

    control = _river_control_points(direction, width, height, rng)
    samples = Defaults.RIVER_SAMPLES_PER_SEGMENT
    last = len(control) - 1

    segments: list[RiverSegment] = []
    for i in range(last):
        p0 = control[max(0, i - 1)]
        p1 = control[i]
        p2 = control[min(last, i + 1)]
        p3 = control[min(last, i + 2)]
        for j in range(samples):
            t = j / samples
            x, y = catmull_rom(p0, p1, p2, p3, t)
            segments.append(RiverSegment(x, y, p1.width + (p2.width - p1.width) * t))
    segments.append(control[-1])

    logger.debug("Generated %s river with %d segments", direction, len(segments))
    return segments


# ════════════════════════════════════════════════════════════
#  BUILDINGS
# ════════════════════════════════════════════════════════════

def is_too_close_to_roads(point: Point, roads: Sequence[Road], min_distance: float) -> bool:
    for road in roads:
        if distance(point, road.start) < min_distance or distance(point, road.end) < min_distance:
            return True
        steps = 10 if road.is_curved else 5
        for rx, ry in sample_road(road, steps):
            if math.hypot(point[0] - rx, point[1] - ry) < min_distance:
                return True
    return False


def _is_free_site(point: Point, role: BuildingRole, existing: Sequence[Building],
                  river: Sequence[RiverSegment], roads: Sequence[Road], *, check_homes: bool) -> bool:
    if is_point_in_river(point, river, Defaults.RIVER_BUILDING_MARGIN):
        return False
    if any(distance(b.position, point) < Defaults.MIN_BUILDING_DISTANCE for b in existing):
        return False
    if role is BuildingRole.OFFICE and check_homes:
        if any(b.is_home and distance(b.position, point) < Defaults.MIN_HOME_OFFICE_DISTANCE for b in existing):
            return False
    clearance = Defaults.HOME_ROAD_CLEARANCE if role is BuildingRole.HOME else Defaults.OFFICE_ROAD_CLEARANCE
    return not is_too_close_to_roads(point, roads, clearance)


def find_building_site(role: BuildingRole, existing: Sequence[Building], river: Sequence[RiverSegment],
                       width: float, height: float, roads: Sequence[Road],
                       rng: random.Random) -> Point:
    """Random sampling first, then a coarse grid scan, then a fixed fallback spot.

    The grid scan no longer insists on offices keeping their distance from homes.
    """
    margin = Defaults.BUILDING_MARGIN

    for _ in range(Defaults.BUILDING_PLACEMENT_ATTEMPTS):
        point = Point(margin + rng.random() * (width - margin * 2),
                      margin + rng.random() * (height - margin * 2))
        if _is_free_site(point, role, existing, river, roads, check_homes=True):
            return point

    step = Defaults.BUILDING_GRID_SCAN_STEP
    x = margin
    while x < width - margin:
        y = margin
        while y < height - margin:
            point = Point(x, y)
            if _is_free_site(point, role, existing, river, roads, check_homes=False):
                return point
            y += step
        x += step

    logger.warning("No free site for a new %s; using the fallback position", role.value)
    if role is BuildingRole.HOME:
        return Point(width / 2, height / 2)
    return Point(width - margin - rng.random() * 100, height - margin - rng.random() * 100)


def generate_building(index: int, role: BuildingRole, existing: Sequence[Building],
                      river: Sequence[RiverSegment] = (), width: float = Defaults.WIDTH,
                      height: float = Defaults.HEIGHT, roads: Sequence[Road] = (),
                      rng: random.Random | None = None) -> Building:
    rng = rng or random.Random()
    position = find_building_site(role, existing, river, width, height, roads, rng)
    suffix = None if index < Defaults.UNSUFFIXED_BUILDING_PAIRS else rng.randrange(1_000_000)
    return Building(
        id=building_id(index, role, suffix),
        position=position,
        color=Defaults.BUILDING_COLORS[index % len(Defaults.BUILDING_COLORS)],
    )


def generate_building_pair(index: int, existing: Sequence[Building], river: Sequence[RiverSegment] = (),
                           width: float = Defaults.WIDTH, height: float = Defaults.HEIGHT,
                           roads: Sequence[Road] = (), rng: random.Random | None = None) -> list[Building]:
    """A home and its office of colour group *index*, clear of everything placed so far."""
    rng = rng or random.Random()
    home = generate_building(index, BuildingRole.HOME, existing, river, width, height, roads, rng)
    office = generate_building(index, BuildingRole.OFFICE, [*existing, home], river, width, height, roads, rng)
    return [home, office]


def generate_buildings(river: Sequence[RiverSegment] = (), count: int = Defaults.INITIAL_BUILDING_PAIRS,
                       width: float = Defaults.WIDTH, height: float = Defaults.HEIGHT,
                       roads: Sequence[Road] = (), rng: random.Random | None = None) -> list[Building]:
    rng = rng or random.Random()
    buildings: list[Building] = []
    for i in range(count):
        buildings.extend(generate_building_pair(i, buildings, river, width, height, roads, rng))
    return buildings
