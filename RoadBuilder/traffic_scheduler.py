"""Per-tick vehicle scheduling.

One call to :func:`tick` runs three strictly ordered phases:

1. arrival bookkeeping: every en-route car notes when it entered the
   ``ARRIVAL_RADIUS`` zone of each intersection and forgets it on leaving;
2. queue construction: per intersection, the cars holding an arrival stamp
   sorted by that stamp (earliest first, stable on ties);
3. transitions: every car is advanced from the *pre-tick* snapshot, so no car's
   move this tick can influence another car's wait decision.

Score earned by cars finishing their trip is summed and returned with the new
vehicle list; nothing passed in is mutated.
"""
from __future__ import annotations

import logging
import math
from typing import NamedTuple, Sequence

import numpy as np

from RoadBuilder.config import Defaults
from RoadBuilder.entities.building import Building
from RoadBuilder.entities.intersection import Intersection, IntersectionKey
from RoadBuilder.entities.road import Point, Road
from RoadBuilder.entities.vehicle import Vehicle, VehicleStatus
from RoadBuilder.utilities.geometry import lane_offset, pairwise_distances
from RoadBuilder.utilities.pathfinding import find_path
from RoadBuilder.utilities.road_network import RoadNetwork

logger = logging.getLogger(__name__)

QueueEntry = tuple[str, int]   # (vehicle id, arrival timestamp)


class TickResult(NamedTuple):
    vehicles: list[Vehicle]
    score_delta: int


def _distance_matrix(vehicles: Sequence[Vehicle], intersections: Sequence[Intersection]) -> np.ndarray:
    return pairwise_distances([v.position for v in vehicles], [i.point for i in intersections])


# ════════════════════════════════════════════════════════════
#  PHASE 1 ─ ARRIVAL BOOKKEEPING
# ════════════════════════════════════════════════════════════

def record_arrivals(vehicles: Sequence[Vehicle], intersections: Sequence[Intersection], now: int,
                    distances: np.ndarray | None = None) -> list[Vehicle]:
    """Copies of *vehicles* with their intersection arrival stamps brought up to date.

    A stamp is written once, on entering the zone, and kept unchanged while
    the car stays inside; cars outside the zone lose it. Parked cars are copied
    untouched.
    """
    if distances is None:
        distances = _distance_matrix(vehicles, intersections)

    radius = Defaults.ARRIVAL_RADIUS
    result = []
    for row, vehicle in zip(distances, vehicles):
        updated = vehicle.copy()
        if vehicle.is_en_route:
            arrivals = updated.intersection_arrival_times
            for intersection, dist in zip(intersections, row):
                key = intersection.key
                if dist < radius:
                    if key not in arrivals:
                        arrivals[key] = now
                else:
                    arrivals.pop(key, None)
        result.append(updated)
    return result


# ════════════════════════════════════════════════════════════
#  PHASE 2 ─ FIFO QUEUES
# ════════════════════════════════════════════════════════════

def intersection_queues(vehicles: Sequence[Vehicle]) -> dict[IntersectionKey, list[QueueEntry]]:
    """Per-intersection ``(vehicle id, arrival time)`` lists, earliest arrival first."""
    queues: dict[IntersectionKey, list[QueueEntry]] = {}
    for vehicle in vehicles:
        if not vehicle.is_en_route:
            continue
        for key, arrived in vehicle.intersection_arrival_times.items():
            queues.setdefault(key, []).append((vehicle.id, arrived))
    for queue in queues.values():
        queue.sort(key=lambda entry: entry[1])
    return queues


def intersection_vehicle_counts(vehicles: Sequence[Vehicle],
                                intersections: Sequence[Intersection]) -> list[int]:
    """How many en-route cars currently hold an arrival stamp for each intersection."""
    queues = intersection_queues(vehicles)
    return [len(queues.get(i.key, ())) for i in intersections]


# ════════════════════════════════════════════════════════════
#  PHASE 3 ─ RIGHT OF WAY
# ════════════════════════════════════════════════════════════

def _must_yield(index: int, snapshot: Sequence[Vehicle], distances: np.ndarray,
                intersections: Sequence[Intersection], queues: dict[IntersectionKey, list[QueueEntry]],
                status_by_id: dict[str, VehicleStatus]) -> bool:
    row = distances[index]
    inner = Defaults.INNER_RADIUS

    # Committed cars clear the junction, otherwise it can deadlock.
    if np.any(row < inner):
        return False

    vehicle = snapshot[index]
    same_status = np.fromiter((v.status is vehicle.status for v in snapshot), dtype=bool, count=len(snapshot))
    same_status[index] = False

    for k, intersection in enumerate(intersections):
        if not inner <= row[k] < Defaults.APPROACH_RADIUS:
            continue

        if np.any(same_status & (distances[:, k] < inner)):
            return True

        queue = queues.get(intersection.key, ())
        if len(queue) >= 2:
            same_direction = [vid for vid, _ in queue if status_by_id.get(vid) is vehicle.status]
            if len(same_direction) >= 2 and same_direction[0] != vehicle.id:
                return True

    return False


def should_wait(vehicle: Vehicle, vehicles: Sequence[Vehicle], intersections: Sequence[Intersection],
                queues: dict[IntersectionKey, list[QueueEntry]] | None = None) -> bool:
    """Whether *vehicle* has to hold in an approach band this tick.

    Only cars with the same status (the same direction of travel) ever block
    each other. *vehicles* must contain *vehicle*.
    """
    snapshot = list(vehicles)
    index = next(i for i, v in enumerate(snapshot) if v.id == vehicle.id)
    if queues is None:
        queues = intersection_queues(snapshot)
    return _must_yield(index, snapshot, _distance_matrix(snapshot, intersections), intersections, queues,
                       {v.id: v.status for v in snapshot})


# ════════════════════════════════════════════════════════════
#  TICK
# ════════════════════════════════════════════════════════════

def _advance(vehicle: Vehicle, must_wait: bool, tick_seconds: float) -> Vehicle:
    target = vehicle.path[vehicle.target_index]
    previous = vehicle.path[max(0, vehicle.target_index - 1)]
    offset = lane_offset(previous, target, vehicle.lane)
    adjusted = Point(target.x + offset.x, target.y + offset.y)

    if must_wait:
        return vehicle.copy(wait_time=vehicle.wait_time + tick_seconds)

    dx = adjusted.x - vehicle.position.x
    dy = adjusted.y - vehicle.position.y
    dist = math.hypot(dx, dy)
    wait_time = max(0.0, vehicle.wait_time - tick_seconds)

    if dist < vehicle.speed:
        return vehicle.copy(position=adjusted, target_index=vehicle.target_index + 1,
                            direction=math.atan2(dy, dx), wait_time=wait_time)

    return vehicle.copy(
        position=Point(vehicle.position.x + dx / dist * vehicle.speed,
                       vehicle.position.y + dy / dist * vehicle.speed),
        direction=math.atan2(dy, dx),
        wait_time=wait_time,
    )


def _return_path(vehicle: Vehicle, buildings: Sequence[Building], roads: Sequence[Road],
                 network: RoadNetwork | None) -> list[Point] | None:
    office = next((b for b in buildings if b.id == vehicle.to_building), None)
    home = next((b for b in buildings if b.id == vehicle.from_building), None)
    if office is None or home is None:
        logger.debug("No return trip for %s: %s or %s is not among the %d buildings given",
                     vehicle.id, vehicle.to_building, vehicle.from_building, len(buildings))
        return None
    return find_path(office.position, home.position, roads, network)


def tick(vehicles: Sequence[Vehicle], intersections: Sequence[Intersection], roads: Sequence[Road],
         now: int, buildings: Sequence[Building] = (), *,
         network: RoadNetwork | None = None,
         office_wait_time: int = Defaults.OFFICE_WAIT_TIME_MS,
         tick_seconds: float = Defaults.TICK_INTERVAL_MS / 1000,
         score_per_trip: int = Defaults.SCORE_PER_TRIP) -> TickResult:
    """Advance every vehicle by one tick at simulated time *now* (ms).

    *buildings* must hold each parked car's home and office; otherwise cars
    ``at-office`` stay parked once their dwell is over.
    """
    intersections = list(intersections)
    distances = _distance_matrix(vehicles, intersections)
    snapshot = record_arrivals(vehicles, intersections, now, distances)
    queues = intersection_queues(snapshot)
    status_by_id = {v.id: v.status for v in snapshot}

    score_delta = 0
    updated: list[Vehicle] = []

    for index, vehicle in enumerate(snapshot):
        if vehicle.status is VehicleStatus.AT_OFFICE:
            if now - vehicle.office_arrival_time >= office_wait_time:
                path = _return_path(vehicle, buildings, roads, network)
                if path is not None and len(path) >= 2:
                    vehicle = vehicle.copy(
                        status=VehicleStatus.GOING_HOME,
                        path=path,
                        target_index=1,
                        position=path[0],
                        intersection_arrival_times={},
                    )
            updated.append(vehicle)
            continue

        if vehicle.status is VehicleStatus.AT_HOME:
            score_delta += score_per_trip
            continue

        if vehicle.has_arrived:
            if vehicle.status is VehicleStatus.GOING_TO_OFFICE:
                updated.append(vehicle.copy(status=VehicleStatus.AT_OFFICE, office_arrival_time=now))
            else:
                score_delta += score_per_trip
            continue

        must_wait = _must_yield(index, snapshot, distances, intersections, queues, status_by_id)
        updated.append(_advance(vehicle, must_wait, tick_seconds))

    if score_delta:
        logger.debug("Tick %d: %d vehicles finished, score +%d", now, len(snapshot) - len(updated), score_delta)
    return TickResult(updated, score_delta)
