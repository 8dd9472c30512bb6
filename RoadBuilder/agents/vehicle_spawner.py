from __future__ import annotations

import itertools
import logging
import random
from typing import TYPE_CHECKING, Sequence

from mesa import Agent

from RoadBuilder.config import Defaults
from RoadBuilder.entities.building import Building, find_office_for_home
from RoadBuilder.entities.road import Road
from RoadBuilder.entities.vehicle import Vehicle, VehicleStatus
from RoadBuilder.utilities.pathfinding import find_path
from RoadBuilder.utilities.road_network import RoadNetwork

if TYPE_CHECKING:  # avoid circular at runtime
    from RoadBuilder.city_model import RoadGameModel

logger = logging.getLogger(__name__)

# ids for vehicles spawned without an explicit one; unique per process
_vehicle_sequence = itertools.count(1)


# ──────────────────────────────────────────────────────────────────────
#  Connectivity queries
# ──────────────────────────────────────────────────────────────────────
def commute_path(home: Building, buildings: Sequence[Building], roads: Sequence[Road],
                 network: RoadNetwork | None = None):
    """``(office, path)`` for *home*'s commute, or ``None`` when it cannot drive there."""
    office = find_office_for_home(home, buildings)
    if office is None:
        return None
    path = find_path(home.position, office.position, roads, network)
    if path is None or len(path) < 2:
        return None
    return office, path


def is_home_connected(home: Building, buildings: Sequence[Building], roads: Sequence[Road],
                      network: RoadNetwork | None = None) -> bool:
    return commute_path(home, buildings, roads, network) is not None


def connected_homes(buildings: Sequence[Building], roads: Sequence[Road],
                    network: RoadNetwork | None = None) -> list[Building]:
    if network is None and roads:
        network = RoadNetwork.build(roads)
    return [b for b in buildings if b.is_home and is_home_connected(b, buildings, roads, network)]


# ──────────────────────────────────────────────────────────────────────
#  Spawning
# ──────────────────────────────────────────────────────────────────────
def spawn_vehicle_from_home(home: Building, buildings: Sequence[Building], roads: Sequence[Road],
                            now: int = 0, *, network: RoadNetwork | None = None,
                            vehicle_id: str | None = None,
                            speed: float = Defaults.VEHICLE_SPEED) -> Vehicle | None:
    """A fresh commuter leaving *home* for its office, or ``None`` if it has no route."""
    if not home.is_home:
        return None
    commute = commute_path(home, buildings, roads, network)
    if commute is None:
        return None
    office, path = commute

    return Vehicle(
        id=vehicle_id or f"vehicle-{now}-{home.id}-{next(_vehicle_sequence)}",
        position=path[0],
        path=path,
        from_building=home.id,
        to_building=office.id,
        color=home.color,
        target_index=1,
        status=VehicleStatus.GOING_TO_OFFICE,
        speed=speed,
    )


def try_spawn_vehicle(buildings: Sequence[Building], roads: Sequence[Road],
                      rng: random.Random | None = None, now: int = 0, *,
                      network: RoadNetwork | None = None,
                      vehicle_id: str | None = None,
                      speed: float = Defaults.VEHICLE_SPEED) -> Vehicle | None:
    """Spawn at a uniformly chosen connected home; ``None`` if no home is connected."""
    rng = rng or random.Random()
    if network is None and roads:
        network = RoadNetwork.build(roads)

    candidates = connected_homes(buildings, roads, network)
    if not candidates:
        return None

    home = rng.choice(candidates)
    return spawn_vehicle_from_home(home, buildings, roads, now, network=network, vehicle_id=vehicle_id,
                                   speed=speed)


# ──────────────────────────────────────────────────────────────────────
#  Main agent
# ──────────────────────────────────────────────────────────────────────
class VehicleSpawner(Agent):
    """Releases one commuter every spawn interval while roads exist and the cap allows."""

    def __init__(self, model: "RoadGameModel", interval_ms: int = Defaults.VEHICLE_SPAWN_INTERVAL_MS,
                 max_vehicles: int = Defaults.MAX_VEHICLES):
        super().__init__(model)
        self.interval_ms = interval_ms
        self.max_vehicles = max_vehicles
        self.next_spawn_time = model.now + interval_ms
        self.spawned = 0

    def step(self):
        model = self.model
        if model.now < self.next_spawn_time:
            return
        self.next_spawn_time += self.interval_ms

        if not model.roads or len(model.vehicles) >= self.max_vehicles:
            return

        vehicle = try_spawn_vehicle(
            model.buildings, model.roads, model.random, model.now,
            network=model.network,
            vehicle_id=model.next_vehicle_id(),
            speed=model.vehicle_speed,
        )
        if vehicle is None:
            return

        self.spawned += 1
        model.vehicles.append(vehicle)
        logger.debug("Spawned %s from %s to %s", vehicle.id, vehicle.from_building, vehicle.to_building)
