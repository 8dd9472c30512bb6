# city_model.py ─ one game session: roads, buildings, river, vehicles, score and clock
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Sequence

from mesa import Model
from mesa.datacollection import DataCollector

from RoadBuilder.agents.vehicle_spawner import (
    VehicleSpawner,
    is_home_connected,
    spawn_vehicle_from_home,
    try_spawn_vehicle,
)
from RoadBuilder.config import Defaults
from RoadBuilder.entities.building import Building
from RoadBuilder.entities.intersection import Intersection
from RoadBuilder.entities.river import RiverSegment
from RoadBuilder.entities.road import Point, Road, as_point
from RoadBuilder.entities.vehicle import Vehicle, VehicleStatus
from RoadBuilder.traffic_scheduler import intersection_vehicle_counts, tick
from RoadBuilder.utilities.pathfinding import find_path
from RoadBuilder.utilities.road_network import RoadNetwork
from RoadBuilder.utilities.road_placement import PlacementResult, snap_point, validate_road
from RoadBuilder.utilities.world_generation import generate_building_pair, generate_buildings, generate_river

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SimulationSnapshot:
    """Read-only copy of the session after a step, for drawing and HUDs."""
    now: int
    score: int
    roads: tuple[Road, ...]
    intersections: tuple[Intersection, ...]
    vehicles: tuple[Vehicle, ...]
    buildings: tuple[Building, ...]
    river: tuple[RiverSegment, ...]


class RoadGameModel(Model):
    def __init__(self,
                 width=Defaults.WIDTH,
                 height=Defaults.HEIGHT,
                 river_enabled=Defaults.RIVER_ENABLED,
                 initial_building_pairs=Defaults.INITIAL_BUILDING_PAIRS,
                 vehicle_speed=Defaults.VEHICLE_SPEED,
                 tick_interval_ms=Defaults.TICK_INTERVAL_MS,
                 office_wait_time_ms=Defaults.OFFICE_WAIT_TIME_MS,
                 spawn_interval_ms=Defaults.VEHICLE_SPAWN_INTERVAL_MS,
                 max_vehicles=Defaults.MAX_VEHICLES,
                 score_per_trip=Defaults.SCORE_PER_TRIP,
                 collect_statistics=Defaults.COLLECT_STATISTICS,
                 seed=None):

        if vehicle_speed <= 0:
            raise ValueError(f"vehicle_speed must be positive, got {vehicle_speed}")
        if tick_interval_ms <= 0:
            raise ValueError(f"tick_interval_ms must be positive, got {tick_interval_ms}")
        if spawn_interval_ms <= 0:
            raise ValueError(f"spawn_interval_ms must be positive, got {spawn_interval_ms}")
        if max_vehicles < 0:
            raise ValueError(f"max_vehicles must not be negative, got {max_vehicles}")

        super().__init__(seed=seed)
        self.width = width
        self.height = height
        self.river_enabled = river_enabled
        self.initial_building_pairs = initial_building_pairs
        self.vehicle_speed = vehicle_speed
        self.tick_interval_ms = tick_interval_ms
        self.office_wait_time_ms = office_wait_time_ms
        self.spawn_interval_ms = spawn_interval_ms
        self.max_vehicles = max_vehicles
        self.score_per_trip = score_per_trip
        self.collect_statistics = collect_statistics

        self.step_count = 0
        self.score = 0
        self.roads: list[Road] = []
        self.network = RoadNetwork()
        self.vehicles: list[Vehicle] = []
        self.buildings: list[Building] = []
        self.river: list[RiverSegment] = []
        self._road_seq = 0
        self._vehicle_seq = 0

        self.spawner = VehicleSpawner(self, spawn_interval_ms, max_vehicles)

        self.datacollector = DataCollector(model_reporters={
            "Score": lambda m: m.score,
            "Active Vehicles": lambda m: len(m.vehicles),
            "Waiting Vehicles": lambda m: sum(1 for v in m.vehicles if v.is_en_route and v.wait_time > 0),
            "Vehicles At Office": lambda m: sum(1 for v in m.vehicles if v.status is VehicleStatus.AT_OFFICE),
            "Congested Intersections": lambda m: sum(1 for i in m.intersections if i.congestion_level != "free"),
        })

        self.reset(with_river=river_enabled)

    # ════════════════════════════════════════════════════════════
    #  Clock & lookups
    # ════════════════════════════════════════════════════════════
    @property
    def now(self) -> int:
        """Simulated time in milliseconds."""
        return self.step_count * self.tick_interval_ms

    @property
    def intersections(self) -> list[Intersection]:
        return list(self.network.intersections)

    def get_building(self, building_id: str) -> Building:
        for building in self.buildings:
            if building.id == building_id:
                return building
        raise KeyError(building_id)

    def get_road(self, road_id: str) -> Road:
        for road in self.roads:
            if road.id == road_id:
                return road
        raise KeyError(road_id)

    def get_vehicle(self, vehicle_id: str) -> Vehicle:
        for vehicle in self.vehicles:
            if vehicle.id == vehicle_id:
                return vehicle
        raise KeyError(vehicle_id)

    # ════════════════════════════════════════════════════════════
    #  Roads
    # ════════════════════════════════════════════════════════════
    def add_road(self, start, end, control_point=None) -> PlacementResult:
        start, end = as_point(start), as_point(end)
        control_point = as_point(control_point) if control_point is not None else None

        reason = validate_road(start, end, control_point,
                               roads=self.roads, buildings=self.buildings, river=self.river)
        if reason is not None:
            logger.info("Road %s -> %s rejected: %s", start, end, reason.value)
            return PlacementResult.rejected(reason)

        self._road_seq += 1
        road = Road(id=f"road-{self._road_seq}", start=start, end=end, control_point=control_point)
        self.roads.append(road)
        self.rebuild_network()
        return PlacementResult.ok(road)

    def remove_road(self, road_id: str) -> Road:
        road = self.get_road(road_id)
        self.roads.remove(road)
        self.rebuild_network()
        return road

    def rebuild_network(self) -> list[Intersection]:
        network = RoadNetwork.build(self.roads)
        self.network = network
        self._refresh_vehicle_counts()
        return list(network.intersections)

    def snap_point(self, point) -> Point:
        return snap_point(point, self.roads, self.network.intersections, self.buildings)

    # ════════════════════════════════════════════════════════════
    #  Routing & spawning
    # ════════════════════════════════════════════════════════════
    def find_path(self, start, end) -> list[Point] | None:
        return find_path(start, end, self.roads, self.network)

    def is_home_connected(self, home_id: str) -> bool:
        return is_home_connected(self.get_building(home_id), self.buildings, self.roads, self.network)

    def try_spawn_vehicle(self) -> Vehicle | None:
        """Spawn at a random connected home right away, ignoring the timer but not the cap."""
        if len(self.vehicles) >= self.max_vehicles:
            return None
        vehicle = try_spawn_vehicle(self.buildings, self.roads, self.random, self.now,
                                    network=self.network, vehicle_id=self.next_vehicle_id(),
                                    speed=self.vehicle_speed)
        if vehicle is not None:
            self.vehicles.append(vehicle)
        return vehicle

    def spawn_vehicle_from(self, home_id: str) -> Vehicle | None:
        if len(self.vehicles) >= self.max_vehicles:
            return None
        vehicle = spawn_vehicle_from_home(self.get_building(home_id), self.buildings, self.roads, self.now,
                                          network=self.network, vehicle_id=self.next_vehicle_id(),
                                          speed=self.vehicle_speed)
        if vehicle is not None:
            self.vehicles.append(vehicle)
        return vehicle

    def next_vehicle_id(self) -> str:
        self._vehicle_seq += 1
        return f"V_{self.now:08d}_{self._vehicle_seq:04d}"

    # ════════════════════════════════════════════════════════════
    #  Step
    # ════════════════════════════════════════════════════════════
    def step(self):
        self.step_count += 1
        self.spawner.step()

        result = tick(
            self.vehicles, self.network.intersections, self.roads, self.now, self.buildings,
            network=self.network,
            office_wait_time=self.office_wait_time_ms,
            tick_seconds=self.tick_interval_ms / 1000,
            score_per_trip=self.score_per_trip,
        )
        self.vehicles = result.vehicles
        self.score += result.score_delta
        self._refresh_vehicle_counts()

        if self.collect_statistics:
            self.datacollector.collect(self)

    def _refresh_vehicle_counts(self):
        counts = intersection_vehicle_counts(self.vehicles, self.network.intersections)
        for intersection, count in zip(self.network.intersections, counts):
            intersection.vehicle_count = count

    # ════════════════════════════════════════════════════════════
    #  Session
    # ════════════════════════════════════════════════════════════
    def add_building_pair(self) -> list[Building]:
        index = len([b for b in self.buildings if b.is_home])
        pair = generate_building_pair(index, self.buildings, self.river, self.width, self.height,
                                      self.roads, self.random)
        self.buildings.extend(pair)
        logger.info("Added building pair %s / %s", pair[0].id, pair[1].id)
        return pair

    def reset(self, with_river: bool | None = None):
        """Replace the whole session with a freshly generated map."""
        if with_river is None:
            with_river = self.river_enabled

        self.step_count = 0
        self.score = 0
        self.roads = []
        self.vehicles = []
        self._road_seq = 0
        self.river = generate_river(self.width, self.height, self.random) if with_river else []
        self.buildings = generate_buildings(self.river, self.initial_building_pairs,
                                            self.width, self.height, rng=self.random)
        self.rebuild_network()
        self.spawner.next_spawn_time = self.now + self.spawn_interval_ms

        logger.info("New session: %d buildings, river %s", len(self.buildings),
                    "enabled" if self.river else "disabled")

    def snapshot(self) -> SimulationSnapshot:
        return SimulationSnapshot(
            now=self.now,
            score=self.score,
            roads=tuple(self.roads),
            intersections=tuple(replace(i) for i in self.network.intersections),
            vehicles=tuple(v.copy() for v in self.vehicles),
            buildings=tuple(self.buildings),
            river=tuple(self.river),
        )

    def set_buildings(self, buildings: Sequence[Building]):
        """Swap in a hand-made building layout and rebuild everything that depends on it."""
        self.buildings = list(buildings)
        self.vehicles = []
        self.rebuild_network()
