import random

import pytest

from RoadBuilder.agents.vehicle_spawner import (
    connected_homes,
    is_home_connected,
    spawn_vehicle_from_home,
    try_spawn_vehicle,
)
from RoadBuilder.city_model import RoadGameModel
from RoadBuilder.entities.building import Building, find_office_for_home
from RoadBuilder.entities.intersection import Intersection
from RoadBuilder.entities.road import Point, Road
from RoadBuilder.entities.vehicle import VehicleStatus
from RoadBuilder.traffic_scheduler import tick


@pytest.fixture
def two_pairs(commute_buildings):
    return commute_buildings + [
        Building("color1-home", (600, 600), "#3b82f6"),
        Building("color1-office", (900, 600), "#3b82f6"),
    ]


def test_spawned_vehicle_starts_at_first_node(commute_buildings, commute_road):
    vehicle = try_spawn_vehicle(commute_buildings, commute_road, random.Random(0), now=32)

    assert vehicle is not None
    assert vehicle.position == Point(0, 0)
    assert vehicle.path == [Point(0, 0), Point(200, 0)]
    assert vehicle.target_index == 1
    assert vehicle.status is VehicleStatus.GOING_TO_OFFICE
    assert vehicle.from_building == "color0-home"
    assert vehicle.to_building == "color0-office"
    assert vehicle.color == "#ef4444"
    assert vehicle.intersection_arrival_times == {}


def test_nothing_to_spawn_without_roads(commute_buildings):
    assert try_spawn_vehicle(commute_buildings, [], random.Random(0)) is None


def test_only_connected_homes_spawn(two_pairs, commute_road):
    assert [h.id for h in connected_homes(two_pairs, commute_road)] == ["color0-home"]
    for seed in range(10):
        vehicle = try_spawn_vehicle(two_pairs, commute_road, random.Random(seed))
        assert vehicle.from_building == "color0-home"


def test_home_without_office_is_not_connected(commute_road):
    lonely = Building("color3-home", (0, 0), "#eab308")
    assert not is_home_connected(lonely, [lonely], commute_road)


def test_home_on_the_office_node_is_not_connected(commute_road):
    home = Building("color0-home", (0, 0), "#ef4444")
    office = Building("color0-office", (10, 0), "#ef4444")
    assert not is_home_connected(home, [home, office], commute_road)


def test_offices_pair_by_colour_group():
    home = Building("color7-home-1234", (0, 0), "#f97316")
    others = [Building("color6-office", (1, 1), "#14b8a6"), Building("color7-office-987", (5, 5), "#f97316")]
    assert find_office_for_home(home, [home, *others]).id == "color7-office-987"


def test_offices_cannot_spawn(commute_buildings, commute_road):
    office = commute_buildings[1]
    assert spawn_vehicle_from_home(office, commute_buildings, commute_road) is None


def _commute_model(**kwargs):
    model = RoadGameModel(river_enabled=False, initial_building_pairs=0, seed=1, **kwargs)
    model.set_buildings([
        Building("color0-home", (100, 100), "#ef4444"),
        Building("color0-office", (400, 100), "#ef4444"),
    ])
    assert model.add_road((100, 100), (400, 100)).accepted
    return model


def test_spawner_waits_for_the_interval():
    model = _commute_model()
    for _ in range(124):
        model.step()
    assert model.vehicles == []

    model.step()
    assert len(model.vehicles) == 1
    assert model.vehicles[0].from_building == "color0-home"


def test_spawner_respects_the_cap():
    model = _commute_model(max_vehicles=1)
    for _ in range(260):
        model.step()
    assert len(model.vehicles) == 1


def test_spawner_idles_without_roads():
    model = RoadGameModel(river_enabled=False, initial_building_pairs=0, seed=1)
    model.set_buildings([
        Building("color0-home", (100, 100), "#ef4444"),
        Building("color0-office", (400, 100), "#ef4444"),
    ])
    for _ in range(300):
        model.step()
    assert model.vehicles == []


def test_building_ids_must_name_a_role():
    with pytest.raises(ValueError):
        Building("color0-garage", (0, 0), "#ef4444")


def test_spawns_without_explicit_ids_are_distinct(commute_buildings, commute_road):
    first = try_spawn_vehicle(commute_buildings, commute_road)
    second = try_spawn_vehicle(commute_buildings, commute_road)
    assert first.id != second.id


def test_later_spawn_queues_behind_the_earlier_one(commute_buildings, commute_road):
    centre = Intersection(Point(0, 0))
    first = spawn_vehicle_from_home(commute_buildings[0], commute_buildings, commute_road).copy(
        position=Point(-20, 0), path=[Point(-100, 0), Point(0, 0), Point(100, 0)], target_index=1,
        intersection_arrival_times={centre.key: 100})
    second = spawn_vehicle_from_home(commute_buildings[0], commute_buildings, commute_road).copy(
        position=Point(0, -20), path=[Point(0, -100), Point(0, 0), Point(0, 100)], target_index=1,
        intersection_arrival_times={centre.key: 200})

    result, _ = tick([first, second], [centre], [], now=300)

    assert result[0].position != first.position
    assert result[1].position == Point(0, -20)
