import dataclasses

import pytest

from RoadBuilder.city_model import RoadGameModel
from RoadBuilder.entities.building import Building
from RoadBuilder.entities.road import MalformedRoadError, Point
from RoadBuilder.entities.vehicle import VehicleStatus
from RoadBuilder.utilities.road_placement import RejectionReason


@pytest.fixture
def model():
    return RoadGameModel(river_enabled=False, initial_building_pairs=0, seed=42)


@pytest.fixture
def commute_model(model):
    model.set_buildings([
        Building("color0-home", (100, 100), "#ef4444"),
        Building("color0-office", (400, 100), "#ef4444"),
    ])
    return model


@pytest.mark.parametrize("kwargs", [
    {"vehicle_speed": 0},
    {"tick_interval_ms": -16},
    {"spawn_interval_ms": 0},
    {"max_vehicles": -1},
])
def test_invalid_settings(kwargs):
    with pytest.raises(ValueError):
        RoadGameModel(river_enabled=False, initial_building_pairs=0, **kwargs)


def test_add_road_rebuilds_the_network(model):
    first = model.add_road((0, 50), (200, 50))
    assert first.accepted and first.road.id == "road-1"
    assert model.intersections == []

    model.add_road((100, 0), (100, 100))
    assert [i.point for i in model.intersections] == [Point(100, 50)]
    assert model.find_path((0, 50), (100, 100)) == [Point(0, 50), Point(100, 50), Point(100, 100)]


def test_rejected_road_changes_nothing(model):
    model.add_road((0, 0), (200, 0))
    result = model.add_road((0, 5), (200, 5))
    assert not result.accepted
    assert result.reason is RejectionReason.OVERLAPS_ROAD
    assert len(model.roads) == 1


@pytest.mark.parametrize("start, end", [
    ((float("nan"), 0), (100, 0)),
    ((0, 0), (float("inf"), 0)),
])
def test_add_road_raises_on_non_finite_points(commute_model, start, end):
    with pytest.raises(MalformedRoadError):
        commute_model.add_road(start, end)
    assert commute_model.roads == []


def test_remove_road_breaks_connection(commute_model):
    model = commute_model
    model.add_road((100, 100), (250, 100))
    link = model.add_road((250, 100), (400, 100)).road
    assert model.is_home_connected("color0-home")

    model.remove_road(link.id)
    assert not model.is_home_connected("color0-home")
    assert model.find_path((100, 100), (400, 100)) is None


def test_unknown_ids_raise(model):
    with pytest.raises(KeyError):
        model.remove_road("road-99")
    with pytest.raises(KeyError):
        model.is_home_connected("color9-home")


def test_rebuild_is_idempotent(model):
    model.add_road((0, 50), (200, 50))
    model.add_road((100, 0), (100, 100))
    first = {i.point for i in model.rebuild_network()}
    second = {i.point for i in model.rebuild_network()}
    assert first == second == {Point(100, 50)}


def test_full_round_trip_scores(commute_model):
    model = commute_model
    model.add_road((100, 100), (400, 100))

    seen = set()
    for _ in range(2000):
        model.step()
        seen.update(v.status for v in model.vehicles)
        if model.score:
            break

    assert model.score == 1
    assert {VehicleStatus.GOING_TO_OFFICE, VehicleStatus.AT_OFFICE, VehicleStatus.GOING_HOME} <= seen
    assert model.datacollector.model_vars["Score"][-1] == 1
    assert len(model.datacollector.model_vars["Active Vehicles"]) == model.step_count


def test_manual_spawn(commute_model):
    model = commute_model
    assert model.try_spawn_vehicle() is None
    model.add_road((100, 100), (400, 100))

    vehicle = model.spawn_vehicle_from("color0-home")
    assert vehicle is not None and model.vehicles == [vehicle]
    assert model.try_spawn_vehicle() is not None
    assert len({v.id for v in model.vehicles}) == 2


def test_snapshot_is_detached(commute_model):
    model = commute_model
    model.add_road((100, 100), (400, 100))
    model.try_spawn_vehicle()

    snap = model.snapshot()
    with pytest.raises(dataclasses.FrozenInstanceError):
        snap.score = 10
    snap.vehicles[0].intersection_arrival_times[(0, 0)] = 1
    assert model.vehicles[0].intersection_arrival_times == {}


def test_reset_replaces_everything(commute_model):
    model = commute_model
    model.add_road((100, 100), (400, 100))
    model.try_spawn_vehicle()
    for _ in range(10):
        model.step()

    model.initial_building_pairs = 2
    model.reset(with_river=True)

    assert model.roads == [] and model.vehicles == [] and model.score == 0
    assert model.now == 0
    assert len(model.river) > 0
    assert [b.id for b in model.buildings] == ["color0-home", "color0-office", "color1-home", "color1-office"]
    assert model.intersections == []


def test_sessions_are_reproducible():
    a = RoadGameModel(seed=7)
    b = RoadGameModel(seed=7)
    assert a.river == b.river
    assert a.buildings == b.buildings


def test_add_building_pair_continues_the_numbering(commute_model):
    home, office = commute_model.add_building_pair()
    assert (home.id, office.id) == ("color1-home", "color1-office")
    assert len(commute_model.buildings) == 4


def test_snap_point_uses_session_features(commute_model):
    model = commute_model
    assert model.snap_point((110, 95)) == Point(100, 100)
    assert model.snap_point((713, 289)) == Point(720, 280)
