import logging
import math

import pytest

from RoadBuilder.entities.building import Building
from RoadBuilder.entities.intersection import Intersection
from RoadBuilder.entities.road import Point, Road
from RoadBuilder.entities.vehicle import VehicleStatus
from RoadBuilder.traffic_scheduler import (
    intersection_queues,
    intersection_vehicle_counts,
    record_arrivals,
    should_wait,
    tick,
)

CENTRE = Intersection(Point(0, 0))
KEY = CENTRE.key


# ── arrival bookkeeping ───────────────────────────────────────────────
def test_arrival_is_stamped_once(make_vehicle):
    car = make_vehicle(position=(10, 0))
    first = record_arrivals([car], [CENTRE], now=0)[0]
    assert first.intersection_arrival_times == {KEY: 0}

    second = record_arrivals([first], [CENTRE], now=16)[0]
    assert second.intersection_arrival_times == {KEY: 0}


def test_arrival_is_cleared_on_leaving(make_vehicle):
    car = make_vehicle(position=(100, 0), intersection_arrival_times={KEY: 5})
    assert record_arrivals([car], [CENTRE], now=16)[0].intersection_arrival_times == {}


def test_parked_cars_keep_their_stamps(make_vehicle):
    car = make_vehicle(position=(100, 0), status=VehicleStatus.AT_OFFICE, intersection_arrival_times={KEY: 5})
    assert record_arrivals([car], [CENTRE], now=16)[0].intersection_arrival_times == {KEY: 5}


def test_queues_are_sorted_by_arrival(make_vehicle):
    late = make_vehicle("late", intersection_arrival_times={KEY: 200})
    early = make_vehicle("early", intersection_arrival_times={KEY: 100})
    parked = make_vehicle("parked", status=VehicleStatus.AT_OFFICE, intersection_arrival_times={KEY: 1})
    assert intersection_queues([late, parked, early]) == {KEY: [("early", 100), ("late", 200)]}
    assert intersection_vehicle_counts([late, parked, early], [CENTRE]) == [2]


# ── right of way ──────────────────────────────────────────────────────
def _approaching_pair(make_vehicle, second_status=VehicleStatus.GOING_TO_OFFICE):
    west = make_vehicle("west", position=(-20, 0), path=[(-100, 0), (0, 0), (100, 0)],
                        intersection_arrival_times={KEY: 100})
    south = make_vehicle("south", position=(0, -20), path=[(0, -100), (0, 0), (0, 100)],
                         status=second_status, intersection_arrival_times={KEY: 200})
    return west, south


@pytest.mark.parametrize("reverse", [False, True])
def test_earlier_arrival_goes_first(make_vehicle, reverse):
    west, south = _approaching_pair(make_vehicle)
    vehicles = [south, west] if reverse else [west, south]

    result, _ = tick(vehicles, [CENTRE], [], now=300)
    moved = {v.id: v for v in result}

    assert moved["west"].position != west.position
    assert moved["south"].position == south.position
    assert moved["south"].wait_time == pytest.approx(0.016)
    assert moved["south"].target_index == 1


def test_opposite_direction_never_blocks(make_vehicle):
    west, south = _approaching_pair(make_vehicle, second_status=VehicleStatus.GOING_HOME)
    assert not should_wait(south, [west, south], [CENTRE])
    assert not should_wait(west, [west, south], [CENTRE])


def test_committed_car_never_waits(make_vehicle):
    west, _ = _approaching_pair(make_vehicle)
    inside = make_vehicle("inside", position=(0, -10), path=[(0, -100), (0, 0), (0, 100)],
                          intersection_arrival_times={KEY: 200})
    assert not should_wait(inside, [west, inside], [CENTRE])


def test_same_direction_car_inside_blocks_the_approach(make_vehicle):
    inside = make_vehicle("inside", position=(5, 0), intersection_arrival_times={KEY: 300})
    approaching = make_vehicle("approaching", position=(-25, 0), intersection_arrival_times={KEY: 100})
    assert should_wait(approaching, [inside, approaching], [CENTRE])


def test_far_cars_do_not_queue(make_vehicle):
    west, south = _approaching_pair(make_vehicle)
    far = south.copy(position=Point(0, -60))
    assert not should_wait(far, [west, far], [CENTRE])


# ── movement ──────────────────────────────────────────────────────────
def test_moves_toward_lane_offset_target(make_vehicle):
    car = make_vehicle(position=(0, 0), path=[(0, 0), (100, 0)])
    (moved,), score = tick([car], [], [], now=16)

    length = math.hypot(100, 6)
    assert score == 0
    assert moved.position == pytest.approx((2 * 100 / length, 2 * 6 / length))
    assert moved.direction == pytest.approx(math.atan2(6, 100))
    assert moved.target_index == 1


def test_snaps_to_target_when_close(make_vehicle):
    car = make_vehicle(position=(99, 6), path=[(0, 0), (100, 0)], wait_time=1.0)
    (moved,), _ = tick([car], [], [], now=16)
    assert moved.position == Point(100, 6)
    assert moved.target_index == 2
    assert moved.wait_time == pytest.approx(0.984)


def test_reaching_the_office(make_vehicle):
    car = make_vehicle(position=(100, 6), path=[(0, 0), (100, 0)], target_index=2)
    (parked,), score = tick([car], [], [], now=480)
    assert parked.status is VehicleStatus.AT_OFFICE
    assert parked.office_arrival_time == 480
    assert score == 0


def test_reaching_home_scores(make_vehicle):
    car = make_vehicle(position=(0, 0), path=[(100, 0), (0, 0)], target_index=2,
                       status=VehicleStatus.GOING_HOME)
    at_home = make_vehicle("done", status=VehicleStatus.AT_HOME)
    result, score = tick([car, at_home], [], [], now=16)
    assert result == []
    assert score == 2


# ── office dwell ──────────────────────────────────────────────────────
def _office_scene(make_vehicle, office_arrival_time=0):
    buildings = [
        Building("color0-home", (0, 0), "#ef4444"),
        Building("color0-office", (200, 0), "#ef4444"),
    ]
    roads = [Road("r1", (0, 0), (200, 0))]
    car = make_vehicle(position=(200, 6), path=[(0, 0), (200, 0)], target_index=2,
                       status=VehicleStatus.AT_OFFICE, office_arrival_time=office_arrival_time,
                       intersection_arrival_times={(100, 0): 5})
    return buildings, roads, car


def test_dwell_then_head_home(make_vehicle):
    buildings, roads, car = _office_scene(make_vehicle)
    (home_bound,), score = tick([car], [], roads, now=3000, buildings=buildings)

    assert score == 0
    assert home_bound.status is VehicleStatus.GOING_HOME
    assert home_bound.intersection_arrival_times == {}
    assert home_bound.path == [Point(200, 0), Point(0, 0)]
    assert home_bound.target_index == 1
    assert home_bound.position == Point(200, 0)


def test_dwell_not_over_yet(make_vehicle):
    buildings, roads, car = _office_scene(make_vehicle)
    (still,), _ = tick([car], [], roads, now=2999, buildings=buildings)
    assert still.status is VehicleStatus.AT_OFFICE
    assert still.intersection_arrival_times == {(100, 0): 5}


def test_no_return_route_keeps_waiting(make_vehicle):
    buildings, _, car = _office_scene(make_vehicle)
    (still,), _ = tick([car], [], [], now=5000, buildings=buildings)
    assert still.status is VehicleStatus.AT_OFFICE


def test_missing_buildings_leave_the_car_parked(make_vehicle, caplog):
    _, roads, car = _office_scene(make_vehicle)
    with caplog.at_level(logging.DEBUG, logger="RoadBuilder.traffic_scheduler"):
        (still,), _ = tick([car], [], roads, now=5000)

    assert still.status is VehicleStatus.AT_OFFICE
    assert "No return trip for v1" in caplog.text


# ── atomicity ─────────────────────────────────────────────────────────
def test_tick_does_not_touch_its_inputs(make_vehicle):
    west, south = _approaching_pair(make_vehicle)
    before = [west.copy(), south.copy()]
    result, _ = tick([west, south], [CENTRE], [], now=300)

    assert [west, south] == before
    assert all(r is not v for r in result for v in (west, south))
