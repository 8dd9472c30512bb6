import pytest

from RoadBuilder.entities.building import Building
from RoadBuilder.entities.road import Road
from RoadBuilder.entities.vehicle import Vehicle, VehicleStatus


@pytest.fixture
def triangle_roads():
    return [
        Road("r1", (0, 0), (100, 0)),
        Road("r2", (100, 0), (100, 100)),
        Road("r3", (100, 100), (0, 0)),
    ]


@pytest.fixture
def crossing_roads():
    return [
        Road("h", (0, 50), (200, 50)),
        Road("v", (100, 0), (100, 100)),
    ]


@pytest.fixture
def commute_buildings():
    return [
        Building("color0-home", (0, 0), "#ef4444"),
        Building("color0-office", (200, 0), "#ef4444"),
    ]


@pytest.fixture
def commute_road():
    return [Road("r1", (0, 0), (200, 0))]


@pytest.fixture
def make_vehicle():
    def _make(vid="v1", position=(0, 0), path=((0, 0), (100, 0)), status=VehicleStatus.GOING_TO_OFFICE,
              **kwargs):
        return Vehicle(
            id=vid,
            position=position,
            path=list(path),
            from_building=kwargs.pop("from_building", "color0-home"),
            to_building=kwargs.pop("to_building", "color0-office"),
            color=kwargs.pop("color", "#ef4444"),
            status=status,
            **kwargs,
        )

    return _make
