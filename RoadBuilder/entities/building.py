from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from RoadBuilder.config import Defaults
from RoadBuilder.entities.road import Point, as_point


class BuildingRole(str, Enum):
    HOME = "home"
    OFFICE = "office"


@dataclass(frozen=True)
class Building:
    """A home or an office.

    The id encodes both the colour group and the role, e.g. ``color2-home`` or
    ``color7-office-1042``. A home pairs with the office of the same colour group.
    """
    id: str
    position: Point
    color: str
    name: str = ""

    def __post_init__(self):
        object.__setattr__(self, "position", as_point(self.position))
        if self.role is None:
            raise ValueError(f"Building id {self.id!r} names neither a home nor an office")

    # ------------------------------------------------------------
    #  Identity helpers
    # ------------------------------------------------------------
    @property
    def color_key(self) -> str:
        return self.id.split("-")[0]

    @property
    def role(self) -> BuildingRole | None:
        parts = self.id.split("-")
        if BuildingRole.HOME.value in parts[1:]:
            return BuildingRole.HOME
        if BuildingRole.OFFICE.value in parts[1:]:
            return BuildingRole.OFFICE
        return None

    @property
    def is_home(self) -> bool:
        return self.role is BuildingRole.HOME

    @property
    def is_office(self) -> bool:
        return self.role is BuildingRole.OFFICE

    # ------------------------------------------------------------
    #  Footprint
    # ------------------------------------------------------------
    @property
    def footprint(self) -> tuple[float, float]:
        return Defaults.BUILDING_FOOTPRINTS[self.role.value]

    def bounds(self, margin: float = 0.0) -> tuple[float, float, float, float]:
        """``(left, top, right, bottom)`` of the footprint grown by *margin*."""
        width, height = self.footprint
        x, y = self.position
        return (x - width / 2 - margin, y - height / 2 - margin,
                x + width / 2 + margin, y + height / 2 + margin)

    def contains(self, point: Point, margin: float = 0.0) -> bool:
        """Strict containment, so a point exactly on the grown edge is outside."""
        left, top, right, bottom = self.bounds(margin)
        return left < point[0] < right and top < point[1] < bottom


def building_id(index: int, role: BuildingRole, suffix: int | None = None) -> str:
    base = f"color{index}-{role.value}"
    return base if suffix is None else f"{base}-{suffix}"


def find_office_for_home(home: Building, buildings: Iterable[Building]) -> Building | None:
    """First office sharing *home*'s colour group, or ``None``."""
    if not home.is_home:
        return None
    for building in buildings:
        if building.is_office and building.color_key == home.color_key:
            return building
    return None
