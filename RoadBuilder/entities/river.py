from __future__ import annotations

from typing import NamedTuple, Sequence

import numpy as np

from RoadBuilder.config import Defaults
from RoadBuilder.entities.road import Point


class RiverSegment(NamedTuple):
    """One sample of the river centre line and the river width there."""
    x: float
    y: float
    width: float


def _as_arrays(segments: Sequence[RiverSegment]):
    arr = np.asarray(segments, dtype=np.float64).reshape(-1, 3)
    return arr[:-1], arr[1:]


def river_clearance(points: np.ndarray, segments: Sequence[RiverSegment]) -> np.ndarray:
    """Signed clearance of each point from the river bank.

    For every point the closest spot on the centre polyline is found; the
    result is ``distance - width_there / 2`` minimised over all river pieces,
    so a negative value means the point is in the water. Zero-length pieces
    are skipped. Returns ``+inf`` everywhere when there is no river.
    """
    points = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    clearance = np.full(points.shape[0], np.inf)
    if len(segments) < 2:
        return clearance

    seg1, seg2 = _as_arrays(segments)
    for (x1, y1, w1), (x2, y2, w2) in zip(seg1, seg2):
        dx, dy = x2 - x1, y2 - y1
        length_sq = dx * dx + dy * dy
        if length_sq == 0:
            continue
        t = ((points[:, 0] - x1) * dx + (points[:, 1] - y1) * dy) / length_sq
        t = np.clip(t, 0.0, 1.0)
        closest_x = x1 + t * dx
        closest_y = y1 + t * dy
        width = w1 + (w2 - w1) * t
        dist = np.hypot(points[:, 0] - closest_x, points[:, 1] - closest_y)
        clearance = np.minimum(clearance, dist - width / 2)
    return clearance


def is_point_in_river(point: Point, segments: Sequence[RiverSegment],
                      margin: float = Defaults.RIVER_ROAD_MARGIN) -> bool:
    return bool(river_clearance(np.array([point]), segments)[0] < margin)


def any_point_in_river(points: np.ndarray, segments: Sequence[RiverSegment],
                       margin: float = Defaults.RIVER_ROAD_MARGIN) -> bool:
    if len(points) == 0:
        return False
    return bool(np.any(river_clearance(points, segments) < margin))
