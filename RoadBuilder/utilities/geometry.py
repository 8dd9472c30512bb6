"""Geometry kernel: pure functions over points, segments and quadratic Béziers.

Nothing in here keeps state. The segment crossing arithmetic itself lives in
``numba_utilities`` so the O(n²) pair scan of the network builder stays fast.
"""
from __future__ import annotations

import math
from typing import Sequence

import numpy as np

from RoadBuilder.config import Defaults
from RoadBuilder.entities.road import Point, Road
from RoadBuilder.utilities.numba_utilities import segment_crossing_point


def distance(a: Point, b: Point) -> float:
    return math.hypot(b[0] - a[0], b[1] - a[1])


def line_intersection(p1: Point, p2: Point, p3: Point, p4: Point) -> Point | None:
    """Crossing of segments p1-p2 and p3-p4 strictly inside both, or ``None``.

    ``None`` is returned for (near-)parallel pairs and for meetings within 1% of
    either segment's ends; those are endpoint junctions, not crossings. The
    point is rounded to whole pixels.
    """
    found, x, y = segment_crossing_point(
        float(p1[0]), float(p1[1]), float(p2[0]), float(p2[1]),
        float(p3[0]), float(p3[1]), float(p4[0]), float(p4[1]),
    )
    if not found:
        return None
    return Point(int(x), int(y))


def sample_quadratic_bezier(start: Point, control: Point, end: Point, t: float) -> Point:
    mt = 1 - t
    return Point(
        mt * mt * start[0] + 2 * mt * t * control[0] + t * t * end[0],
        mt * mt * start[1] + 2 * mt * t * control[1] + t * t * end[1],
    )


def sample_bezier_curve(start: Point, control: Point, end: Point,
                        segments: int = Defaults.BEZIER_SAMPLE_SEGMENTS) -> list[Point]:
    """``segments + 1`` evenly spaced (in t) points, both ends included."""
    return [sample_quadratic_bezier(start, control, end, i / segments) for i in range(segments + 1)]


def sample_road(road: Road, steps: int) -> np.ndarray:
    """``(steps + 1, 2)`` array of points along *road*, t = 0 … 1."""
    return sample_segment_points(road.start, road.end, road.control_point, steps)


def sample_segment_points(start: Point, end: Point, control: Point | None, steps: int) -> np.ndarray:
    """Like :func:`sample_road`, for a road that has not been built yet."""
    steps = max(1, int(steps))
    t = np.linspace(0.0, 1.0, steps + 1)[:, None]
    a = np.asarray(start, dtype=np.float64)
    b = np.asarray(end, dtype=np.float64)
    if control is None:
        return a + (b - a) * t
    c = np.asarray(control, dtype=np.float64)
    mt = 1.0 - t
    return mt * mt * a + 2.0 * mt * t * c + t * t * b


def lane_offset(from_point: Point, to_point: Point, lane: str = Defaults.DEFAULT_LANE,
                offset: float = Defaults.LANE_OFFSET) -> Point:
    """Perpendicular shift that puts a car in its lane; zero for a zero-length leg."""
    dx = to_point[0] - from_point[0]
    dy = to_point[1] - from_point[1]
    length = math.hypot(dx, dy)
    if length == 0:
        return Point(0.0, 0.0)
    perp_x = -dy / length
    perp_y = dx / length
    signed = offset if lane == "right" else -offset
    return Point(perp_x * signed, perp_y * signed)


def pairwise_distances(points_a: Sequence[Point], points_b: Sequence[Point]) -> np.ndarray:
    """``(len(a), len(b))`` Euclidean distance matrix."""
    a = np.asarray(points_a, dtype=np.float64).reshape(-1, 2)
    b = np.asarray(points_b, dtype=np.float64).reshape(-1, 2)
    return np.hypot(a[:, None, 0] - b[None, :, 0], a[:, None, 1] - b[None, :, 1])


def distance_to_polyline(point: Point, polyline: np.ndarray) -> float:
    """Shortest distance from *point* to a sampled polyline (``(n, 2)`` array)."""
    polyline = np.asarray(polyline, dtype=np.float64)
    p = np.asarray(point, dtype=np.float64)
    if len(polyline) == 1:
        return float(np.hypot(*(p - polyline[0])))
    a = polyline[:-1]
    d = polyline[1:] - a
    length_sq = np.einsum("ij,ij->i", d, d)
    with np.errstate(divide="ignore", invalid="ignore"):
        t = np.where(length_sq > 0, np.einsum("ij,ij->i", p - a, d) / length_sq, 0.0)
    t = np.clip(t, 0.0, 1.0)
    closest = a + d * t[:, None]
    return float(np.min(np.hypot(closest[:, 0] - p[0], closest[:, 1] - p[1])))


def snap_to_grid(point: Point, grid_size: int = Defaults.GRID_SIZE) -> Point:
    return Point(_round_half_up(point[0] / grid_size) * grid_size,
                 _round_half_up(point[1] / grid_size) * grid_size)


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)
