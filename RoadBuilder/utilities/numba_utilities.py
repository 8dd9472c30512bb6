# numba_utilities.py – Numba-accelerated geometry helpers
import math

import numpy as np
from numba import njit

from RoadBuilder.config import Defaults

PARALLEL_EPSILON = Defaults.PARALLEL_EPSILON
T_MIN = Defaults.CROSSING_T_MIN
T_MAX = Defaults.CROSSING_T_MAX


@njit
def round_half_up(value):
    return math.floor(value + 0.5)


@njit
def segment_crossing_params(p1x, p1y, p2x, p2y, p3x, p3y, p4x, p4y):
    """
    Solve p1 + t·(p2-p1) = p3 + u·(p4-p3).
    Returns (solved, t, u); solved is False for (near-)parallel segments.
    """
    d1x = p2x - p1x
    d1y = p2y - p1y
    d2x = p4x - p3x
    d2y = p4y - p3y

    cross = d1x * d2y - d1y * d2x
    if abs(cross) < PARALLEL_EPSILON:
        return False, 0.0, 0.0

    t = ((p3x - p1x) * d2y - (p3y - p1y) * d2x) / cross
    u = ((p3x - p1x) * d1y - (p3y - p1y) * d1x) / cross
    return True, t, u


@njit
def segment_crossing_point(p1x, p1y, p2x, p2y, p3x, p3y, p4x, p4y):
    """
    Interior crossing of two segments, rounded to whole pixels.
    Returns (found, x, y). Touches within 1% of an end are not crossings.
    """
    solved, t, u = segment_crossing_params(p1x, p1y, p2x, p2y, p3x, p3y, p4x, p4y)
    if not solved:
        return False, 0.0, 0.0
    if T_MIN <= t <= T_MAX and T_MIN <= u <= T_MAX:
        x = round_half_up(p1x + t * (p2x - p1x))
        y = round_half_up(p1y + t * (p2y - p1y))
        return True, float(x), float(y)
    return False, 0.0, 0.0


@njit
def pairwise_crossings(segments: np.ndarray) -> np.ndarray:
    """
    segments: (n, 4) array of x1, y1, x2, y2.
    Returns an (m, 4) array of (i, j, x, y) for every i < j pair that crosses,
    in i-major order.
    """
    n = segments.shape[0]
    out = np.empty((n * (n - 1) // 2, 4), dtype=np.float64)
    count = 0
    for i in range(n):
        for j in range(i + 1, n):
            found, x, y = segment_crossing_point(
                segments[i, 0], segments[i, 1], segments[i, 2], segments[i, 3],
                segments[j, 0], segments[j, 1], segments[j, 2], segments[j, 3],
            )
            if found:
                out[count, 0] = i
                out[count, 1] = j
                out[count, 2] = x
                out[count, 3] = y
                count += 1
    return out[:count]


@njit
def project_onto_segment(px, py, ax, ay, bx, by):
    """
    Parametric position of p projected onto the line a→b and p's distance
    to that projection. Returns (valid, t, dist); valid is False when a == b.
    """
    dx = bx - ax
    dy = by - ay
    length_sq = dx * dx + dy * dy
    if length_sq == 0.0:
        return False, 0.0, 0.0
    t = ((px - ax) * dx + (py - ay) * dy) / length_sq
    proj_x = ax + t * dx
    proj_y = ay + t * dy
    dist = math.sqrt((px - proj_x) ** 2 + (py - proj_y) ** 2)
    return True, t, dist
