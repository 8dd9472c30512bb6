from collections import deque
from typing import Mapping, Sequence

from RoadBuilder.config import Defaults
from RoadBuilder.entities.road import Point, Road, as_point
from RoadBuilder.utilities.geometry import distance, sample_bezier_curve
from RoadBuilder.utilities.road_network import RoadNetwork


def bfs_shortest_path(adjacency: Mapping[Point, Sequence[Point]], start: Point, goal: Point) -> list[Point] | None:
    """Breadth-first search; nodes are marked visited when discovered.

    Among equally short routes the one found first in adjacency order wins.
    """
    if start == goal:
        return [start]

    queue = deque([[start]])
    visited = {start}

    while queue:
        path = queue.popleft()
        for nxt in adjacency.get(path[-1], ()):
            if nxt in visited:
                continue
            if nxt == goal:
                return path + [nxt]
            visited.add(nxt)
            queue.append(path + [nxt])

    return None


def find_path(start, end, roads: Sequence[Road], network: RoadNetwork | None = None) -> list[Point] | None:
    """Node path between two world points, or ``None``.

    Both points snap to their nearest graph node; if either is farther than
    ``MAX_SNAP_DISTANCE`` there is no path. A single-node path means start and
    end share a node, which callers treat as unusable.
    """
    if network is None:
        if not roads:
            return None
        network = RoadNetwork.build(roads)
    if network.is_empty:
        return None

    start_node, start_dist = network.nearest_node(as_point(start))
    end_node, end_dist = network.nearest_node(as_point(end))
    if start_dist > Defaults.MAX_SNAP_DISTANCE or end_dist > Defaults.MAX_SNAP_DISTANCE:
        return None

    return bfs_shortest_path(network.adjacency, start_node, end_node)


def interpolate_path(path: Sequence[Point], roads: Sequence[Road],
                     segment_length: float = Defaults.ROAD_SAMPLE_SPACING) -> list[Point]:
    """Expand the curved legs of a node path into Bézier samples for drawing.

    Straight legs are kept as-is. A curved leg gets at least
    ``BEZIER_SAMPLE_SEGMENTS`` pieces, more for long curves.
    """
    if len(path) < 2:
        return list(path)

    result = [path[0]]
    for p1, p2 in zip(path, path[1:]):
        road = next((r for r in roads if r.connects(p1, p2)), None)
        if road is not None and road.is_curved:
            segments = max(Defaults.BEZIER_SAMPLE_SEGMENTS, int(distance(p1, p2) // segment_length))
            result.extend(sample_bezier_curve(p1, road.control_point, p2, segments)[1:])
        else:
            result.append(p2)
    return result
