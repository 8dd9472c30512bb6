# road_network.py ─ intersections and the routable graph, rebuilt from scratch per road change
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Iterable, Mapping, Sequence

import numpy as np

from RoadBuilder.config import Defaults
from RoadBuilder.entities.intersection import Intersection, IntersectionKind
from RoadBuilder.entities.road import Point, Road, as_point
from RoadBuilder.utilities.numba_utilities import pairwise_crossings, project_onto_segment

logger = logging.getLogger(__name__)


# ════════════════════════════════════════════════════════════
#  CROSSINGS
# ════════════════════════════════════════════════════════════

def find_crossings(roads: Sequence[Road]) -> list[Point]:
    """Every interior crossing between two straight roads, pair order, no de-dup.

    Curved roads never take part: only their endpoints can join the network.
    """
    straight = [r for r in roads if r.is_straight]
    if len(straight) < 2:
        return []

    segments = np.array(
        [(r.start.x, r.start.y, r.end.x, r.end.y) for r in straight],
        dtype=np.float64,
    )
    hits = pairwise_crossings(segments)
    return [Point(int(x), int(y)) for _, _, x, y in hits]


def build_intersections(roads: Sequence[Road]) -> list[Intersection]:
    """Junctions (shared endpoints) followed by crossings (interior meetings)."""
    endpoint_counts: dict[Point, int] = {}
    for road in roads:
        for p in road.endpoints():
            endpoint_counts[p] = endpoint_counts.get(p, 0) + 1

    result = [
        Intersection(point=p, kind=IntersectionKind.JUNCTION)
        for p, count in endpoint_counts.items()
        if count >= 2
    ]

    dedup = Defaults.CROSSING_DEDUP_DISTANCE
    for crossing in find_crossings(roads):
        already_found = any(
            abs(r.point.x - crossing.x) < dedup and abs(r.point.y - crossing.y) < dedup
            for r in result
        )
        if not already_found:
            result.append(Intersection(point=crossing, kind=IntersectionKind.CROSSING))

    return result


# ════════════════════════════════════════════════════════════
#  ROUTABLE GRAPH
# ════════════════════════════════════════════════════════════

def _nodes_on_road(road: Road, crossings: Iterable[Point]) -> list[Point]:
    """Endpoints plus on-road crossings, ordered by parametric position."""
    on_road: list[tuple[Point, float]] = [(road.start, 0.0), (road.end, 1.0)]

    if road.is_straight:
        for crossing in crossings:
            valid, t, dist = project_onto_segment(
                float(crossing.x), float(crossing.y),
                float(road.start.x), float(road.start.y),
                float(road.end.x), float(road.end.y),
            )
            if not valid:
                continue
            if Defaults.CROSSING_T_MIN < t < Defaults.CROSSING_T_MAX and dist < Defaults.ON_ROAD_TOLERANCE:
                on_road.append((crossing, t))

    on_road.sort(key=lambda item: item[1])
    return [p for p, _ in on_road]


@dataclass(frozen=True)
class RoadNetwork:
    """Intersections plus the undirected node graph derived from one road set.

    Never patched: a road change builds a new network which replaces the old one.
    """
    roads: tuple[Road, ...] = ()
    intersections: tuple[Intersection, ...] = ()
    nodes: tuple[Point, ...] = ()
    adjacency: Mapping[Point, tuple[Point, ...]] = field(default_factory=dict)

    @classmethod
    def build(cls, roads: Sequence[Road]) -> "RoadNetwork":
        roads = tuple(roads)
        intersections = tuple(build_intersections(roads))
        crossings = find_crossings(roads)

        nodes: dict[Point, None] = {}
        for road in roads:
            nodes.setdefault(road.start)
            nodes.setdefault(road.end)
        for crossing in crossings:
            nodes.setdefault(crossing)

        adjacency: dict[Point, list[Point]] = {}
        for road in roads:
            chain = _nodes_on_road(road, crossings)
            for a, b in zip(chain, chain[1:]):
                if a == b:
                    continue
                adjacency.setdefault(a, []).append(b)
                adjacency.setdefault(b, []).append(a)

        network = cls(
            roads=roads,
            intersections=intersections,
            nodes=tuple(nodes),
            adjacency={k: tuple(v) for k, v in adjacency.items()},
        )
        logger.debug(
            "Network rebuilt: %d roads, %d intersections, %d nodes, %d edges",
            len(roads), len(intersections), len(network.nodes), network.edge_count,
        )
        return network

    # ------------------------------------------------------------
    #  Queries
    # ------------------------------------------------------------
    @property
    def is_empty(self) -> bool:
        return not self.nodes

    @property
    def edge_count(self) -> int:
        return sum(len(v) for v in self.adjacency.values()) // 2

    def neighbors(self, node: Point) -> tuple[Point, ...]:
        return self.adjacency.get(node, ())

    def nearest_node(self, point: Point) -> tuple[Point | None, float]:
        """Closest node and its distance; the first of equally close nodes wins."""
        point = as_point(point)
        best: Point | None = None
        best_dist = math.inf
        for node in self.nodes:
            d = math.hypot(node.x - point.x, node.y - point.y)
            if d < best_dist:
                best_dist = d
                best = node
        return best, best_dist

    def shortest_path(self, start_node: Point, end_node: Point) -> list[Point] | None:
        """Fewest-edge node sequence between two graph nodes (BFS)."""
        from RoadBuilder.utilities.pathfinding.bfs_python import bfs_shortest_path
        return bfs_shortest_path(self.adjacency, start_node, end_node)
