"""A* planner over the navigation graph with a great-circle heuristic."""

from __future__ import annotations

from dataclasses import dataclass
from heapq import heappop, heappush
from itertools import pairwise
from typing import TYPE_CHECKING

from navgraph.errors import NoPathFound
from navgraph.geo import Coordinate, distances_to

if TYPE_CHECKING:
    from navgraph.graph.model import NavigationGraph


@dataclass(frozen=True, slots=True)
class RouteResult:
    """An ordered node path and the sum of its traversed edge weights."""

    node_ids: tuple[int, ...]
    coordinates: tuple[Coordinate, ...]
    distance_m: float
    reached_goal: bool = True
    expanded: int = 0

    @property
    def lat_lng(self) -> list[tuple[float, float]]:
        """Path coordinates as `(lat, lng)` pairs."""
        return [(lat, lon) for lon, lat in self.coordinates]

    def to_dict(self) -> dict[str, object]:  # noqa: D102
        return {
            "coordinates": [{"lat": lat, "lng": lng} for lat, lng in self.lat_lng],
            "distanceMeters": self.distance_m,
            "reachedGoal": self.reached_goal,
        }


def plan_route(
    graph: NavigationGraph,
    start: int,
    goal: int,
    closest: bool = False,
    max_expansions: int | None = None,
) -> RouteResult | NoPathFound:
    """Return the shortest path from `start` to `goal`.

    Parameters
    ----------
    graph:
        The built navigation graph. Only read; all search state is local.
    start, goal:
        Node IDs.
    closest:
        When the goal cannot be reached, return the path to the expanded node
        nearest to the goal (`reached_goal=False`) instead of `NoPathFound`.
    max_expansions:
        Stop after settling this many nodes and treat the goal as unreachable.

    """
    if graph.is_empty:
        return NoPathFound("Navigation graph has no nodes.", start, goal)
    for label, node_id in (("start", start), ("goal", goal)):
        if node_id not in graph:
            return NoPathFound(f"Unknown {label} node {node_id!r}.", start, goal)

    # h(n): straight-line distance to the goal, never above the true remaining cost.
    heuristic: list[float] = distances_to(
        graph.lats,
        graph.lons,
        graph.coordinate(goal),
    ).tolist()

    g_score: dict[int, float] = {start: 0.0}
    predecessor: dict[int, int] = {}
    settled: set[int] = set()
    frontier: list[tuple[float, int]] = [(heuristic[start], start)]
    nearest = start
    reason = "Goal is unreachable from start."

    while frontier:
        _, node = heappop(frontier)
        if node in settled:
            continue
        if node == goal:
            return _reconstruct(graph, predecessor, start, goal, True, len(settled))

        settled.add(node)
        if heuristic[node] < heuristic[nearest]:
            nearest = node
        if max_expansions is not None and len(settled) >= max_expansions:
            reason = f"Expansion limit reached after settling {max_expansions} nodes."
            break

        base = g_score[node]
        for neighbor, weight in graph.neighbors(node):
            if neighbor in settled:
                continue
            tentative = base + weight
            if tentative < g_score.get(neighbor, float("inf")):
                g_score[neighbor] = tentative
                predecessor[neighbor] = node
                heappush(frontier, (tentative + heuristic[neighbor], neighbor))

    if closest:
        return _reconstruct(graph, predecessor, start, nearest, False, len(settled))
    return NoPathFound(reason, start, goal)


def _reconstruct(
    graph: NavigationGraph,
    predecessor: dict[int, int],
    start: int,
    end: int,
    reached_goal: bool,
    expanded: int,
) -> RouteResult:
    """Walk predecessors back from `end` and total the traversed edge weights."""
    path = [end]
    while path[-1] != start:
        assert len(path) <= graph.node_count, "predecessor chain contains a cycle"
        assert path[-1] in predecessor, f"predecessor chain breaks at node {path[-1]}"
        path.append(predecessor[path[-1]])
    path.reverse()

    distance = 0.0
    for u, v in pairwise(path):
        weight = graph.weight(u, v)
        assert weight is not None, f"predecessor chain uses missing edge {u}->{v}"
        distance += weight

    return RouteResult(
        node_ids=tuple(path),
        coordinates=tuple(graph.coordinate(node_id) for node_id in path),
        distance_m=distance,
        reached_goal=reached_goal,
        expanded=expanded,
    )
