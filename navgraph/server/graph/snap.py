"""Helpers for snapping arbitrary coordinates onto navigation graph nodes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from navgraph.errors import SnapFailed
from navgraph.geo import Coordinate, distances_to

if TYPE_CHECKING:
    from navgraph.graph.model import NavigationGraph

# Default maximum snapping distance in meters; `None` always snaps.
SNAP_MAX_DISTANCE_M: float | None = None


@dataclass(frozen=True, slots=True)
class NodeRef:
    """A resolved graph node plus how far the query was from it."""

    node_id: int
    coordinate: Coordinate
    floor: str | None = None
    distance_m: float = 0.0

    def to_dict(self) -> dict[str, object]:  # noqa: D102
        lon, lat = self.coordinate
        return {
            "nodeId": self.node_id,
            "coords": {"lat": lat, "lng": lon},
            "floor": self.floor,
            "distanceMeters": self.distance_m,
        }


def find_nearest_node(
    graph: NavigationGraph,
    coords: Coordinate,
    floor: str | None = None,
    max_distance_m: float | None = SNAP_MAX_DISTANCE_M,
) -> NodeRef | SnapFailed:
    """Snap a `(lon, lat)` coordinate onto the closest graph node.

    Parameters
    ----------
    graph:
        The built navigation graph.
    coords:
        `(lon, lat)` coordinate to snap.
    floor:
        Restrict candidates to nodes tagged with this floor. Ignored when the
        graph carries no floor metadata at all.
    max_distance_m:
        Maximum allowed snapping distance (meters). Farther coordinates yield
        `SnapFailed`. `None` disables the guard.

    Returns
    -------
    NodeRef | SnapFailed
        The nearest node, or the reason no node qualified. Equidistant
        candidates resolve to the lowest node ID.

    """
    if graph.is_empty:
        return SnapFailed("Navigation graph has no nodes.")

    distances = distances_to(graph.lats, graph.lons, coords)
    if floor is not None and graph.has_floors:
        on_floor = graph.floor_mask(floor)
        if on_floor is None:
            return SnapFailed(f"No graph nodes on floor {floor!r}.")
        # Off-floor candidates can never win the argmin below.
        distances = np.where(on_floor, distances, np.inf)

    node_id = int(np.argmin(distances))
    distance = float(distances[node_id])

    if max_distance_m is not None and distance > max_distance_m:
        msg = (
            "Coordinate is too far from the navigation graph: "
            f"{distance:.1f}m > {max_distance_m:.1f}m for {coords}"
        )
        return SnapFailed(msg, distance_m=distance)

    node = graph.node(node_id)
    return NodeRef(
        node_id=node_id,
        coordinate=node.coordinate,
        floor=floor if floor in node.floors else node.floor,
        distance_m=distance,
    )
