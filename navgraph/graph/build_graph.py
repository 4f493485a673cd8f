"""Navigation graph builder for corridor, link and POI geometry."""

from __future__ import annotations

import collections.abc as cabc
import logging

import numpy as np

from navgraph.geo import Coordinate, coordinate_distance, distances_to
from navgraph.graph.load import (
    GeometrySource,
    LineFeature,
    PointFeature,
    parse_line_features,
    parse_point_features,
)
from navgraph.graph.model import NavigationGraph, Poi, canonical_poi_key
from navgraph.graph.registry import NodeRegistry
from navgraph.settings import DEFAULT_PRECISION

# region Types & Configuration

Adjacency = list[dict[int, float]]

LOGGER = logging.getLogger(__name__)

# endregion Types & Configuration


# region API


def build_graph(
    source: GeometrySource,
    precision: int = DEFAULT_PRECISION,
) -> NavigationGraph:
    """Return an immutable navigation graph built from the provided geometry.

    Corridors are traversed before links, so node IDs follow corridor order
    first. Raises `InputGeometryError` on malformed input.
    """
    lines = [
        *parse_line_features(source.corridors, "corridors"),
        *parse_line_features(source.links, "links"),
    ]
    points = parse_point_features(source.pois, "pois")

    registry = NodeRegistry(precision)
    adjacency = build_adjacency(lines, registry)
    pois = bind_pois(points, registry)

    graph = NavigationGraph(
        registry.nodes(),
        [tuple(neighbors.items()) for neighbors in adjacency],
        pois,
    )
    LOGGER.info(
        "Graph built with %s nodes / %s edges / %s POIs",
        graph.node_count,
        graph.edge_count,
        len(graph.pois),
    )
    return graph


def build_adjacency(
    lines: cabc.Iterable[LineFeature],
    registry: NodeRegistry,
) -> Adjacency:
    """Weight every consecutive coordinate pair and link it in both directions.

    The registry is populated as a byproduct, in traversal order. When several
    features repeat a pair the later write wins; the weight only depends on
    the two stored node coordinates, so every write is identical.
    """
    adjacency: Adjacency = [{} for _ in range(len(registry))]

    for line in lines:
        for start_coord, end_coord in _pairwise(line.coordinates):
            u = registry.get_or_create(start_coord, line.floor)
            v = registry.get_or_create(end_coord, line.floor)
            while len(adjacency) < len(registry):
                adjacency.append({})
            if u == v:
                # Both positions collapse to one node at this precision.
                continue

            weight = coordinate_distance(
                registry.node(u).coordinate,
                registry.node(v).coordinate,
            )
            assert weight >= 0, f"negative weight between {u} and {v}"
            adjacency[u][v] = weight
            adjacency[v][u] = weight

    return adjacency


def bind_pois(
    points: cabc.Iterable[PointFeature],
    registry: NodeRegistry,
) -> dict[str, Poi]:
    """Map each POI's lower-cased key to its nearest registered node.

    Candidates are scanned in ascending node ID order and the first minimum
    wins, so equidistant nodes resolve to the lowest ID.
    """
    nodes = registry.nodes()
    lons = np.fromiter((node.lon for node in nodes), dtype=float, count=len(nodes))
    lats = np.fromiter((node.lat for node in nodes), dtype=float, count=len(nodes))

    pois: dict[str, Poi] = {}
    for point in points:
        key = canonical_poi_key(point.key)
        if not nodes:
            LOGGER.warning("No graph nodes available; POI %r left unbound.", key)
            continue

        node_id = _nearest_index(lats, lons, point.coordinate)
        if key in pois:
            LOGGER.warning(
                "Duplicate POI key %r; rebinding from node %s to node %s.",
                key,
                pois[key].node_id,
                node_id,
            )
        pois[key] = Poi(
            key=key,
            node_id=node_id,
            coordinate=point.coordinate,
            name=point.name,
            floor=point.floor,
        )

    return pois


# endregion API


# region Utility helpers


def _nearest_index(lats: np.ndarray, lons: np.ndarray, coord: Coordinate) -> int:
    """Return the index of the closest point; `argmin` keeps the first tie."""
    return int(np.argmin(distances_to(lats, lons, coord)))


def _pairwise(sequence: cabc.Sequence) -> cabc.Iterable[tuple]:
    """Yield consecutive pairs from the provided sequence."""
    for idx in range(len(sequence) - 1):
        yield sequence[idx], sequence[idx + 1]


# endregion Utility helpers
