"""Export a built navigation graph into GeoJSON for visual validation."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from navgraph.graph.model import NavigationGraph


# region API


def build_graph_geojson(graph: NavigationGraph, include_pois: bool = True) -> dict:
    """Convert the navigation graph into a GeoJSON FeatureCollection."""
    features = []

    # Nodes become Point features for quick inspection of junctions.
    for node in graph.nodes:
        features.append(
            {
                "type": "Feature",
                "geometry": {"type": "Point", "coordinates": list(node.coordinate)},
                "properties": {
                    "kind": "node",
                    "node_id": node.id,
                    "floor": node.floor,
                    "floors": sorted(node.floors),
                },
            },
        )

    # Each undirected edge is emitted once as a two-point LineString.
    for u, v, weight in graph.edges():
        features.append(
            {
                "type": "Feature",
                "geometry": {
                    "type": "LineString",
                    "coordinates": [list(graph.coordinate(u)), list(graph.coordinate(v))],
                },
                "properties": {"kind": "edge", "u": u, "v": v, "weight_m": weight},
            },
        )

    if include_pois:
        features.extend(_poi_features(graph))

    return {"type": "FeatureCollection", "features": features}


# endregion API


# region Conversion helpers


def _poi_features(graph: NavigationGraph) -> list[dict]:
    """POIs at their source coordinate, tagged with the bound node."""
    return [
        {
            "type": "Feature",
            "geometry": {"type": "Point", "coordinates": list(poi.coordinate)},
            "properties": {
                "kind": "poi",
                "id": poi.key,
                "name": poi.name,
                "floor": poi.floor,
                "node_id": poi.node_id,
            },
        }
        for poi in graph.pois.values()
    ]


# endregion Conversion helpers
