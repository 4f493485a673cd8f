from __future__ import annotations

import pytest

from navgraph.graph.build_graph import build_graph
from navgraph.graph.load import GeometrySource


# ---- GeoJSON builders ----
def line_collection(*lines, floor=None):
    features = []
    for idx, coords in enumerate(lines):
        properties = {"id": idx}
        if floor is not None:
            properties["floor"] = floor
        features.append(
            {
                "type": "Feature",
                "properties": properties,
                "geometry": {"type": "LineString", "coordinates": [list(c) for c in coords]},
            }
        )
    return {"type": "FeatureCollection", "features": features}


def poi_collection(*pois):
    """`pois` are `(key, (lon, lat))` or `(key, (lon, lat), floor)` tuples."""
    features = []
    for poi in pois:
        key, coord = poi[0], poi[1]
        properties = {"id": key}
        if len(poi) > 2:
            properties["floor"] = poi[2]
        features.append(
            {
                "type": "Feature",
                "properties": properties,
                "geometry": {"type": "Point", "coordinates": list(coord)},
            }
        )
    return {"type": "FeatureCollection", "features": features}


def merge_collections(*collections):
    return {
        "type": "FeatureCollection",
        "features": [f for c in collections for f in c["features"]],
    }


# The three-point corridor with an entrance POI at its first vertex.
CORRIDOR = [(10.0, 10.0), (10.1, 10.1), (10.2, 10.2)]


@pytest.fixture
def sample_source():
    return GeometrySource(
        corridors=line_collection(CORRIDOR),
        pois=poi_collection(("R001", (10.0, 10.0))),
    )


@pytest.fixture
def sample_graph(sample_source):
    return build_graph(sample_source)


@pytest.fixture
def disconnected_graph():
    # Component A: nodes 0-1 near the origin; component B: nodes 2-3 far away.
    return build_graph(
        GeometrySource(
            corridors=line_collection(
                [(0.0, 0.0), (0.001, 0.0)],
                [(1.0, 1.0), (1.001, 1.0)],
            )
        )
    )


@pytest.fixture
def chain_graph():
    return build_graph(
        GeometrySource(
            corridors=line_collection(
                [(0.0, 0.0), (0.001, 0.0), (0.002, 0.0), (0.003, 0.0), (0.004, 0.0)]
            )
        )
    )
