"""Geospatial helpers shared across graph building and routing modules."""

from __future__ import annotations

import numpy as np
import osmnx as ox

Coordinate = tuple[float, float]  # (lon, lat)

_GREAT_CIRCLE = ox.distance.great_circle


def great_circle_meters(
    lat1: float,
    lon1: float,
    lat2: float,
    lon2: float,
) -> float:
    """Return the great-circle distance between two lat/lon points in meters."""
    return float(_GREAT_CIRCLE(lat1, lon1, lat2, lon2))


def coordinate_distance(a: Coordinate, b: Coordinate) -> float:
    """Return the great-circle distance between two `(lon, lat)` coordinates."""
    return great_circle_meters(a[1], a[0], b[1], b[0])


def distances_to(
    lats: np.ndarray,
    lons: np.ndarray,
    target: Coordinate,
) -> np.ndarray:
    """Return distances in meters from every `(lats[i], lons[i])` to `target`."""
    if lats.size == 0:
        return np.empty(0, dtype=float)
    lon, lat = target
    return np.asarray(_GREAT_CIRCLE(lats, lons, lat, lon), dtype=float)
