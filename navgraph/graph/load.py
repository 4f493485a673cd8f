"""Parse GeoJSON corridor, link and POI collections into typed geometry records."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import orjson
from shapely.errors import ShapelyError
from shapely.geometry import LineString, MultiLineString, Point, shape

from navgraph.errors import InputGeometryError
from navgraph.geo import Coordinate

# region Types & Configuration

LOGGER = logging.getLogger(__name__)

FEATURE_COLLECTION_TYPE = "FeatureCollection"
CORRIDORS_FILE = "corridors.geojson"
LINKS_FILE = "links.geojson"
POIS_FILE = "pois.geojson"
MIN_LINE_POSITIONS = 2
MAX_LONGITUDE = 180.0
MAX_LATITUDE = 90.0

FeatureCollection = Mapping[str, Any]


@dataclass(frozen=True, slots=True)
class LineFeature:
    """One traversable polyline in `(lon, lat)` order."""

    coordinates: tuple[Coordinate, ...]
    source: str
    feature_id: object = None
    name: str | None = None
    floor: str | None = None


@dataclass(frozen=True, slots=True)
class PointFeature:
    """A point of interest keyed by its raw identifier."""

    key: str | int
    coordinate: Coordinate
    name: str | None = None
    floor: str | None = None


def empty_collection() -> dict[str, Any]:
    """Return a FeatureCollection without features."""
    return {"type": FEATURE_COLLECTION_TYPE, "features": []}


@dataclass(frozen=True, slots=True)
class GeometrySource:
    """The three feature collections a navigation graph is built from."""

    corridors: FeatureCollection = field(default_factory=empty_collection)
    links: FeatureCollection = field(default_factory=empty_collection)
    pois: FeatureCollection = field(default_factory=empty_collection)

    @classmethod
    def from_directory(cls, directory: str | Path) -> GeometrySource:
        """Read `corridors`, `links` and `pois` GeoJSON files from `directory`.

        A missing links file is treated as an empty collection; corridors and
        POIs are required.
        """
        root = Path(directory)
        links_path = root / LINKS_FILE
        return cls(
            corridors=load_feature_collection(root / CORRIDORS_FILE),
            links=(
                load_feature_collection(links_path)
                if links_path.exists()
                else empty_collection()
            ),
            pois=load_feature_collection(root / POIS_FILE),
        )


# endregion Types & Configuration


# region API


def load_feature_collection(path: str | Path) -> dict[str, Any]:
    """Load and validate that the JSON document is a FeatureCollection."""
    path = Path(path)
    try:
        document = orjson.loads(path.read_bytes())
    except FileNotFoundError as exc:
        msg = f"GeoJSON file not found: {path}"
        raise InputGeometryError(msg) from exc
    except orjson.JSONDecodeError as exc:
        msg = f"Unable to parse JSON in {path}: {exc}"
        raise InputGeometryError(msg) from exc

    _check_collection(document, str(path))
    LOGGER.debug("Loaded %d features from %s", len(document["features"]), path)
    return document


def parse_line_features(
    collection: FeatureCollection,
    source: str = "corridors",
) -> list[LineFeature]:
    """Return one `LineFeature` per LineString (MultiLineStrings are exploded)."""
    features = _check_collection(collection, source)
    lines: list[LineFeature] = []

    for index, feature in enumerate(features):
        label = f"{source}[{index}]"
        geometry = _feature_geometry(feature, label)
        properties = _feature_properties(feature, label)

        if isinstance(geometry, LineString):
            parts = [geometry]
        elif isinstance(geometry, MultiLineString):
            parts = list(geometry.geoms)
        else:
            msg = f"{label} must be a LineString or MultiLineString, got {geometry.geom_type}."
            raise InputGeometryError(msg)

        for part in parts:
            coords = _line_coordinates(part, label)
            lines.append(
                LineFeature(
                    coordinates=coords,
                    source=source,
                    feature_id=properties.get("id"),
                    name=_optional_str(properties.get("name")),
                    floor=_optional_str(properties.get("floor")),
                ),
            )

    return lines


def parse_point_features(
    collection: FeatureCollection,
    source: str = "pois",
) -> list[PointFeature]:
    """Return one `PointFeature` per POI, keyed by `id` (falling back to `name`)."""
    features = _check_collection(collection, source)
    points: list[PointFeature] = []

    for index, feature in enumerate(features):
        label = f"{source}[{index}]"
        geometry = _feature_geometry(feature, label)
        properties = _feature_properties(feature, label)

        if not isinstance(geometry, Point):
            msg = f"{label} must be a Point geometry, got {geometry.geom_type}."
            raise InputGeometryError(msg)

        points.append(
            PointFeature(
                key=_poi_identifier(properties, label),
                coordinate=_checked_coordinate(geometry.x, geometry.y, label),
                name=_optional_str(properties.get("name")),
                floor=_optional_str(properties.get("floor")),
            ),
        )

    return points


# endregion API


# region Validation helpers


def _check_collection(collection: object, label: str) -> list[Mapping[str, Any]]:
    if not isinstance(collection, Mapping):
        msg = f"{label} must be a GeoJSON object."
        raise InputGeometryError(msg)
    if collection.get("type") != FEATURE_COLLECTION_TYPE:
        msg = f"{label} must be a FeatureCollection."
        raise InputGeometryError(msg)
    features = collection.get("features")
    if not isinstance(features, list):
        msg = f"{label} must contain a 'features' array."
        raise InputGeometryError(msg)
    return features


def _feature_geometry(feature: object, label: str):  # noqa: ANN202
    """Parse a feature's geometry with shapely, rejecting empty shapes."""
    if not isinstance(feature, Mapping):
        msg = f"{label} must be a GeoJSON Feature object."
        raise InputGeometryError(msg)
    raw = feature.get("geometry")
    if not isinstance(raw, Mapping):
        msg = f"{label} is missing its geometry."
        raise InputGeometryError(msg)
    try:
        geometry = shape(raw)
    except (ShapelyError, ValueError, TypeError, KeyError, AttributeError) as exc:
        msg = f"{label} has malformed geometry: {exc}"
        raise InputGeometryError(msg) from exc
    if geometry.is_empty:
        msg = f"{label} has an empty geometry."
        raise InputGeometryError(msg)
    return geometry


def _feature_properties(feature: Mapping[str, Any], label: str) -> Mapping[str, Any]:
    properties = feature.get("properties")
    if properties is None:
        return {}
    if not isinstance(properties, Mapping):
        msg = f"{label} properties must be an object."
        raise InputGeometryError(msg)
    return properties


def _line_coordinates(line: LineString, label: str) -> tuple[Coordinate, ...]:
    coords = tuple(
        _checked_coordinate(vertex[0], vertex[1], label) for vertex in line.coords
    )
    if len(set(coords)) < MIN_LINE_POSITIONS:
        msg = f"{label} needs at least {MIN_LINE_POSITIONS} distinct positions."
        raise InputGeometryError(msg)
    return coords


def _checked_coordinate(lon: float, lat: float, label: str) -> Coordinate:
    lon = float(lon)
    lat = float(lat)
    if not (math.isfinite(lon) and math.isfinite(lat)):
        msg = f"{label} has non-finite coordinates {(lon, lat)}."
        raise InputGeometryError(msg)
    if abs(lon) > MAX_LONGITUDE or abs(lat) > MAX_LATITUDE:
        msg = f"{label} coordinates {(lon, lat)} are outside lon/lat bounds."
        raise InputGeometryError(msg)
    return (lon, lat)


def _poi_identifier(properties: Mapping[str, Any], label: str) -> str | int:
    for field_name in ("id", "name"):
        value = properties.get(field_name)
        if value is None or value == "":
            continue
        if isinstance(value, bool) or not isinstance(value, (str, int)):
            msg = f"{label} {field_name} must be a string or integer, got {value!r}."
            raise InputGeometryError(msg)
        return value
    msg = f"{label} has neither an 'id' nor a 'name' property."
    raise InputGeometryError(msg)


def _optional_str(value: object) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


# endregion Validation helpers
