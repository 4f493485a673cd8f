from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Sequence, TextIO

import orjson

from navgraph.errors import InputGeometryError
from navgraph.logger import LoggingMode
from navgraph.server.search.astar import RouteResult
from navgraph.server.service import RoutingService
from navgraph.settings import DEFAULT_GEOMETRY_DIR, RoutingConfig

Coordinate = tuple[float, float]


def echo(message: str = "", *, stream: TextIO = sys.stdout) -> None:
    """Write a line to the chosen stream and flush immediately."""
    stream.write(f"{message}\n")
    stream.flush()


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments."""
    parser = argparse.ArgumentParser(
        description=(
            "Route from a live position to a named destination and print the "
            "result as a GeoJSON FeatureCollection."
        ),
    )
    parser.add_argument("--lat", type=float, required=True, help="Start latitude.")
    parser.add_argument("--lng", type=float, required=True, help="Start longitude.")
    parser.add_argument("--destination", required=True, help="Destination POI id.")
    parser.add_argument("--floor", default=None, help="Floor of the start position.")
    parser.add_argument(
        "--geometry-dir",
        type=Path,
        default=DEFAULT_GEOMETRY_DIR,
        help="Directory holding corridors/links/pois GeoJSON files.",
    )
    parser.add_argument(
        "--max-snap-m",
        type=float,
        default=None,
        help="Reject start positions farther than this from the graph.",
    )
    parser.add_argument(
        "--closest",
        action="store_true",
        help="Return the path to the nearest reachable node if the goal is unreachable.",
    )
    parser.add_argument(
        "--log",
        choices=[mode.value for mode in LoggingMode],
        default=LoggingMode.NONE.value,
        help="Pipeline logging verbosity.",
    )
    return parser.parse_args(argv)


def build_geojson(start: Coordinate, destination: str, result: RouteResult) -> dict:
    """Create a GeoJSON feature collection describing the route."""
    return {
        "type": "FeatureCollection",
        "features": [
            {
                "type": "Feature",
                "properties": {"role": "start"},
                "geometry": {"type": "Point", "coordinates": list(start)},
            },
            {
                "type": "Feature",
                "properties": {
                    "role": "path",
                    "destination": destination,
                    "distance_m": result.distance_m,
                    "reached_goal": result.reached_goal,
                },
                "geometry": {
                    "type": "LineString",
                    "coordinates": [list(coord) for coord in result.coordinates],
                },
            },
        ],
    }


def main(argv: Sequence[str] | None = None) -> None:
    """Entry point for the single-route CLI."""
    args = parse_args(argv)
    config = RoutingConfig(
        max_snap_distance_m=args.max_snap_m,
        closest_fallback=args.closest,
        logging_mode=args.log,
    )

    try:
        service = RoutingService.from_directory(args.geometry_dir, config=config)
    except InputGeometryError as exc:
        echo(f"Invalid geometry input: {exc}", stream=sys.stderr)
        sys.exit(1)

    start = (args.lng, args.lat)
    result = service.navigate(start, args.destination, args.floor)
    if not isinstance(result, RouteResult):
        echo(f"{result.phase}: {result.reason}", stream=sys.stderr)
        sys.exit(2)

    echo(orjson.dumps(build_geojson(start, args.destination, result)).decode())


if __name__ == "__main__":
    main()
