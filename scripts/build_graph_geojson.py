"""CLI entrypoint for exporting a freshly built navigation graph to GeoJSON."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Sequence

import orjson

from navgraph.graph.build_graph import build_graph
from navgraph.graph.build_graph_geojson import build_graph_geojson
from navgraph.graph.load import GeometrySource
from navgraph.settings import DEFAULT_GEOMETRY_DIR, DEFAULT_PRECISION

# region Configuration

LOGGER = logging.getLogger(__name__)
DEFAULT_OUTPUT = Path("assets/navigation_graph.geojson")

# endregion Configuration


# region I/O Helpers


def _write_geojson(data: dict, output_path: Path) -> None:
    """Write the GeoJSON FeatureCollection to disk."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(orjson.dumps(data, option=orjson.OPT_INDENT_2))
    LOGGER.info(
        "Exported GeoJSON to %s (%d bytes)",
        output_path,
        output_path.stat().st_size,
    )


# endregion I/O Helpers


# region CLI


def run_cli(args: argparse.Namespace) -> None:
    """Build the graph from the geometry directory and export it for QA."""
    source = GeometrySource.from_directory(args.geometry_dir)
    graph = build_graph(source, precision=args.precision)
    geojson = build_graph_geojson(graph, include_pois=not args.no_pois)
    _write_geojson(geojson, args.output)


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Return parsed CLI arguments for exporting GeoJSON."""
    parser = argparse.ArgumentParser(
        description="Build the navigation graph and export it as GeoJSON for QA.",
    )
    parser.add_argument(
        "--geometry-dir",
        type=Path,
        default=DEFAULT_GEOMETRY_DIR,
        help="Directory holding corridors/links/pois GeoJSON files.",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=DEFAULT_OUTPUT,
        help="Destination GeoJSON for validation.",
    )
    parser.add_argument(
        "--precision",
        type=int,
        default=DEFAULT_PRECISION,
        help="Decimal places used to merge node coordinates (default: 6).",
    )
    parser.add_argument(
        "--no-pois",
        action="store_true",
        help="Leave POI points out of the export.",
    )
    parser.set_defaults(func=run_cli)
    return parser.parse_args(argv)


def _configure_logging() -> None:
    """Configure default logging for CLI usage."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )


def main(argv: Sequence[str] | None = None) -> None:
    """CLI entry point."""
    _configure_logging()
    args = parse_args(argv)
    args.func(args)


if __name__ == "__main__":
    main()

# endregion CLI
