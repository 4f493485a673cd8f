"""Flask API surface exposing the routing service to the mobile client."""

from __future__ import annotations

from pathlib import Path

from flask import Flask, Response, current_app, jsonify, request
from werkzeug.exceptions import BadRequest

from navgraph.errors import InputGeometryError, NoPathFound, NotFound
from navgraph.geo import Coordinate
from navgraph.server.service import RoutingService
from navgraph.settings import DEFAULT_GEOMETRY_DIR, RoutingConfig

SERVICE_KEY = "navgraph.service"
GEOMETRY_DIR_KEY = "NAVGRAPH_GEOMETRY_DIR"
API_PREFIX = "/api/v1"


def create_app(
    service: RoutingService | None = None,
    geometry_dir: str | Path = DEFAULT_GEOMETRY_DIR,
    config: RoutingConfig | None = None,
) -> Flask:
    """Return a Flask app bound to `service`, building one from disk if omitted."""
    app = Flask(__name__)
    app.config[GEOMETRY_DIR_KEY] = str(geometry_dir)
    if service is None:
        service = RoutingService.from_directory(geometry_dir, config=config)
    app.extensions[SERVICE_KEY] = service

    app.after_request(_inject_cors)
    app.add_url_rule("/healthz", view_func=healthz, methods=["GET"])
    app.add_url_rule(
        f"{API_PREFIX}/route",
        view_func=route_planner,
        methods=["POST", "OPTIONS"],
    )
    app.add_url_rule(f"{API_PREFIX}/snap", view_func=snap_point, methods=["POST"])
    app.add_url_rule(
        f"{API_PREFIX}/pois/<poi_id>",
        view_func=resolve_poi,
        methods=["GET"],
    )
    app.add_url_rule(f"{API_PREFIX}/reload", view_func=reload_graph, methods=["POST"])
    return app


def _service() -> RoutingService:
    return current_app.extensions[SERVICE_KEY]


def _inject_cors(response: Response) -> Response:
    """Allow simple cross-origin requests from the browser frontend."""
    response.headers.setdefault("Access-Control-Allow-Origin", "*")
    response.headers.setdefault("Access-Control-Allow-Headers", "Content-Type")
    response.headers.setdefault("Access-Control-Allow-Methods", "GET, POST, OPTIONS")
    return response


# region Views


def healthz() -> Response:
    graph = _service().graph
    return jsonify(
        {
            "status": "ok" if not graph.is_empty else "empty",
            "nodes": graph.node_count,
            "edges": graph.edge_count,
            "pois": len(graph.pois),
        },
    )


def route_planner() -> Response | tuple[Response, int]:
    """Route from the caller's live position to a destination POI."""
    if request.method == "OPTIONS":
        return Response("", status=204)

    payload = _json_object()
    start = _parse_coordinate(payload.get("startCoords"), "startCoords")
    destination = payload.get("destinationId", payload.get("destinationPOI_ID"))
    if isinstance(destination, bool) or not isinstance(destination, (str, int)) or destination == "":
        msg = "destinationId must be a non-empty string."
        raise BadRequest(msg)
    floor = _parse_floor(payload.get("floor", payload.get("floorID")))

    service = _service()
    if not service.is_ready:
        return _unavailable()

    result = service.navigate(start, destination, floor)
    if isinstance(result, (NotFound, NoPathFound)):
        return jsonify(result.to_dict()), 404
    return jsonify(result.to_dict())


def snap_point() -> Response | tuple[Response, int]:
    payload = _json_object()
    coords = _parse_coordinate(payload.get("coords"), "coords")
    floor = _parse_floor(payload.get("floor"))

    service = _service()
    if not service.is_ready:
        return _unavailable()

    result = service.snap(coords, floor)
    if isinstance(result, NotFound):
        return jsonify(result.to_dict()), 404
    return jsonify(result.to_dict())


def resolve_poi(poi_id: str) -> Response | tuple[Response, int]:
    floor = _parse_floor(request.args.get("floor"))
    result = _service().resolve_poi(poi_id, floor)
    if isinstance(result, NotFound):
        return jsonify(result.to_dict()), 404
    return jsonify(result.to_dict())


def reload_graph() -> Response | tuple[Response, int]:
    """Rebuild the graph from the configured geometry directory."""
    directory = current_app.config[GEOMETRY_DIR_KEY]
    try:
        graph = _service().reload_from_directory(directory)
    except InputGeometryError as exc:
        return jsonify({"error": str(exc)}), 422
    return jsonify(
        {"status": "reloaded", "nodes": graph.node_count, "pois": len(graph.pois)},
    )


# endregion Views


# region Request parsing


def _json_object() -> dict[str, object]:
    raw_payload = request.get_json(silent=True)
    if not isinstance(raw_payload, dict):
        msg = "Request body must be a JSON object."
        raise BadRequest(msg)
    return raw_payload


def _parse_coordinate(payload: object, label: str) -> Coordinate:
    """Validate that payload looks like {'lat': float, 'lng': float}."""
    if not isinstance(payload, dict):
        msg = f"{label} must be an object with 'lat' and 'lng'."
        raise BadRequest(msg)

    lat = payload.get("lat")
    lng = payload.get("lng", payload.get("lon"))
    if (
        isinstance(lat, bool)
        or isinstance(lng, bool)
        or not isinstance(lat, (int, float))
        or not isinstance(lng, (int, float))
    ):
        msg = f"{label} must include numeric 'lat' and 'lng' fields."
        raise BadRequest(msg)

    return (float(lng), float(lat))


def _parse_floor(value: object) -> str | None:
    if value is None or value == "":
        return None
    if isinstance(value, bool) or not isinstance(value, (str, int)):
        msg = "floor must be a string."
        raise BadRequest(msg)
    return str(value)


def _unavailable() -> tuple[Response, int]:
    msg = "Navigation service is unavailable. Map data failed to load."
    return jsonify({"error": msg}), 503


# endregion Request parsing


if __name__ == "__main__":  # pragma: no cover
    create_app().run()
