import json
from concurrent.futures import ThreadPoolExecutor

import pytest

from conftest import CORRIDOR, line_collection, merge_collections, poi_collection
from navgraph.errors import InputGeometryError, NoPathFound, NotFound, POIUnresolved, SnapFailed
from navgraph.graph.load import GeometrySource
from navgraph.server.graph.snap import NodeRef
from navgraph.server.search.astar import RouteResult
from navgraph.server.service import RoutingService
from navgraph.settings import RoutingConfig


@pytest.fixture
def service(sample_source):
    return RoutingService.from_source(sample_source)


def test_entrance_scenario_routes_to_single_node(service):
    result = service.navigate((10.0, 10.0001), "r001", floor="1")

    assert isinstance(result, RouteResult)
    assert result.node_ids == (0,)
    assert result.coordinates == ((10.0, 10.0),)
    assert result.distance_m == pytest.approx(0.0, abs=1e-9)


def test_poi_resolution_is_case_insensitive(service):
    upper = service.resolve_poi("R001")
    lower = service.resolve_poi("r001")

    assert isinstance(upper, NodeRef)
    assert upper == lower
    assert upper.node_id == 0


def test_unknown_poi_is_unresolved(service):
    result = service.resolve_poi("Z999")
    assert isinstance(result, POIUnresolved)
    assert isinstance(result, NotFound)
    assert result.poi_id == "z999"

    navigated = service.navigate((10.0, 10.0), "Z999")
    assert isinstance(navigated, POIUnresolved)


def test_poi_on_other_floor_is_unresolved():
    service = RoutingService.from_source(
        GeometrySource(
            corridors=line_collection([(0, 0), (0.001, 0)], floor="1"),
            pois=poi_collection(("Lab", (0.001, 0), "1")),
        )
    )

    assert isinstance(service.resolve_poi("lab", floor="1"), NodeRef)
    assert isinstance(service.resolve_poi("lab"), NodeRef)
    assert isinstance(service.resolve_poi("lab", floor="2"), POIUnresolved)


def test_navigate_reaches_poi_on_another_floor():
    service = RoutingService.from_source(
        GeometrySource(
            corridors=merge_collections(
                line_collection([(0.0, 0.0), (0.001, 0.0)], floor="1"),
                line_collection([(0.001, 0.0), (0.002, 0.0)], floor="2"),
            ),
            pois=poi_collection(("Lab", (0.002, 0.0), "2")),
        )
    )

    result = service.navigate((0.0, 0.0), "lab", floor="1")

    assert isinstance(result, RouteResult)
    assert result.node_ids == (0, 1, 2)
    assert result.reached_goal
    assert isinstance(service.resolve_poi("lab", floor="1"), POIUnresolved)


def test_empty_service_never_raises():
    service = RoutingService.empty()

    assert not service.is_ready
    assert isinstance(service.snap((0.0, 0.0)), NotFound)
    assert isinstance(service.resolve_poi("r001"), NotFound)
    assert isinstance(service.route(0, 1), NoPathFound)
    assert isinstance(service.navigate((0.0, 0.0), "r001"), SnapFailed)


def test_snap_policy_comes_from_config(sample_source):
    strict = RoutingService.from_source(sample_source, RoutingConfig(max_snap_distance_m=1.0))

    assert isinstance(strict.snap((10.0, 10.0)), NodeRef)
    assert isinstance(strict.snap((10.0, 10.01)), SnapFailed)
    assert isinstance(strict.navigate((10.0, 10.01), "r001"), SnapFailed)


def test_fallback_policy_comes_from_config(disconnected_graph):
    assert isinstance(RoutingService(disconnected_graph).route(0, 3), NoPathFound)

    lenient = RoutingService(disconnected_graph, RoutingConfig(closest_fallback=True))
    result = lenient.route(0, 3)
    assert isinstance(result, RouteResult)
    assert not result.reached_goal


def test_reload_swaps_to_a_new_graph(service):
    before = service.graph
    service.reload(
        GeometrySource(
            corridors=line_collection([(0, 0), (0.001, 0)]),
            pois=poi_collection(("B", (0.001, 0))),
        )
    )

    assert service.graph is not before
    assert service.resolve_poi("b").node_id == 1
    assert isinstance(service.resolve_poi("r001"), POIUnresolved)
    # The previous generation is untouched.
    assert before.poi("r001").node_id == 0


def test_failed_reload_keeps_previous_graph(service):
    before = service.graph
    broken = GeometrySource(
        corridors={
            "type": "FeatureCollection",
            "features": [
                {"type": "Feature", "geometry": {"type": "LineString", "coordinates": [[0, 0]]}}
            ],
        }
    )

    with pytest.raises(InputGeometryError):
        service.reload(broken)

    assert service.graph is before
    assert isinstance(service.navigate((10.0, 10.0), "R001"), RouteResult)


def test_from_directory_uses_geojson_files(tmp_path):
    (tmp_path / "corridors.geojson").write_text(json.dumps(line_collection(CORRIDOR)))
    (tmp_path / "pois.geojson").write_text(json.dumps(poi_collection(("R001", CORRIDOR[2]))))

    service = RoutingService.from_directory(tmp_path)

    assert service.resolve_poi("r001").node_id == 2


def test_concurrent_queries_during_reloads(sample_source):
    service = RoutingService.from_source(sample_source)

    def query(_):
        return service.navigate((10.0, 10.0001), "R001")

    with ThreadPoolExecutor(max_workers=8) as pool:
        futures = [pool.submit(query, i) for i in range(64)]
        for _ in range(5):
            service.reload(sample_source)
        results = [f.result() for f in futures]

    assert all(isinstance(r, RouteResult) and r.node_ids == (0,) for r in results)


def test_info_logging_reports_phases(sample_source, capsys):
    service = RoutingService.from_source(sample_source, RoutingConfig(logging_mode="info"))
    service.navigate((10.0, 10.0), "R001")

    out = capsys.readouterr().out
    assert "graph.setup.complete" in out
    assert "graph.stats" in out
    assert "snap.coords.start" in out
    assert "route.ready" in out


def test_empty_constructor_keeps_config():
    config = RoutingConfig(closest_fallback=True)
    service = RoutingService.empty(config)

    assert service.config is config
    assert service.graph.is_empty
    assert not service.is_ready
