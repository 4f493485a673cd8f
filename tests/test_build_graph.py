import logging

import pytest

from conftest import CORRIDOR, line_collection, poi_collection
from navgraph.errors import InputGeometryError
from navgraph.geo import coordinate_distance
from navgraph.graph.build_graph import bind_pois, build_adjacency, build_graph
from navgraph.graph.load import GeometrySource, PointFeature, parse_line_features
from navgraph.graph.registry import NodeRegistry


def test_sample_corridor_builds_chain(sample_graph):
    assert sample_graph.node_count == 3
    assert sample_graph.edge_count == 2
    assert [n.coordinate for n in sample_graph.nodes] == CORRIDOR
    assert sample_graph.weight(0, 1) == pytest.approx(coordinate_distance(CORRIDOR[0], CORRIDOR[1]))
    assert sample_graph.weight(0, 2) is None


def test_every_edge_is_symmetric_and_non_negative():
    graph = build_graph(
        GeometrySource(
            corridors=line_collection(
                [(0, 0), (0.001, 0), (0.001, 0.001)],
                [(0.001, 0.001), (0, 0.001), (0, 0)],
            ),
            links=line_collection([(0, 0), (0.001, 0.001)]),
        )
    )

    for u in range(graph.node_count):
        for v, weight in graph.neighbors(u):
            assert weight >= 0
            assert graph.weight(v, u) == weight


def test_shared_endpoints_across_collections_collapse():
    graph = build_graph(
        GeometrySource(
            corridors=line_collection([(0, 0), (0.001, 0)]),
            links=line_collection([(0.0010000001, 0.0), (0.002, 0)]),
        )
    )

    assert graph.node_count == 3
    assert {v for v, _ in graph.neighbors(1)} == {0, 2}


def test_repeated_pair_keeps_single_edge():
    graph = build_graph(
        GeometrySource(
            corridors=line_collection([(0, 0), (0.001, 0)], [(0.001, 0), (0, 0)]),
        )
    )

    assert graph.edge_count == 1
    assert graph.weight(0, 1) == graph.weight(1, 0)


def test_positions_collapsing_to_one_node_add_no_self_loop():
    registry = NodeRegistry()
    lines = parse_line_features(line_collection([(0, 0), (0.0000001, 0), (0.001, 0)]))

    adjacency = build_adjacency(lines, registry)

    assert len(registry) == 2
    assert 0 not in adjacency[0]
    assert list(adjacency[0]) == [1]


def test_registry_is_populated_in_traversal_order():
    registry = NodeRegistry()
    lines = parse_line_features(line_collection([(5, 5), (6, 6)], [(1, 1), (5, 5)]))

    build_adjacency(lines, registry)

    assert [n.coordinate for n in registry.nodes()] == [(5.0, 5.0), (6.0, 6.0), (1.0, 1.0)]


def test_line_floor_tags_nodes():
    graph = build_graph(GeometrySource(corridors=line_collection([(0, 0), (0.001, 0)], floor="L2")))
    assert graph.floors == {"L2"}


def test_poi_keys_are_lowercased_and_bound_to_nearest(sample_graph):
    assert set(sample_graph.pois) == {"r001"}
    assert sample_graph.poi("R001").node_id == 0
    assert sample_graph.poi("r001") is sample_graph.poi("R001")


def test_poi_tie_breaks_to_lowest_node_id():
    for line in ([(-0.001, 0.0), (0.001, 0.0)], [(0.001, 0.0), (-0.001, 0.0)]):
        graph = build_graph(
            GeometrySource(
                corridors=line_collection(line),
                pois=poi_collection(("mid", (0.0, 0.0))),
            )
        )
        assert graph.poi("mid").node_id == 0


def test_poi_binding_scans_all_nodes():
    graph = build_graph(
        GeometrySource(
            corridors=line_collection([(0, 0), (0.01, 0), (0.02, 0)]),
            pois=poi_collection(("far", (0.0199, 0.0001)), ("near", (0.0001, 0.0))),
        )
    )

    assert graph.poi("far").node_id == 2
    assert graph.poi("near").node_id == 0


def test_pois_without_nodes_are_skipped(caplog):
    registry = NodeRegistry()
    with caplog.at_level(logging.WARNING):
        pois = bind_pois([PointFeature("A", (0.0, 0.0))], registry)

    assert pois == {}
    assert "left unbound" in caplog.text


def test_duplicate_poi_keys_keep_the_later_binding(caplog):
    graph_source = GeometrySource(
        corridors=line_collection([(0, 0), (0.01, 0)]),
        pois=poi_collection(("Lab", (0, 0)), ("LAB", (0.01, 0))),
    )
    with caplog.at_level(logging.WARNING):
        graph = build_graph(graph_source)

    assert graph.poi("lab").node_id == 1
    assert "Duplicate POI key" in caplog.text


def test_malformed_geometry_aborts_build():
    source = GeometrySource(
        corridors=line_collection([(0, 0), (1, 1)]),
        links={"type": "FeatureCollection", "features": [{"type": "Feature", "geometry": None}]},
    )
    with pytest.raises(InputGeometryError):
        build_graph(source)


def test_empty_source_builds_empty_graph():
    graph = build_graph(GeometrySource())
    assert graph.is_empty
    assert graph.edge_count == 0
    assert graph.component_count() == 0


def test_to_networkx_matches_edges(sample_graph):
    nx_graph = sample_graph.to_networkx()
    assert nx_graph.number_of_nodes() == 3
    assert nx_graph[0][1]["weight"] == sample_graph.weight(0, 1)
    assert sample_graph.component_count() == 1
