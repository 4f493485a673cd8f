"""Immutable, arena-indexed navigation graph."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterator, Mapping, Sequence

import networkx as nx
import numpy as np

from navgraph.geo import Coordinate
from navgraph.graph.registry import Node

Neighbors = tuple[tuple[int, float], ...]


def canonical_poi_key(value: str | int) -> str:
    """Return the single canonical form used to store and look up POI keys."""
    return str(value).lower()


@dataclass(frozen=True, slots=True)
class Poi:
    """A named destination bound to its nearest graph node."""

    key: str
    node_id: int
    coordinate: Coordinate
    name: str | None = None
    floor: str | None = None


class NavigationGraph:
    """Node table, per-node neighbor lists and bound POIs for one build.

    Node `i` lives at `nodes[i]` and its neighbors at `adjacency[i]` as
    `(neighbor_id, weight_m)` pairs. Every structure is read-only once
    constructed, so one instance can serve concurrent queries.
    """

    __slots__ = ("_adjacency", "_floor_masks", "_lats", "_lons", "_nodes", "_pois", "_weights")

    def __init__(
        self,
        nodes: Sequence[Node],
        adjacency: Sequence[Neighbors],
        pois: Mapping[str, Poi] | None = None,
    ) -> None:
        assert len(nodes) == len(adjacency), "adjacency must have one entry per node"
        assert all(node.id == idx for idx, node in enumerate(nodes)), "node IDs must be dense"

        self._nodes: tuple[Node, ...] = tuple(nodes)
        self._adjacency: tuple[Neighbors, ...] = tuple(tuple(n) for n in adjacency)
        self._weights: tuple[Mapping[int, float], ...] = tuple(
            MappingProxyType(dict(neighbors)) for neighbors in self._adjacency
        )
        self._pois: Mapping[str, Poi] = MappingProxyType(dict(pois or {}))

        self._lons = np.fromiter((n.lon for n in self._nodes), dtype=float, count=len(self._nodes))
        self._lats = np.fromiter((n.lat for n in self._nodes), dtype=float, count=len(self._nodes))
        floor_masks: dict[str, np.ndarray] = {}
        for node in self._nodes:
            for floor in node.floors:
                if floor not in floor_masks:
                    floor_masks[floor] = np.zeros(len(self._nodes), dtype=bool)
                floor_masks[floor][node.id] = True
        self._floor_masks: Mapping[str, np.ndarray] = MappingProxyType(floor_masks)
        for array in (self._lons, self._lats, *floor_masks.values()):
            array.flags.writeable = False

        self._check_edges()

    @classmethod
    def empty(cls) -> NavigationGraph:
        """Return a graph without nodes; every query against it fails cleanly."""
        return cls([], [], {})

    # region Accessors

    @property
    def nodes(self) -> tuple[Node, ...]:  # noqa: D102
        return self._nodes

    @property
    def pois(self) -> Mapping[str, Poi]:  # noqa: D102
        return self._pois

    @property
    def lons(self) -> np.ndarray:  # noqa: D102
        return self._lons

    @property
    def lats(self) -> np.ndarray:  # noqa: D102
        return self._lats

    @property
    def node_count(self) -> int:  # noqa: D102
        return len(self._nodes)

    @property
    def edge_count(self) -> int:
        """Number of undirected edges."""
        return sum(len(neighbors) for neighbors in self._adjacency) // 2

    @property
    def is_empty(self) -> bool:  # noqa: D102
        return not self._nodes

    @property
    def floors(self) -> set[str]:
        """Distinct floor tags carried by nodes."""
        return set(self._floor_masks)

    @property
    def has_floors(self) -> bool:  # noqa: D102
        return bool(self._floor_masks)

    def __contains__(self, node_id: object) -> bool:
        return isinstance(node_id, int) and 0 <= node_id < len(self._nodes)

    def node(self, node_id: int) -> Node:  # noqa: D102
        return self._nodes[node_id]

    def floor_mask(self, floor: str) -> np.ndarray | None:
        """Boolean mask over node IDs for nodes on `floor`, or `None` if no node is."""
        return self._floor_masks.get(floor)

    def coordinate(self, node_id: int) -> Coordinate:  # noqa: D102
        return self._nodes[node_id].coordinate

    def neighbors(self, node_id: int) -> Neighbors:  # noqa: D102
        return self._adjacency[node_id]

    def weight(self, u: int, v: int) -> float | None:
        """Return the edge weight between `u` and `v`, or `None` if not adjacent."""
        return self._weights[u].get(v)

    def edges(self) -> Iterator[tuple[int, int, float]]:
        """Yield each undirected edge once as `(u, v, weight)` with `u < v`."""
        for u, neighbors in enumerate(self._adjacency):
            for v, weight in neighbors:
                if u < v:
                    yield u, v, weight

    def poi(self, key: str | int) -> Poi | None:
        """Look up a POI by any casing of its identifier."""
        return self._pois.get(canonical_poi_key(key))

    # endregion Accessors

    # region Conversion

    def to_networkx(self) -> nx.Graph:
        """Return a weighted `networkx.Graph` view for analysis and QA."""
        graph = nx.Graph()
        for node in self._nodes:
            graph.add_node(
                node.id,
                lon=node.lon,
                lat=node.lat,
                floor=node.floor,
                floors=sorted(node.floors),
            )
        graph.add_weighted_edges_from(self.edges())
        return graph

    def component_count(self) -> int:
        """Number of connected components (isolated nodes count as one each)."""
        if self.is_empty:
            return 0
        return nx.number_connected_components(self.to_networkx())

    # endregion Conversion

    def _check_edges(self) -> None:
        for u, neighbors in enumerate(self._adjacency):
            for v, weight in neighbors:
                assert 0 <= v < len(self._nodes), f"edge {u}->{v} points outside the node table"
                assert weight >= 0, f"negative weight on edge {u}->{v}"
                assert self._weights[v].get(u) == weight, f"edge {u}->{v} is not symmetric"
