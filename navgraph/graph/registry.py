"""Coordinate deduplication into dense, sequential node IDs."""

from __future__ import annotations

from dataclasses import dataclass

from navgraph.geo import Coordinate
from navgraph.settings import DEFAULT_PRECISION


@dataclass(frozen=True, slots=True)
class Node:
    """A graph vertex at its first-seen `(lon, lat)` coordinate.

    `floor` is the first floor tag seen for the vertex; `floors` holds every
    tag, so a vertex shared by stacked corridors belongs to each of their
    floors.
    """

    id: int
    coordinate: Coordinate
    floor: str | None = None
    floors: frozenset[str] = frozenset()

    @property
    def lon(self) -> float:  # noqa: D102
        return self.coordinate[0]

    @property
    def lat(self) -> float:  # noqa: D102
        return self.coordinate[1]


class NodeRegistry:
    """Assign node IDs 0..N-1 to coordinates in first-seen order.

    Coordinates that agree to `precision` decimal degrees share one node, so
    segment endpoints repeated across features collapse together.
    """

    __slots__ = ("_lookup", "_nodes", "precision")

    def __init__(self, precision: int = DEFAULT_PRECISION) -> None:
        self.precision = precision
        self._lookup: dict[Coordinate, int] = {}
        self._nodes: list[Node] = []

    def __len__(self) -> int:
        return len(self._nodes)

    def key_for(self, coord: Coordinate) -> Coordinate:
        """Return the deduplication key for a coordinate."""
        return _quantize(coord, self.precision)

    def get_or_create(self, coord: Coordinate, floor: str | None = None) -> int:
        """Return the node ID for a coordinate, creating one if necessary."""
        key = self.key_for(coord)
        node_id = self._lookup.get(key)
        if node_id is not None:
            existing = self._nodes[node_id]
            if floor is not None and floor not in existing.floors:
                self._nodes[node_id] = Node(
                    existing.id,
                    existing.coordinate,
                    existing.floor if existing.floor is not None else floor,
                    existing.floors | {floor},
                )
            return node_id

        node_id = len(self._nodes)
        assert key not in self._lookup, f"node key collision for {key}"
        self._lookup[key] = node_id
        floors = frozenset() if floor is None else frozenset({floor})
        self._nodes.append(Node(node_id, (float(coord[0]), float(coord[1])), floor, floors))
        return node_id

    def node(self, node_id: int) -> Node:  # noqa: D102
        return self._nodes[node_id]

    def nodes(self) -> list[Node]:
        """Return a snapshot of all nodes in ascending ID order."""
        return list(self._nodes)


def _quantize(coord: Coordinate, precision: int) -> Coordinate:
    """Snap a coordinate to a fixed number of decimal places."""
    return (round(float(coord[0]), precision), round(float(coord[1]), precision))
