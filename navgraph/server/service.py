"""Routing service that owns the active navigation graph generation."""

from __future__ import annotations

import threading
from pathlib import Path

from navgraph.errors import NoPathFound, NotFound, POIUnresolved, RouteFailure
from navgraph.geo import Coordinate
from navgraph.graph.build_graph import build_graph
from navgraph.graph.load import GeometrySource
from navgraph.graph.model import NavigationGraph, canonical_poi_key
from navgraph.logger import Logger
from navgraph.server.graph.snap import NodeRef, find_nearest_node
from navgraph.server.search.astar import RouteResult, plan_route
from navgraph.settings import DEFAULT_GEOMETRY_DIR, RoutingConfig


class RoutingService:
    """Serve snap, POI and route queries against one immutable graph.

    Every query reads the graph reference once and works on that snapshot.
    `reload` builds the replacement fully before swapping the reference, so
    in-flight queries never observe a partially built graph.
    """

    def __init__(
        self,
        graph: NavigationGraph | None = None,
        config: RoutingConfig | None = None,
    ) -> None:
        self.config = config or RoutingConfig()
        self.logger = Logger(self.config.logging_mode)
        self._graph = graph if graph is not None else NavigationGraph.empty()
        self._reload_lock = threading.Lock()

    @classmethod
    def empty(cls, config: RoutingConfig | None = None) -> RoutingService:
        """Return a service with no graph loaded; queries fail until `reload`."""
        return cls(config=config)

    @classmethod
    def from_source(
        cls,
        source: GeometrySource,
        config: RoutingConfig | None = None,
    ) -> RoutingService:
        """Build a graph from in-memory feature collections."""
        service = cls(config=config)
        service.reload(source)
        return service

    @classmethod
    def from_directory(
        cls,
        directory: str | Path = DEFAULT_GEOMETRY_DIR,
        config: RoutingConfig | None = None,
    ) -> RoutingService:
        """Build a graph from the GeoJSON files in `directory`."""
        service = cls(config=config)
        service.reload_from_directory(directory)
        return service

    @property
    def graph(self) -> NavigationGraph:
        """The currently active graph generation."""
        return self._graph

    @property
    def is_ready(self) -> bool:  # noqa: D102
        return not self._graph.is_empty

    # region Lifecycle

    def reload(self, source: GeometrySource) -> NavigationGraph:
        """Build a new graph from `source` and make it the active generation.

        Raises `InputGeometryError` on malformed geometry; the previously
        active graph is left in place.
        """
        with self._reload_lock:
            with self.logger.phase("graph.setup"):
                graph = build_graph(source, precision=self.config.precision)
            self.logger.graph_stats(graph)
            self._graph = graph
        return graph

    def reload_from_directory(self, directory: str | Path) -> NavigationGraph:
        """Read geometry files from `directory` and reload from them."""
        with self.logger.phase("geometry.load", directory=str(directory)):
            source = GeometrySource.from_directory(directory)
        return self.reload(source)

    # endregion Lifecycle

    # region Queries

    def snap(self, coords: Coordinate, floor: str | None = None) -> NodeRef | NotFound:
        """Resolve a `(lon, lat)` coordinate to its nearest node."""
        return find_nearest_node(
            self._graph,
            coords,
            floor=floor,
            max_distance_m=self.config.max_snap_distance_m,
        )

    def resolve_poi(self, poi_id: str | int, floor: str | None = None) -> NodeRef | NotFound:
        """Return the node bound to a POI key, ignoring case.

        A requested floor only rejects the POI when the POI's own floor is
        known and differs.
        """
        return self._resolve_on(self._graph, poi_id, floor)

    def route(self, start_node: int, end_node: int) -> RouteResult | NoPathFound:
        """Return the shortest path between two node IDs."""
        return plan_route(
            self._graph,
            start_node,
            end_node,
            closest=self.config.closest_fallback,
            max_expansions=self.config.max_expansions,
        )

    def navigate(
        self,
        start_coords: Coordinate,
        destination_id: str | int,
        floor: str | None = None,
    ) -> RouteResult | RouteFailure:
        """Route from a live `(lon, lat)` position to a named destination.

        `floor` narrows the snap of the start position only; the destination
        may sit on any floor the graph connects to.
        """
        graph = self._graph
        logger = self.logger

        with logger.phase("snap.coords", floor=floor):
            start = find_nearest_node(
                graph,
                start_coords,
                floor=floor,
                max_distance_m=self.config.max_snap_distance_m,
            )
        if isinstance(start, NotFound):
            logger.info("snap.failed", reason=start.reason)
            return start
        logger.debug("snap.result", node=start.node_id, distance_m=f"{start.distance_m:.3f}")

        with logger.phase("poi.resolve", destination=destination_id):
            target = self._resolve_on(graph, destination_id, None)
        if isinstance(target, NotFound):
            logger.info("poi.unresolved", reason=target.reason)
            return target

        with logger.phase("search.run", origin=start.node_id, target=target.node_id):
            result = plan_route(
                graph,
                start.node_id,
                target.node_id,
                closest=self.config.closest_fallback,
                max_expansions=self.config.max_expansions,
            )
        if isinstance(result, NoPathFound):
            logger.info("search.failed", reason=result.reason)
            return result

        logger.info(
            "route.ready",
            coordinates=len(result.coordinates),
            distance_m=f"{result.distance_m:.1f}",
            reached_goal=result.reached_goal,
        )
        return result

    # endregion Queries

    def _resolve_on(
        self,
        graph: NavigationGraph,
        poi_id: str | int,
        floor: str | None,
    ) -> NodeRef | NotFound:
        """Resolve a POI against a specific graph generation."""
        key = canonical_poi_key(poi_id)
        poi = graph.pois.get(key)
        if poi is None:
            return POIUnresolved(f"Destination POI {poi_id!r} not found.", poi_id=key)
        if floor is not None and poi.floor is not None and poi.floor != floor:
            msg = f"Destination POI {poi_id!r} is on floor {poi.floor!r}, not {floor!r}."
            return POIUnresolved(msg, poi_id=key)
        node = graph.node(poi.node_id)
        return NodeRef(node_id=node.id, coordinate=node.coordinate, floor=node.floor)
