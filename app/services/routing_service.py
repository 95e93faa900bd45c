# app/services/routing_service.py

from abc import ABC, abstractmethod
from itertools import islice
from time import perf_counter
from typing import Any, List

import networkx as nx
import requests
from fastapi.concurrency import run_in_threadpool

from app.core.errors import DirectionsServiceError
from app.core.logger import logger
from app.models.geo import Coordinate, TransportType
from app.models.routing import RouteCandidate
from app.services.graph_manager import GraphManager

# Transport type -> osmnx network type. Transit has no OSM road network.
NETWORK_TYPES = {
    TransportType.ANY: "drive",
    TransportType.DRIVING: "drive",
    TransportType.WALKING: "walk",
}


class DirectionsService(ABC):
    """
    Computes candidate routes between two coordinates.
    """

    @abstractmethod
    async def route(
        self,
        origin: Coordinate,
        destination: Coordinate,
        mode: TransportType = TransportType.ANY,
        alternates_requested: bool = False,
    ) -> List[RouteCandidate]:
        """
        Return candidate routes, best first. An empty list means no route
        exists; service failures raise DirectionsServiceError.
        """


class OsmDirectionsService(DirectionsService):
    """
    Directions over the OSM street network:
    - ensures a suitable graph is available for the transport type
    - finds nearest graph nodes for origin/destination
    - computes one shortest path, or several loop-free alternatives
    - builds polylines using edge shapes where available
    """

    def __init__(
        self,
        graph_manager: GraphManager | None = None,
        max_alternate_routes: int = 3,
        driving_speed_kmh: float = 40.0,
        walking_speed_kmh: float = 5.0,
    ) -> None:
        self.graph_manager = graph_manager or GraphManager()
        self.max_alternate_routes = max(1, max_alternate_routes)
        self.speeds_kmh = {"drive": driving_speed_kmh, "walk": walking_speed_kmh}
        logger.info("OsmDirectionsService initialised (graphs built on demand).")

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    async def route(
        self,
        origin: Coordinate,
        destination: Coordinate,
        mode: TransportType = TransportType.ANY,
        alternates_requested: bool = False,
    ) -> List[RouteCandidate]:
        # graph download and path search are blocking
        return await run_in_threadpool(
            self.compute_routes, origin, destination, mode, alternates_requested
        )

    def compute_routes(
        self,
        origin: Coordinate,
        destination: Coordinate,
        mode: TransportType = TransportType.ANY,
        alternates_requested: bool = False,
    ) -> List[RouteCandidate]:
        """
        1. Pick the network type for the transport mode.
        2. Ensure a graph covers origin + destination.
        3. Snap both ends to their nearest graph nodes.
        4. Compute the shortest path (by 'weight' = metres), or the k
           shortest loop-free paths when alternates are requested.
        5. Turn each path into a polyline with distance and travel time.
        """
        t0 = perf_counter()

        network_type = NETWORK_TYPES.get(mode)
        if network_type is None:
            raise DirectionsServiceError(
                f"'{mode.value}' directions are not available on the OSM road network"
            )

        logger.info(
            f"Routing ({origin.lat:.6f}, {origin.lon:.6f}) -> "
            f"({destination.lat:.6f}, {destination.lon:.6f}) "
            f"[mode={mode.value}, alternates={alternates_requested}]"
        )

        try:
            G = self.graph_manager.graph_for_points(origin, destination, network_type)
            origin_node = self.graph_manager.find_nearest_node(G, origin)
            destination_node = self.graph_manager.find_nearest_node(G, destination)
        except (requests.exceptions.RequestException, ValueError, RuntimeError) as exc:
            logger.error(f"Could not prepare '{network_type}' graph: {exc}")
            raise DirectionsServiceError(f"Road network unavailable: {exc}") from exc

        k = self.max_alternate_routes if alternates_requested else 1
        try:
            paths = self._candidate_paths(G, origin_node, destination_node, k)
        except nx.NetworkXNoPath:
            logger.warning(f"No path between node {origin_node} and node {destination_node}")
            return []
        except nx.NodeNotFound as exc:
            raise DirectionsServiceError(str(exc)) from exc

        speed_kmh = self.speeds_kmh[network_type]
        candidates = [
            self._build_candidate(G, path, origin, destination, speed_kmh) for path in paths
        ]

        logger.info(
            f"Found {len(candidates)} route(s) in {(perf_counter() - t0) * 1000.0:.2f} ms; "
            f"first: distance={candidates[0].distance_m:.1f} m, "
            f"duration={candidates[0].expected_travel_time_s:.1f} s"
        )
        return candidates

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def _candidate_paths(G: nx.MultiDiGraph, source: Any, target: Any, k: int) -> List[List[Any]]:
        if k == 1:
            return [nx.shortest_path(G, source=source, target=target, weight="weight")]

        # shortest_simple_paths does not accept multigraphs: keep the
        # lightest parallel edge between each node pair.
        D = nx.DiGraph()
        D.add_nodes_from(G.nodes(data=True))
        for u, v, data in G.edges(data=True):
            w = data.get("weight", 1.0)
            if not D.has_edge(u, v) or w < D[u][v]["weight"]:
                D.add_edge(u, v, weight=w)

        paths = list(islice(nx.shortest_simple_paths(D, source, target, weight="weight"), k))
        if not paths:
            raise nx.NetworkXNoPath(f"No path between {source} and {target}.")
        return paths

    def _build_candidate(
        self,
        G: nx.MultiDiGraph,
        path: List[Any],
        origin: Coordinate,
        destination: Coordinate,
        speed_kmh: float,
    ) -> RouteCandidate:
        points = self._build_coordinates_from_path(G, path)
        distance_m = self._path_distance(G, path)

        # Both ends snapped to the same node: draw the straight segment
        if len(points) < 2:
            points = [origin, destination]

        return RouteCandidate(
            points=points,
            distance_m=distance_m,
            expected_travel_time_s=self._duration_from_distance(distance_m, speed_kmh),
        )

    @staticmethod
    def _lightest_edge(G: nx.MultiDiGraph, u: Any, v: Any) -> dict | None:
        edge_dict = G.get_edge_data(u, v, default=None)
        if not edge_dict:
            return None
        return min(edge_dict.values(), key=lambda d: d.get("weight", float("inf")))

    def _build_coordinates_from_path(self, G: nx.MultiDiGraph, path: List[Any]) -> List[Coordinate]:
        """
        Build the polyline for a node path using edge geometries.

        - Edges with a 'geometry' attribute (shapely LineString) contribute
          all of their points, in (lon, lat) order.
        - Edges without one fall back to the straight node-to-node segment.
        """
        if len(path) < 2:
            return []

        coords: List[Coordinate] = []

        for i, (u, v) in enumerate(zip(path[:-1], path[1:])):
            data = self._lightest_edge(G, u, v) or {}
            geom = data.get("geometry")

            if geom is not None:
                for j, (x, y) in enumerate(geom.coords):
                    # each segment starts where the previous one ended
                    if i > 0 and j == 0:
                        continue
                    coords.append(Coordinate(lat=y, lon=x))
            else:
                node_u = G.nodes[u]
                node_v = G.nodes[v]
                if i == 0:
                    coords.append(Coordinate(lat=node_u["y"], lon=node_u["x"]))
                coords.append(Coordinate(lat=node_v["y"], lon=node_v["x"]))

        return coords

    def _path_distance(self, G: nx.MultiDiGraph, path: List[Any]) -> float:
        total = 0.0
        for u, v in zip(path[:-1], path[1:]):
            data = self._lightest_edge(G, u, v)
            if data is None:
                continue
            w = data.get("weight")
            if isinstance(w, (int, float)):
                total += float(w)
        return total

    @staticmethod
    def _duration_from_distance(distance_m: float, speed_kmh: float) -> float:
        """
        Convert distance in metres to duration in seconds at a constant speed.
        """
        speed_mps = speed_kmh * 1000.0 / 3600.0
        if distance_m <= 0 or speed_mps <= 0:
            return 0.0
        return distance_m / speed_mps
