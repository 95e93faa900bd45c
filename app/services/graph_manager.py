# app/services/graph_manager.py
from typing import Any, Callable, Dict, Optional, Tuple

import networkx as nx
import osmnx as ox

from app.core.geodesy import haversine_m
from app.core.logger import logger
from app.models.geo import Coordinate

# (north, south, east, west)
BBox = Tuple[float, float, float, float]

# (center_lat, center_lon, radius_m, network_type) -> graph
GraphLoader = Callable[[float, float, float, str], nx.MultiDiGraph]


def download_osm_graph(
    center_lat: float,
    center_lon: float,
    radius_m: float,
    network_type: str,
) -> nx.MultiDiGraph:
    """
    Download a simplified OSM street network around a point.
    """
    return ox.graph_from_point(
        center_point=(center_lat, center_lon),
        dist=radius_m,
        network_type=network_type,
        simplify=True,
    )


class GraphManager:
    # Keeps one routing graph per OSM network type ("drive", "walk"),
    # each rebuilt on demand when a request falls outside its bbox.

    def __init__(
        self,
        max_graph_radius_m: float = 15_000.0,
        graph_loader: Optional[GraphLoader] = None,
        use_cache: bool = True,
    ) -> None:
        ox.settings.use_cache = use_cache
        self.max_graph_radius_m = max_graph_radius_m
        self.graph_loader = graph_loader or download_osm_graph
        self.graphs: Dict[str, nx.MultiDiGraph] = {}
        self.bboxes: Dict[str, BBox] = {}
        logger.info(
            f"GraphManager initialised (max radius {max_graph_radius_m:.0f} m, "
            "graphs built on demand)."
        )

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def graph_for_points(
        self,
        origin: Coordinate,
        destination: Coordinate,
        network_type: str,
    ) -> nx.MultiDiGraph:
        """
        Return a graph of the given network type covering both points.

        If no graph is cached or its bbox misses either point, a new one is
        built around their midpoint with a radius proportional to their
        distance, capped at max_graph_radius_m.
        """
        if network_type not in self.graphs or not self._bbox_contains_points(
            self.bboxes.get(network_type), origin, destination
        ):
            self._build_graph_for_points(origin, destination, network_type)
        return self.graphs[network_type]

    def find_nearest_node(self, G: nx.MultiDiGraph, coord: Coordinate) -> Any:
        """
        Find the graph node nearest to the given coordinate.

        Graphs downloaded by osmnx carry a CRS and go through
        osmnx.distance.nearest_nodes. In-memory graphs without one are
        searched directly in degree space.
        """
        if "crs" not in G.graph:
            nearest_node = None
            best_dist = float("inf")

            for node_id, data in G.nodes(data=True):
                x = data.get("x")
                y = data.get("y")
                if x is None or y is None:
                    continue
                dx = x - coord.lon
                dy = y - coord.lat
                d2 = dx * dx + dy * dy
                if d2 < best_dist:
                    best_dist = d2
                    nearest_node = node_id

            if nearest_node is None:
                raise RuntimeError("Graph has no nodes with coordinates.")
            return nearest_node

        node_id = ox.distance.nearest_nodes(G, X=coord.lon, Y=coord.lat)
        node_data = G.nodes[node_id]
        logger.debug(
            f"Nearest node for ({coord.lat:.6f}, {coord.lon:.6f}) -> "
            f"node {node_id} ({node_data.get('y'):.6f}, {node_data.get('x'):.6f})"
        )
        return node_id

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def _bbox_contains_points(
        bbox: Optional[BBox], origin: Coordinate, destination: Coordinate
    ) -> bool:
        if bbox is None:
            return False

        north, south, east, west = bbox

        for c in (origin, destination):
            if not (south <= c.lat <= north and west <= c.lon <= east):
                return False

        return True

    def _build_graph_for_points(
        self, origin: Coordinate, destination: Coordinate, network_type: str
    ) -> None:
        distance_m = haversine_m(origin.lat, origin.lon, destination.lat, destination.lon)

        # A circle of radius R only holds both endpoints if they are <= 2R apart.
        if distance_m > 2.0 * self.max_graph_radius_m:
            logger.warning(
                f"Requested OD distance ~{distance_m:.1f} m exceeds "
                f"2x max graph radius ({2.0 * self.max_graph_radius_m:.1f} m); "
                "routing may fail due to limited network extent."
            )

        radius_m = min(1.5 * distance_m + 2_000.0, self.max_graph_radius_m)
        center_lat = (origin.lat + destination.lat) / 2.0
        center_lon = (origin.lon + destination.lon) / 2.0

        logger.info(
            f"Building '{network_type}' graph around ({center_lat:.6f}, {center_lon:.6f}) "
            f"with radius={radius_m:.1f} m (OD distance ~{distance_m:.1f} m)"
        )

        G = self.graph_loader(center_lat, center_lon, radius_m, network_type)
        G = self._ensure_numeric_weights(G)

        xs = [data["x"] for _, data in G.nodes(data=True) if data.get("x") is not None]
        ys = [data["y"] for _, data in G.nodes(data=True) if data.get("y") is not None]
        if xs and ys:
            bbox = (max(ys), min(ys), max(xs), min(xs))
        else:
            bbox = (center_lat + 1.0, center_lat - 1.0, center_lon + 1.0, center_lon - 1.0)

        self.graphs[network_type] = G
        self.bboxes[network_type] = bbox

        logger.info(
            f"'{network_type}' graph ready: {G.number_of_nodes()} nodes, "
            f"{G.number_of_edges()} edges; bbox N={bbox[0]:.6f}, S={bbox[1]:.6f}, "
            f"E={bbox[2]:.6f}, W={bbox[3]:.6f}"
        )

    @staticmethod
    def _ensure_numeric_weights(G: nx.MultiDiGraph) -> nx.MultiDiGraph:
        """
        Ensure every edge has a numeric 'weight' attribute (float, metres).
        """
        num_fixed = 0
        num_missing = 0

        for u, v, data in G.edges(data=True):
            length = data.get("length")

            if isinstance(length, str):
                try:
                    length = float(length)
                except ValueError:
                    length = None

            if length is None:
                nu, nv = G.nodes[u], G.nodes[v]
                if None in (nu.get("y"), nu.get("x"), nv.get("y"), nv.get("x")):
                    num_missing += 1
                    continue
                length = haversine_m(nu["y"], nu["x"], nv["y"], nv["x"])

            data["weight"] = float(length)
            num_fixed += 1

        logger.info(
            f"Edge weights normalised: {num_fixed} edges with numeric weights, "
            f"{num_missing} edges without valid length/coords."
        )
        return G
