# tests/test_routing_service.py
import asyncio

import pytest
from shapely.geometry import LineString

from app.core.errors import DirectionsServiceError
from app.models.geo import Coordinate, TransportType
from app.services.graph_manager import GraphManager
from app.services.routing_service import OsmDirectionsService

from conftest import MILAN_DESTINATION, MILAN_ORIGIN, CountingGraphLoader, build_dummy_graph


def make_service(loader=None, **kwargs) -> OsmDirectionsService:
    graph_manager = GraphManager(graph_loader=loader or CountingGraphLoader())
    return OsmDirectionsService(graph_manager=graph_manager, **kwargs)


def test_shortest_path_follows_chain():
    service = make_service()
    routes = service.compute_routes(MILAN_ORIGIN, MILAN_DESTINATION)

    assert len(routes) == 1
    route = routes[0]
    assert [(p.lat, p.lon) for p in route.points] == [
        (45.4642, 9.19),
        (45.4720, 9.22),
        (45.4800, 9.25),
    ]
    assert route.distance_m == pytest.approx(2500.0)
    # 40 km/h
    assert route.expected_travel_time_s == pytest.approx(2500.0 / (40.0 / 3.6))


def test_alternates_are_ordered_by_length():
    service = make_service(max_alternate_routes=3)
    routes = service.compute_routes(
        MILAN_ORIGIN, MILAN_DESTINATION, TransportType.DRIVING, alternates_requested=True
    )

    assert [r.distance_m for r in routes] == pytest.approx([2500.0, 2600.0])
    assert len(routes[1].points) == 2


def test_alternates_capped():
    service = make_service(max_alternate_routes=1)
    routes = service.compute_routes(MILAN_ORIGIN, MILAN_DESTINATION, alternates_requested=True)
    assert len(routes) == 1


def test_walking_uses_walk_graph_and_speed():
    loader = CountingGraphLoader()
    service = make_service(loader, walking_speed_kmh=5.0)
    routes = service.compute_routes(MILAN_ORIGIN, MILAN_DESTINATION, TransportType.WALKING)

    assert loader.calls[-1][3] == "walk"
    assert routes[0].expected_travel_time_s == pytest.approx(2500.0 / (5.0 / 3.6))


def test_transit_is_not_supported():
    service = make_service()
    with pytest.raises(DirectionsServiceError):
        service.compute_routes(MILAN_ORIGIN, MILAN_DESTINATION, TransportType.TRANSIT)


def test_no_path_returns_empty_list():
    service = make_service()
    # edges only run 1 -> 2 -> 3
    assert service.compute_routes(MILAN_DESTINATION, MILAN_ORIGIN) == []


def test_same_node_gives_straight_segment():
    service = make_service()
    near_origin = Coordinate(lat=45.4643, lon=9.1901)
    routes = service.compute_routes(MILAN_ORIGIN, near_origin)

    assert routes[0].points == [MILAN_ORIGIN, near_origin]
    assert routes[0].distance_m == 0.0
    assert routes[0].expected_travel_time_s == 0.0


def test_graph_reused_while_points_inside_bbox():
    loader = CountingGraphLoader()
    service = make_service(loader)

    service.compute_routes(MILAN_ORIGIN, MILAN_DESTINATION)
    service.compute_routes(Coordinate(lat=45.47, lon=9.20), MILAN_DESTINATION)
    assert len(loader.calls) == 1

    service.compute_routes(MILAN_ORIGIN, Coordinate(lat=45.60, lon=9.40))
    assert len(loader.calls) == 2


def test_graph_radius_is_capped():
    loader = CountingGraphLoader()
    service = make_service(loader)
    service.compute_routes(MILAN_ORIGIN, Coordinate(lat=46.5, lon=9.19))

    _, _, radius_m, _ = loader.calls[0]
    assert radius_m == pytest.approx(15_000.0)


def test_edge_geometry_is_used_for_polyline():
    def graph_with_shape():
        G = build_dummy_graph()
        G[1][2][0]["geometry"] = LineString([(9.19, 45.4642), (9.20, 45.4700), (9.22, 45.4720)])
        return G

    service = make_service(CountingGraphLoader(graph_with_shape))
    points = service.compute_routes(MILAN_ORIGIN, MILAN_DESTINATION)[0].points

    assert [(p.lat, p.lon) for p in points] == [
        (45.4642, 9.19),
        (45.4700, 9.20),
        (45.4720, 9.22),
        (45.4800, 9.25),
    ]


def test_loader_failure_is_a_service_error():
    def broken(*args):
        raise ValueError("Found no graph nodes within the requested polygon")

    service = make_service(broken)
    with pytest.raises(DirectionsServiceError):
        service.compute_routes(MILAN_ORIGIN, MILAN_DESTINATION)


def test_missing_lengths_are_computed_from_coordinates():
    def graph_without_lengths():
        G = build_dummy_graph()
        for _, _, data in G.edges(data=True):
            del data["length"]
        return G

    service = make_service(CountingGraphLoader(graph_without_lengths))
    route = service.compute_routes(MILAN_ORIGIN, MILAN_DESTINATION)[0]
    # haversine 1->2 + 2->3, roughly 2.6 km + 2.6 km
    assert 4_000.0 < route.distance_m < 6_500.0


def test_async_route_runs_in_threadpool():
    service = make_service()
    routes = asyncio.run(service.route(MILAN_ORIGIN, MILAN_DESTINATION))
    assert routes[0].distance_m == pytest.approx(2500.0)
