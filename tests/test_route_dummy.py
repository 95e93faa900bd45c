# tests/test_route_dummy.py
import pytest
from fastapi.testclient import TestClient

from app.api.dependencies import get_directions_service, get_geocoder
from app.main import app
from app.services.graph_manager import GraphManager
from app.services.routing_service import OsmDirectionsService

from conftest import CountingGraphLoader, FakeGeocoder, MILAN_DESTINATION

client = TestClient(app)


@pytest.fixture(autouse=True)
def dummy_services():
    directions = OsmDirectionsService(graph_manager=GraphManager(graph_loader=CountingGraphLoader()))
    app.dependency_overrides[get_directions_service] = lambda: directions
    app.dependency_overrides[get_geocoder] = lambda: FakeGeocoder({"Duomo di Milano": MILAN_DESTINATION})
    yield
    app.dependency_overrides.clear()


def test_route_dummy():
    payload = {
        "origin": {"lat": 45.4642, "lon": 9.19},        # near center (Milan)
        "destination": {"lat": 45.48, "lon": 9.25},     # some point nearby
    }

    response = client.post("/route/", json=payload)
    assert response.status_code == 200

    data = response.json()

    # Basic structure
    assert "routes" in data
    assert "viewport" in data
    assert len(data["routes"]) == 1

    route = data["routes"][0]
    # Polyline should have at least 2 points
    assert len(route["points"]) >= 2
    assert route["distance_m"] > 0
    assert route["expected_travel_time_s"] > 0

    viewport = data["viewport"]
    assert viewport["center"]["lat"] == pytest.approx((45.4642 + 45.48) / 2)
    assert viewport["span"]["lon_delta"] == pytest.approx(0.06 * 1.5)


def test_route_alternates():
    payload = {
        "origin": {"lat": 45.4642, "lon": 9.19},
        "destination": {"lat": 45.48, "lon": 9.25},
        "mode": "driving",
        "alternates": True,
    }

    response = client.post("/route/", json=payload)
    assert response.status_code == 200
    distances = [r["distance_m"] for r in response.json()["routes"]]
    assert distances == sorted(distances)
    assert len(distances) == 2


def test_route_transit_is_bad_gateway():
    payload = {
        "origin": {"lat": 45.4642, "lon": 9.19},
        "destination": {"lat": 45.48, "lon": 9.25},
        "mode": "transit",
    }

    response = client.post("/route/", json=payload)
    assert response.status_code == 502
    assert response.json()["reason"] == "directions_service_error"


def test_route_rejects_invalid_coordinate():
    payload = {
        "origin": {"lat": 95.0, "lon": 9.19},
        "destination": {"lat": 45.48, "lon": 9.25},
    }
    assert client.post("/route/", json=payload).status_code == 422


def test_geocode_endpoint():
    response = client.post("/geocode/", json={"query": "Duomo di Milano"})
    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "Duomo di Milano"
    assert data["coordinate"] == {"lat": 45.48, "lon": 9.25}


def test_geocode_endpoint_not_found():
    response = client.post("/geocode/", json={"query": "Atlantis"})
    assert response.status_code == 404
    assert response.json()["reason"] == "geocode_not_found"


def test_viewport_endpoint():
    payload = {"a": {"lat": 35.0, "lon": 139.0}, "b": {"lat": 35.01, "lon": 139.02}}

    response = client.post("/viewport/", json=payload)
    assert response.status_code == 200
    data = response.json()
    assert data["center"]["lat"] == pytest.approx(35.005)
    assert data["center"]["lon"] == pytest.approx(139.01)
    assert data["span"]["lat_delta"] == pytest.approx(0.015)
    assert data["span"]["lon_delta"] == pytest.approx(0.03)


def test_viewport_endpoint_custom_floor():
    payload = {"a": {"lat": 0.0, "lon": 0.0}, "b": {"lat": 0.0, "lon": 0.0}, "min_span": 0.01}

    data = client.post("/viewport/", json=payload).json()
    assert data["span"] == {"lat_delta": 0.01, "lon_delta": 0.01}
