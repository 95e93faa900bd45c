# tests/test_health.py
from fastapi.testclient import TestClient
from app.main import app


client = TestClient(app)


def test_health_check():
    response = client.get("/health/")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["app"] == "Map Directions API"
    assert "version" in data
    assert "environment" in data
    assert data["sessions"] >= 0


def test_map_page_is_served():
    response = client.get("/map")
    assert response.status_code == 200
    assert "leaflet" in response.text.lower()
