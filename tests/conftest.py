# tests/conftest.py
import asyncio
import os
import sys
from typing import Dict, List, Optional

import networkx as nx
import pytest

# Add the project root directory to sys.path so that "import app" works
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from app.core.errors import DirectionsServiceError, GeocodeNotFound  # noqa: E402
from app.models.geo import Coordinate, Placemark, TransportType  # noqa: E402
from app.models.routing import RouteCandidate  # noqa: E402
from app.services.geocoding import Geocoder  # noqa: E402
from app.services.routing_service import DirectionsService  # noqa: E402

# Origin/destination used across tests (central Milan)
MILAN_ORIGIN = Coordinate(lat=45.4642, lon=9.19)
MILAN_DESTINATION = Coordinate(lat=45.48, lon=9.25)


def build_dummy_graph() -> nx.MultiDiGraph:
    """
    Very small road graph near Milan.

    Chain 1 -> 2 -> 3 (2500 m) plus a direct but slightly longer edge
    1 -> 3 (2600 m). Nothing leads back from 3 to 1.
    """
    G = nx.MultiDiGraph()
    G.add_node(1, x=9.19, y=45.4642)
    G.add_node(2, x=9.22, y=45.4720)
    G.add_node(3, x=9.25, y=45.4800)

    G.add_edge(1, 2, length=1000.0)
    G.add_edge(2, 3, length=1500.0)
    G.add_edge(1, 3, length=2600.0)
    return G


class CountingGraphLoader:
    def __init__(self, factory=build_dummy_graph) -> None:
        self.factory = factory
        self.calls: List[tuple] = []

    def __call__(self, center_lat, center_lon, radius_m, network_type):
        self.calls.append((center_lat, center_lon, radius_m, network_type))
        return self.factory()


class FakeGeocoder(Geocoder):
    """
    Geocoder over a fixed table. Queries listed in `gates` block until
    their event is set; `entered` records which queries have started.
    """

    def __init__(self, places: Dict[str, Coordinate]) -> None:
        self.places = places
        self.gates: Dict[str, asyncio.Event] = {}
        self.entered: Dict[str, asyncio.Event] = {}
        self.ignore_cancel = False
        self.calls: List[str] = []

    def entered_event(self, text: str) -> asyncio.Event:
        return self.entered.setdefault(text, asyncio.Event())

    async def geocode(self, text: str) -> Placemark:
        self.calls.append(text)
        self.entered_event(text).set()

        gate = self.gates.get(text)
        if gate is not None:
            try:
                await gate.wait()
            except asyncio.CancelledError:
                if not self.ignore_cancel:
                    raise
                # behave like a platform callback that fires regardless
                await gate.wait()

        if text not in self.places:
            raise GeocodeNotFound(f"Could not find a location for '{text}'")
        return Placemark(coordinate=self.places[text], name=text)


class FakeDirections(DirectionsService):
    """
    Directions returning a straight segment, plus `extra` alternatives.
    """

    def __init__(self, extra: int = 0, empty: bool = False, error: Optional[str] = None) -> None:
        self.extra = extra
        self.empty = empty
        self.error = error
        self.gate: Optional[asyncio.Event] = None
        self.calls: List[tuple] = []

    async def route(
        self,
        origin: Coordinate,
        destination: Coordinate,
        mode: TransportType = TransportType.ANY,
        alternates_requested: bool = False,
    ) -> List[RouteCandidate]:
        self.calls.append((origin, destination, mode, alternates_requested))
        if self.gate is not None:
            await self.gate.wait()
        if self.error:
            raise DirectionsServiceError(self.error)
        if self.empty:
            return []

        routes = [
            RouteCandidate(points=[origin, destination], distance_m=1000.0, expected_travel_time_s=90.0)
        ]
        for i in range(self.extra):
            detour = Coordinate(lat=origin.lat + 0.01 * (i + 1), lon=origin.lon)
            routes.append(
                RouteCandidate(
                    points=[origin, detour, destination],
                    distance_m=2000.0 + i,
                    expected_travel_time_s=180.0,
                )
            )
        return routes


@pytest.fixture
def places() -> Dict[str, Coordinate]:
    return {
        "Duomo di Milano": MILAN_DESTINATION,
        "Castello Sforzesco": Coordinate(lat=45.4705, lon=9.1794),
        "Tokyo Station": Coordinate(lat=35.6812, lon=139.7671),
    }


@pytest.fixture
def geocoder(places) -> FakeGeocoder:
    return FakeGeocoder(places)


@pytest.fixture
def directions() -> FakeDirections:
    return FakeDirections()
