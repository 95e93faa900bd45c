# app/api/dependencies.py
"""Shared service instances, provided through FastAPI dependencies."""
from functools import lru_cache

from app.core.config import Settings, settings
from app.services.geocoding import Geocoder, OsmGeocoder
from app.services.graph_manager import GraphManager
from app.services.routing_service import DirectionsService, OsmDirectionsService
from app.services.session_store import SessionStore


def get_settings() -> Settings:
    return settings


@lru_cache(maxsize=1)
def get_geocoder() -> Geocoder:
    return OsmGeocoder(
        search_url=settings.NOMINATIM_URL,
        user_agent=settings.NOMINATIM_USER_AGENT,
        timeout_s=settings.GEOCODE_TIMEOUT_S,
    )


@lru_cache(maxsize=1)
def get_directions_service() -> DirectionsService:
    graph_manager = GraphManager(
        max_graph_radius_m=settings.MAX_GRAPH_RADIUS_M,
        use_cache=settings.OSM_USE_CACHE,
    )
    return OsmDirectionsService(
        graph_manager=graph_manager,
        max_alternate_routes=settings.MAX_ALTERNATE_ROUTES,
        driving_speed_kmh=settings.DRIVING_SPEED_KMH,
        walking_speed_kmh=settings.WALKING_SPEED_KMH,
    )


@lru_cache(maxsize=1)
def get_session_store() -> SessionStore:
    return SessionStore(get_geocoder(), get_directions_service(), settings)
