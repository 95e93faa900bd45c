# app/core/config.py
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables (.env file).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    APP_NAME: str = "Map Directions API"
    APP_VERSION: str = "0.1.0"
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Viewport fitting: bbox inflation factor and smallest span (degrees)
    VIEWPORT_MARGIN: float = 1.5
    VIEWPORT_MIN_SPAN: float = 0.005

    # Location updates
    LOCATION_ACCURACY: str = "best"
    LOCATION_DISTANCE_FILTER_M: float = 300.0
    LOCATION_FIX_TIMEOUT_S: float = 30.0
    CURRENT_LOCATION_LABEL: str = "Current Location"

    # Directions
    DEFAULT_TRANSPORT_TYPE: str = "any"
    REQUEST_ALTERNATE_ROUTES: bool = False
    MAX_ALTERNATE_ROUTES: int = 3
    MAX_GRAPH_RADIUS_M: float = 15_000.0
    DRIVING_SPEED_KMH: float = 40.0
    WALKING_SPEED_KMH: float = 5.0
    OSM_USE_CACHE: bool = True

    # Geocoding (Nominatim)
    NOMINATIM_URL: str = "https://nominatim.openstreetmap.org/search"
    NOMINATIM_USER_AGENT: str = "map-directions-api"
    GEOCODE_TIMEOUT_S: float = 10.0

    # Navigation sessions idle longer than this are closed and dropped
    SESSION_IDLE_TTL_S: float = 1800.0
    MAX_SESSIONS: int = 1000

    # Route overlay style
    ROUTE_STROKE_COLOR: str = "#0000FF"
    ROUTE_STROKE_WIDTH: float = 5.0

    # Display size used to fit regions to the screen aspect ratio
    DISPLAY_WIDTH_PX: Optional[int] = None
    DISPLAY_HEIGHT_PX: Optional[int] = None


settings = Settings()
