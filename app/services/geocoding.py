# app/services/geocoding.py
from abc import ABC, abstractmethod

import requests
from fastapi.concurrency import run_in_threadpool

from app.core.errors import GeocodeNotFound, GeocodeServiceError
from app.core.logger import logger
from app.models.geo import Coordinate, Placemark

NOMINATIM_SEARCH_URL = "https://nominatim.openstreetmap.org/search"


class Geocoder(ABC):
    """
    Resolves free text to a single placemark.
    """

    @abstractmethod
    async def geocode(self, text: str) -> Placemark:
        """Raise GeocodeNotFound or GeocodeServiceError on failure."""


class OsmGeocoder(Geocoder):
    """
    Geocoder backed by the OpenStreetMap Nominatim search API.

    The placemark is named after the place Nominatim resolved
    (`display_name`), not after the text that was typed.
    """

    def __init__(
        self,
        search_url: str = NOMINATIM_SEARCH_URL,
        user_agent: str = "map-directions-api",
        timeout_s: float = 10.0,
    ) -> None:
        self.search_url = search_url
        self.user_agent = user_agent
        self.timeout_s = timeout_s
        logger.info("OsmGeocoder initialised ({}).", search_url)

    async def geocode(self, text: str) -> Placemark:
        # requests blocks on HTTP; keep the event loop free
        return await run_in_threadpool(self._geocode_blocking, text)

    def _geocode_blocking(self, text: str) -> Placemark:
        logger.info("Geocoding '{}'", text)
        params = {"q": text, "format": "json", "limit": 1}
        headers = {"User-Agent": self.user_agent}
        try:
            response = requests.get(
                self.search_url, params=params, headers=headers, timeout=self.timeout_s
            )
            response.raise_for_status()
            results = response.json()
        except requests.exceptions.RequestException as exc:
            # covers connection failures and HTTP 429/5xx alike
            logger.error("Nominatim request failed for '{}': {}", text, exc)
            raise GeocodeServiceError(f"Geocoding service unavailable: {exc}") from exc

        if not results:
            logger.warning("No geocoding result for '{}'", text)
            raise GeocodeNotFound(f"Could not find a location for '{text}'")

        try:
            first = results[0]
            coordinate = Coordinate(lat=float(first["lat"]), lon=float(first["lon"]))
        except (KeyError, IndexError, TypeError, ValueError) as exc:
            logger.error("Unexpected Nominatim response for '{}': {}", text, exc)
            raise GeocodeServiceError(
                f"Geocoding service returned an unreadable result for '{text}'"
            ) from exc

        name = first.get("display_name") or text
        logger.info("Geocoded '{}' -> {} ({:.6f}, {:.6f})", text, name, coordinate.lat, coordinate.lon)
        return Placemark(coordinate=coordinate, name=name)
