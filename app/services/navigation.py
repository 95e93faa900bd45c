# app/services/navigation.py

import asyncio
from typing import Optional

from app.core.config import Settings, settings as default_settings
from app.core.errors import (
    DirectionsEmptyResult,
    LocationUnavailable,
    NavigationError,
    PermissionDenied,
)
from app.core.logger import logger
from app.models.geo import (
    AuthorizationStatus,
    Coordinate,
    LocationAccuracy,
    Placemark,
    TransportType,
)
from app.models.session import ErrorDetail, SearchResult, SearchStatus, SessionState
from app.services.geocoding import Geocoder
from app.services.location import LocationProvider
from app.services.map_surface import MapSurface
from app.services.routing_service import DirectionsService
from app.services.viewport import fit_viewport


class _StaleCycle(Exception):
    """A newer search started while this cycle was waiting."""


class NavigationSession:
    """
    One user's search-and-route flow:

        idle -> awaiting_geocode -> awaiting_location_fix
             -> awaiting_route -> displaying

    Every search bumps a generation counter and cancels the cycle still in
    flight. A cycle only touches session or surface state while its
    generation is the current one, so a late completion from an older
    search never leaves markers or routes behind.
    """

    def __init__(
        self,
        geocoder: Geocoder,
        directions: DirectionsService,
        location: LocationProvider,
        surface: MapSurface,
        settings: Optional[Settings] = None,
    ) -> None:
        self.geocoder = geocoder
        self.directions = directions
        self.location = location
        self.surface = surface
        self.settings = settings or default_settings

        self.state = SessionState.IDLE
        self.destination: Optional[Placemark] = None
        self.user_location: Optional[Coordinate] = None
        self._generation = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def dest_location(self) -> Optional[Coordinate]:
        return self.destination.coordinate if self.destination else None

    @property
    def generation(self) -> int:
        return self._generation

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    async def start(self) -> AuthorizationStatus:
        """
        Check location permission and ask for it when still undecided.
        """
        status = self.location.authorization_status()
        if status is AuthorizationStatus.NOT_DETERMINED:
            logger.info("Location authorization not determined; requesting it")
            status = await self.location.request_authorization()
        return status

    async def search(self, query: str) -> SearchResult:
        """
        Run one search cycle for `query` and report how it ended.

        Empty queries are ignored. Otherwise the previous cycle is cancelled
        and the map is cleared before the geocode request goes out.
        """
        text = (query or "").strip()
        if not text:
            return SearchResult(status=SearchStatus.IGNORED, query=query or "")

        self._cancel_in_flight()
        self._generation += 1
        generation = self._generation

        self.destination = None
        self.user_location = None
        self.surface.remove_all_markers()
        self.surface.remove_all_overlays()
        self.state = SessionState.IDLE

        logger.info(f"Search #{generation} started for '{text}'")

        task = asyncio.create_task(self._run_cycle(generation, text))
        self._task = task
        try:
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            if task.cancelled() and generation != self._generation:
                logger.info(f"Search #{generation} superseded by search #{self._generation}")
                return SearchResult(status=SearchStatus.SUPERSEDED, query=text)
            # the caller itself went away
            task.cancel()
            raise

    async def close(self) -> None:
        """
        Abandon any cycle in flight and stop location updates.
        """
        self._cancel_in_flight()
        self._generation += 1
        self.state = SessionState.IDLE
        await self.location.stop_updates()

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #

    def _cancel_in_flight(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    def _check_current(self, generation: int) -> None:
        if generation != self._generation:
            raise _StaleCycle()

    async def _run_cycle(self, generation: int, text: str) -> SearchResult:
        try:
            return await self._cycle(generation, text)
        except _StaleCycle:
            logger.info(f"Discarding stale completion of search #{generation}")
            return SearchResult(status=SearchStatus.SUPERSEDED, query=text)
        except NavigationError as exc:
            if generation != self._generation:
                return SearchResult(status=SearchStatus.SUPERSEDED, query=text)
            logger.warning(f"Search #{generation} failed ({exc.reason.value}): {exc.message}")
            self.state = SessionState.IDLE
            return SearchResult(
                status=SearchStatus.FAILED,
                query=text,
                destination=self.destination,
                user_location=self.user_location,
                error=ErrorDetail.from_error(exc),
            )

    async def _cycle(self, generation: int, text: str) -> SearchResult:
        cfg = self.settings

        # 1) Destination
        self.state = SessionState.AWAITING_GEOCODE
        placemark = await self.geocoder.geocode(text)
        self._check_current(generation)

        self.destination = placemark
        self.surface.add_marker(placemark.coordinate, placemark.name)

        # 2) Current location
        self.state = SessionState.AWAITING_LOCATION_FIX
        user_location = await self._acquire_fix(generation)
        self._check_current(generation)

        self.user_location = user_location
        self.surface.add_marker(user_location, cfg.CURRENT_LOCATION_LABEL)

        # 3) Route
        self.state = SessionState.AWAITING_ROUTE
        candidates = await self.directions.route(
            user_location,
            placemark.coordinate,
            TransportType(cfg.DEFAULT_TRANSPORT_TYPE),
            cfg.REQUEST_ALTERNATE_ROUTES,
        )
        self._check_current(generation)

        if not candidates:
            raise DirectionsEmptyResult(f"No route found to '{text}'")

        route = candidates[0]
        self.surface.draw_polyline(route.points, cfg.ROUTE_STROKE_COLOR, cfg.ROUTE_STROKE_WIDTH)

        viewport = fit_viewport(
            user_location,
            placemark.coordinate,
            margin=cfg.VIEWPORT_MARGIN,
            min_span=cfg.VIEWPORT_MIN_SPAN,
        )
        shown = self.surface.set_viewport(viewport, animated=True)
        self.state = SessionState.DISPLAYING

        logger.info(
            f"Search #{generation} displaying route of {route.distance_m:.0f} m "
            f"({len(candidates)} candidate(s))"
        )
        return SearchResult(
            status=SearchStatus.DISPLAYING,
            query=text,
            destination=placemark,
            user_location=user_location,
            route=route,
            viewport=shown,
        )

    async def _acquire_fix(self, generation: int) -> Coordinate:
        cfg = self.settings

        status = await self.start()
        if status is AuthorizationStatus.DENIED:
            raise PermissionDenied("Location access was denied")

        await self.location.start_updates(
            LocationAccuracy(cfg.LOCATION_ACCURACY), cfg.LOCATION_DISTANCE_FILTER_M
        )
        try:
            return await asyncio.wait_for(self.location.next_fix(), cfg.LOCATION_FIX_TIMEOUT_S)
        except asyncio.TimeoutError as exc:
            raise LocationUnavailable(
                f"No location fix within {cfg.LOCATION_FIX_TIMEOUT_S:.0f} s"
            ) from exc
        finally:
            # one fix per cycle; a newer cycle owns the updates now
            if generation == self._generation:
                await self.location.stop_updates()
