# app/services/location.py
import asyncio
from abc import ABC, abstractmethod
from typing import Optional

from app.core.errors import LocationUnavailable, PermissionDenied
from app.core.geodesy import haversine_m
from app.core.logger import logger
from app.models.geo import AuthorizationStatus, Coordinate, LocationAccuracy


class LocationProvider(ABC):
    """
    Source of the user's position and of the permission to read it.
    """

    @abstractmethod
    def authorization_status(self) -> AuthorizationStatus:
        ...

    @abstractmethod
    async def request_authorization(self) -> AuthorizationStatus:
        ...

    @abstractmethod
    async def start_updates(self, accuracy: LocationAccuracy, min_distance_m: float) -> None:
        ...

    @abstractmethod
    async def next_fix(self) -> Coordinate:
        """Wait for the next position fix."""

    @abstractmethod
    async def stop_updates(self) -> None:
        ...


class StaticLocationProvider(LocationProvider):
    """
    Always-authorised provider that reports one fixed position.
    """

    def __init__(self, coordinate: Coordinate) -> None:
        self.coordinate = coordinate
        self.updating = False

    def authorization_status(self) -> AuthorizationStatus:
        return AuthorizationStatus.GRANTED

    async def request_authorization(self) -> AuthorizationStatus:
        return AuthorizationStatus.GRANTED

    async def start_updates(self, accuracy: LocationAccuracy, min_distance_m: float) -> None:
        self.updating = True

    async def next_fix(self) -> Coordinate:
        if not self.updating:
            raise LocationUnavailable("Location updates have not been started")
        return self.coordinate

    async def stop_updates(self) -> None:
        self.updating = False


class PushLocationProvider(LocationProvider):
    """
    Provider fed by the client: the browser reports its permission
    decision and pushes geolocation fixes as they arrive.

    Starting updates hands out the latest known fix right away, like a
    platform location manager returning its cached location. While
    updating, fixes closer than the distance filter to the last delivered
    one are dropped.
    """

    def __init__(self, status: AuthorizationStatus = AuthorizationStatus.NOT_DETERMINED) -> None:
        self._status = status
        self.authorization_requested = False
        self.updating = False
        self.accuracy = LocationAccuracy.BEST
        self.min_distance_m = 0.0
        self._latest: Optional[Coordinate] = None
        self._pending: Optional[Coordinate] = None
        self._last_delivered: Optional[Coordinate] = None
        self._changed = asyncio.Event()

    @property
    def latest_fix(self) -> Optional[Coordinate]:
        return self._latest

    def authorization_status(self) -> AuthorizationStatus:
        return self._status

    async def request_authorization(self) -> AuthorizationStatus:
        if self._status is AuthorizationStatus.NOT_DETERMINED:
            self.authorization_requested = True
            logger.info("Location authorization requested from client")
        return self._status

    def set_authorization(self, status: AuthorizationStatus) -> None:
        logger.info(f"Location authorization changed: {self._status.value} -> {status.value}")
        self._status = status
        if status is AuthorizationStatus.DENIED:
            self._pending = None
        self._changed.set()

    def push_fix(self, coordinate: Coordinate) -> bool:
        """
        Record a fix from the client. Returns False when the distance
        filter or a denied permission drops it.
        """
        if self._status is AuthorizationStatus.DENIED:
            return False
        if self._status is AuthorizationStatus.NOT_DETERMINED:
            # the client could only read a position if access was granted
            self._status = AuthorizationStatus.GRANTED

        if self.updating and self._last_delivered is not None:
            moved_m = haversine_m(
                self._last_delivered.lat,
                self._last_delivered.lon,
                coordinate.lat,
                coordinate.lon,
            )
            if moved_m < self.min_distance_m:
                logger.debug(f"Dropping fix {moved_m:.1f} m from last delivered one")
                return False

        self._latest = coordinate
        if self.updating:
            self._pending = coordinate
            self._changed.set()
        return True

    async def start_updates(self, accuracy: LocationAccuracy, min_distance_m: float) -> None:
        self.accuracy = accuracy
        self.min_distance_m = min_distance_m
        self.updating = True
        self._last_delivered = None
        if self._latest is not None:
            self._pending = self._latest
            self._changed.set()
        logger.info(
            f"Location updates started (accuracy={accuracy.value}, "
            f"distance filter={min_distance_m:.0f} m)"
        )

    async def next_fix(self) -> Coordinate:
        while True:
            if self._status is AuthorizationStatus.DENIED:
                raise PermissionDenied("Location access was denied")
            if not self.updating:
                raise LocationUnavailable("Location updates have not been started")
            if self._pending is not None:
                fix, self._pending = self._pending, None
                self._last_delivered = fix
                return fix
            self._changed.clear()
            await self._changed.wait()

    async def stop_updates(self) -> None:
        self.updating = False
        self._pending = None
        self._changed.set()
        logger.info("Location updates stopped")
