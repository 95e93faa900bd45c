# app/services/session_store.py
import time
import uuid
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from app.core.config import Settings
from app.core.logger import logger
from app.models.geo import Coordinate
from app.services.geocoding import Geocoder
from app.services.location import LocationProvider, PushLocationProvider, StaticLocationProvider
from app.services.map_surface import InMemoryMapSurface
from app.services.navigation import NavigationSession
from app.services.routing_service import DirectionsService


@dataclass
class SessionEntry:
    id: str
    session: NavigationSession
    location: LocationProvider
    surface: InMemoryMapSurface
    last_used: float = 0.0


class SessionStore:
    """
    In-process registry of navigation sessions, keyed by a random id.

    Sessions share the geocoder and directions service; each gets its own
    location provider and map surface. Sessions unused for longer than
    SESSION_IDLE_TTL_S are closed and dropped on the next sweep, and the
    least recently used ones make room once MAX_SESSIONS is reached.
    """

    def __init__(
        self,
        geocoder: Geocoder,
        directions: DirectionsService,
        settings: Settings,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.geocoder = geocoder
        self.directions = directions
        self.settings = settings
        self.clock = clock
        self._entries: Dict[str, SessionEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    async def create(self, origin: Optional[Coordinate] = None) -> SessionEntry:
        await self.sweep()
        while len(self._entries) >= max(1, self.settings.MAX_SESSIONS):
            oldest = min(self._entries.values(), key=lambda e: e.last_used)
            await self._evict(oldest, "session limit reached")

        location: LocationProvider
        if origin is not None:
            location = StaticLocationProvider(origin)
        else:
            location = PushLocationProvider()

        surface = InMemoryMapSurface(self.settings.DISPLAY_WIDTH_PX, self.settings.DISPLAY_HEIGHT_PX)
        session = NavigationSession(self.geocoder, self.directions, location, surface, self.settings)

        entry = SessionEntry(
            id=uuid.uuid4().hex,
            session=session,
            location=location,
            surface=surface,
            last_used=self.clock(),
        )
        self._entries[entry.id] = entry
        logger.info(
            f"Session {entry.id} created "
            f"({'fixed origin' if origin is not None else 'client-pushed location'}); "
            f"{len(self._entries)} open"
        )
        return entry

    def get(self, session_id: str) -> Optional[SessionEntry]:
        """
        Look up a live session and mark it as used. Expired sessions are
        treated as gone even before a sweep drops them.
        """
        entry = self._entries.get(session_id)
        if entry is None or self._expired(entry, self.clock()):
            return None
        entry.last_used = self.clock()
        return entry

    async def remove(self, session_id: str) -> bool:
        entry = self._entries.pop(session_id, None)
        if entry is None:
            return False
        await entry.session.close()
        logger.info(f"Session {session_id} closed")
        return True

    async def sweep(self) -> int:
        """
        Close and drop every session idle for longer than the TTL.
        """
        now = self.clock()
        expired: List[SessionEntry] = [e for e in self._entries.values() if self._expired(e, now)]
        for entry in expired:
            await self._evict(entry, "idle")
        return len(expired)

    def _expired(self, entry: SessionEntry, now: float) -> bool:
        return now - entry.last_used > self.settings.SESSION_IDLE_TTL_S

    async def _evict(self, entry: SessionEntry, why: str) -> None:
        self._entries.pop(entry.id, None)
        await entry.session.close()
        logger.info(f"Session {entry.id} evicted ({why})")
