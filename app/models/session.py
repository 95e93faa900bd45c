# app/models/session.py

from enum import Enum
from typing import Optional

from pydantic import BaseModel

from app.core.errors import FailureReason, NavigationError
from app.models.geo import AuthorizationStatus, Coordinate, Placemark, Viewport
from app.models.routing import RouteCandidate


class SessionState(str, Enum):
    IDLE = "idle"
    AWAITING_GEOCODE = "awaiting_geocode"
    AWAITING_LOCATION_FIX = "awaiting_location_fix"
    AWAITING_ROUTE = "awaiting_route"
    DISPLAYING = "displaying"


class SearchStatus(str, Enum):
    DISPLAYING = "displaying"
    FAILED = "failed"
    SUPERSEDED = "superseded"
    IGNORED = "ignored"


class ErrorDetail(BaseModel):
    reason: FailureReason
    message: str

    @classmethod
    def from_error(cls, error: NavigationError) -> "ErrorDetail":
        return cls(reason=error.reason, message=error.message)


class SearchResult(BaseModel):
    """
    Outcome of one search cycle.

    A `displaying` result carries everything that was put on the map.
    A `failed` result carries the reason and whatever the cycle had
    resolved before it failed.
    """
    status: SearchStatus
    query: str
    destination: Optional[Placemark] = None
    user_location: Optional[Coordinate] = None
    route: Optional[RouteCandidate] = None
    viewport: Optional[Viewport] = None
    error: Optional[ErrorDetail] = None


class SearchQuery(BaseModel):
    query: str = ""


class CreateSessionRequest(BaseModel):
    """
    Optional fixed origin. Without one, the session waits for location
    fixes pushed by the client.
    """
    origin: Optional[Coordinate] = None


class AuthorizationUpdate(BaseModel):
    status: AuthorizationStatus


class LocationPushResponse(BaseModel):
    accepted: bool


class SessionInfo(BaseModel):
    id: str
    state: SessionState
    authorization: AuthorizationStatus
    user_location: Optional[Coordinate] = None
    destination: Optional[Coordinate] = None
