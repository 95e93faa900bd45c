# app/core/errors.py
from enum import Enum


class FailureReason(str, Enum):
    PERMISSION_DENIED = "permission_denied"
    GEOCODE_NOT_FOUND = "geocode_not_found"
    GEOCODE_SERVICE_ERROR = "geocode_service_error"
    DIRECTIONS_SERVICE_ERROR = "directions_service_error"
    DIRECTIONS_EMPTY_RESULT = "directions_empty_result"
    LOCATION_UNAVAILABLE = "location_unavailable"


class NavigationError(Exception):
    """
    Base class for every failure a search cycle can run into.

    Each subclass carries a machine-readable `reason` and the HTTP status
    code used when the error escapes a direct API endpoint.
    """

    reason: FailureReason
    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class PermissionDenied(NavigationError):
    reason = FailureReason.PERMISSION_DENIED
    status_code = 403


class GeocodeNotFound(NavigationError):
    reason = FailureReason.GEOCODE_NOT_FOUND
    status_code = 404


class GeocodeServiceError(NavigationError):
    reason = FailureReason.GEOCODE_SERVICE_ERROR
    status_code = 502


class DirectionsServiceError(NavigationError):
    reason = FailureReason.DIRECTIONS_SERVICE_ERROR
    status_code = 502


class DirectionsEmptyResult(NavigationError):
    reason = FailureReason.DIRECTIONS_EMPTY_RESULT
    status_code = 404


class LocationUnavailable(NavigationError):
    reason = FailureReason.LOCATION_UNAVAILABLE
    status_code = 504
