# app/models/geo.py

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Coordinate(BaseModel):
    """
    Latitude/longitude coordinate in degrees.

    Immutable once created; NaN and infinities are rejected.
    """
    model_config = ConfigDict(frozen=True)

    lat: float = Field(ge=-90.0, le=90.0, allow_inf_nan=False)
    lon: float = Field(ge=-180.0, le=180.0, allow_inf_nan=False)


class Span(BaseModel):
    """
    Size of a map region in degrees.
    """
    model_config = ConfigDict(frozen=True)

    lat_delta: float = Field(gt=0.0, allow_inf_nan=False)
    lon_delta: float = Field(gt=0.0, allow_inf_nan=False)


class Viewport(BaseModel):
    """
    A map display region: its center and how far it extends.
    """
    model_config = ConfigDict(frozen=True)

    center: Coordinate
    span: Span


class Placemark(BaseModel):
    """
    A geocoded destination.
    """
    coordinate: Coordinate
    name: str


class TransportType(str, Enum):
    ANY = "any"
    DRIVING = "driving"
    WALKING = "walking"
    TRANSIT = "transit"


class AuthorizationStatus(str, Enum):
    NOT_DETERMINED = "not_determined"
    GRANTED = "granted"
    DENIED = "denied"


class LocationAccuracy(str, Enum):
    BEST = "best"
    NEAREST_TEN_METERS = "nearest_ten_meters"
    HUNDRED_METERS = "hundred_meters"
    KILOMETER = "kilometer"
