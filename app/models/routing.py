# app/models/routing.py

from typing import List, Optional

from pydantic import BaseModel, Field

from app.models.geo import Coordinate, TransportType, Viewport


class RouteCandidate(BaseModel):
    """
    One proposed path between two coordinates.

    `points` is the route polyline in travel order, always at least
    two points long.
    """
    points: List[Coordinate] = Field(min_length=2)
    distance_m: float
    expected_travel_time_s: float


class GeocodeRequest(BaseModel):
    """
    Request body for the /geocode endpoint.
    """
    query: str


class RouteRequest(BaseModel):
    """
    Request body for the /route endpoint.
    """
    origin: Coordinate
    destination: Coordinate
    mode: TransportType = TransportType.ANY
    alternates: bool = False


class RouteResponse(BaseModel):
    """
    Response for the /route endpoint.

    - `routes` is ordered as the directions service returned it; the
      first entry is the one a map would draw.
    - `viewport` frames both endpoints.
    """
    routes: List[RouteCandidate]
    viewport: Viewport


class ViewportRequest(BaseModel):
    """
    Request body for the /viewport endpoint. Omitted margin and min_span
    fall back to the configured defaults.
    """
    a: Coordinate
    b: Coordinate
    margin: Optional[float] = Field(default=None, gt=0.0)
    min_span: Optional[float] = Field(default=None, gt=0.0)
