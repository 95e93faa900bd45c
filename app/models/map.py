# app/models/map.py

from typing import List, Optional

from pydantic import BaseModel

from app.models.geo import Coordinate, Viewport


class Marker(BaseModel):
    coordinate: Coordinate
    label: str


class PolylineOverlay(BaseModel):
    points: List[Coordinate]
    stroke_color: str
    stroke_width: float


class MapState(BaseModel):
    """
    Snapshot of what a render surface currently shows.
    """
    markers: List[Marker] = []
    overlays: List[PolylineOverlay] = []
    viewport: Optional[Viewport] = None
    animated: bool = False
