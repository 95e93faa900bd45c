# app/services/map_surface.py
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from app.models.geo import Coordinate, Span, Viewport
from app.models.map import MapState, Marker, PolylineOverlay


class MapSurface(ABC):
    """
    Where markers, route overlays and the visible region end up.
    """

    @abstractmethod
    def add_marker(self, coordinate: Coordinate, label: str) -> None:
        ...

    @abstractmethod
    def remove_all_markers(self) -> None:
        ...

    @abstractmethod
    def draw_polyline(
        self, points: Sequence[Coordinate], stroke_color: str, stroke_width: float
    ) -> None:
        ...

    @abstractmethod
    def remove_all_overlays(self) -> None:
        ...

    @abstractmethod
    def region_that_fits(self, viewport: Viewport) -> Viewport:
        """Adjust a region to what the display can actually show."""

    @abstractmethod
    def set_viewport(self, viewport: Viewport, animated: bool = True) -> Viewport:
        """Apply a region and return the one actually shown."""


class InMemoryMapSurface(MapSurface):
    """
    Render surface that keeps the map state in memory; the frontend polls
    `snapshot()` and draws it.

    With a display size, regions are widened along one axis to match the
    display aspect ratio (degrees are treated as square, which holds well
    enough at city scale).
    """

    def __init__(self, width_px: Optional[int] = None, height_px: Optional[int] = None) -> None:
        self.width_px = width_px
        self.height_px = height_px
        self.markers: List[Marker] = []
        self.overlays: List[PolylineOverlay] = []
        self.viewport: Optional[Viewport] = None
        self.animated = False

    def add_marker(self, coordinate: Coordinate, label: str) -> None:
        self.markers.append(Marker(coordinate=coordinate, label=label))

    def remove_all_markers(self) -> None:
        self.markers.clear()

    def draw_polyline(
        self, points: Sequence[Coordinate], stroke_color: str, stroke_width: float
    ) -> None:
        self.overlays.append(
            PolylineOverlay(points=list(points), stroke_color=stroke_color, stroke_width=stroke_width)
        )

    def remove_all_overlays(self) -> None:
        self.overlays.clear()

    def region_that_fits(self, viewport: Viewport) -> Viewport:
        if not self.width_px or not self.height_px:
            return viewport

        target = self.width_px / self.height_px
        lat_delta = viewport.span.lat_delta
        lon_delta = viewport.span.lon_delta
        if lon_delta / lat_delta < target:
            lon_delta = lat_delta * target
        else:
            lat_delta = lon_delta / target

        span = Span(lat_delta=min(lat_delta, 180.0), lon_delta=min(lon_delta, 360.0))
        return Viewport(center=viewport.center, span=span)

    def set_viewport(self, viewport: Viewport, animated: bool = True) -> Viewport:
        self.viewport = self.region_that_fits(viewport)
        self.animated = animated
        return self.viewport

    def snapshot(self) -> MapState:
        return MapState(
            markers=list(self.markers),
            overlays=list(self.overlays),
            viewport=self.viewport,
            animated=self.animated,
        )
