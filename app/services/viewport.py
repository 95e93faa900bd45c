# app/services/viewport.py

from app.models.geo import Coordinate, Span, Viewport

DEFAULT_MARGIN = 1.5
DEFAULT_MIN_SPAN = 0.005


def fit_viewport(
    a: Coordinate,
    b: Coordinate,
    margin: float = DEFAULT_MARGIN,
    min_span: float = DEFAULT_MIN_SPAN,
) -> Viewport:
    """
    Compute a region that shows both coordinates.

    - The bounding box of the two points is inflated by `margin`
      (1.0 = the points sit on the edges, 1.5 = half a box of padding).
    - Each span is floored at `min_span` degrees so coincident or very
      close points still give a usable zoom level.
    - The center is the midpoint of the bounding box.
    """
    if margin <= 0:
        raise ValueError(f"margin must be positive, got {margin}")
    if min_span <= 0:
        raise ValueError(f"min_span must be positive, got {min_span}")

    max_lat = max(a.lat, b.lat)
    min_lat = min(a.lat, b.lat)
    max_lon = max(a.lon, b.lon)
    min_lon = min(a.lon, b.lon)

    lat_delta = max(min_span, abs(max_lat - min_lat) * margin)
    lon_delta = max(min_span, abs(max_lon - min_lon) * margin)

    center = Coordinate(lat=(max_lat + min_lat) / 2, lon=(max_lon + min_lon) / 2)
    return Viewport(center=center, span=Span(lat_delta=lat_delta, lon_delta=lon_delta))
