# app/api/v1/routes_routing.py
from fastapi import APIRouter, Depends

from app.api.dependencies import get_directions_service, get_geocoder, get_settings
from app.core.config import Settings
from app.models.geo import Placemark, Viewport
from app.models.routing import GeocodeRequest, RouteRequest, RouteResponse, ViewportRequest
from app.services.geocoding import Geocoder
from app.services.routing_service import DirectionsService
from app.services.viewport import fit_viewport

router = APIRouter(tags=["routing"])


@router.post(
    "/geocode/",
    response_model=Placemark,
    summary="Resolve an address or place name to a coordinate",
)
async def geocode(
    request: GeocodeRequest,
    geocoder: Geocoder = Depends(get_geocoder),
) -> Placemark:
    return await geocoder.geocode(request.query)


@router.post(
    "/route/",
    response_model=RouteResponse,
    summary="Compute routes between origin and destination",
)
async def compute_route(
    request: RouteRequest,
    directions: DirectionsService = Depends(get_directions_service),
    settings: Settings = Depends(get_settings),
) -> RouteResponse:
    """
    Compute routes between origin and destination on the OSM street network.

    - Snaps origin/destination to nearest OSM nodes.
    - Returns one shortest path, or several alternatives when requested.
    - The viewport frames both endpoints.
    """
    routes = await directions.route(
        request.origin, request.destination, request.mode, request.alternates
    )
    viewport = fit_viewport(
        request.origin,
        request.destination,
        margin=settings.VIEWPORT_MARGIN,
        min_span=settings.VIEWPORT_MIN_SPAN,
    )
    return RouteResponse(routes=routes, viewport=viewport)


@router.post(
    "/viewport/",
    response_model=Viewport,
    summary="Fit a map region around two coordinates",
)
async def viewport(
    request: ViewportRequest,
    settings: Settings = Depends(get_settings),
) -> Viewport:
    return fit_viewport(
        request.a,
        request.b,
        margin=request.margin if request.margin is not None else settings.VIEWPORT_MARGIN,
        min_span=request.min_span if request.min_span is not None else settings.VIEWPORT_MIN_SPAN,
    )
