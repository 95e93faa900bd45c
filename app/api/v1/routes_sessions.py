# app/api/v1/routes_sessions.py
from fastapi import APIRouter, Depends, HTTPException

from app.api.dependencies import get_session_store
from app.models.geo import Coordinate
from app.models.map import MapState
from app.models.session import (
    AuthorizationUpdate,
    CreateSessionRequest,
    LocationPushResponse,
    SearchQuery,
    SearchResult,
    SessionInfo,
)
from app.services.location import PushLocationProvider
from app.services.session_store import SessionEntry, SessionStore

router = APIRouter(
    prefix="/sessions",
    tags=["sessions"],
)


async def _entry_or_404(session_id: str, store: SessionStore) -> SessionEntry:
    await store.sweep()
    entry = store.get(session_id)
    if entry is None:
        raise HTTPException(status_code=404, detail=f"Unknown session '{session_id}'")
    return entry


def _info(entry: SessionEntry) -> SessionInfo:
    session = entry.session
    return SessionInfo(
        id=entry.id,
        state=session.state,
        authorization=entry.location.authorization_status(),
        user_location=session.user_location,
        destination=session.dest_location,
    )


def _push_provider_or_409(entry: SessionEntry) -> PushLocationProvider:
    if not isinstance(entry.location, PushLocationProvider):
        raise HTTPException(
            status_code=409,
            detail="Session uses a fixed origin and does not accept location updates",
        )
    return entry.location


@router.post("/", response_model=SessionInfo, status_code=201, summary="Open a navigation session")
async def create_session(
    request: CreateSessionRequest | None = None,
    store: SessionStore = Depends(get_session_store),
) -> SessionInfo:
    entry = await store.create(origin=request.origin if request else None)
    await entry.session.start()
    return _info(entry)


@router.get("/{session_id}", response_model=SessionInfo)
async def get_session(session_id: str, store: SessionStore = Depends(get_session_store)) -> SessionInfo:
    return _info(await _entry_or_404(session_id, store))


@router.delete("/{session_id}", status_code=204)
async def delete_session(session_id: str, store: SessionStore = Depends(get_session_store)) -> None:
    if not await store.remove(session_id):
        raise HTTPException(status_code=404, detail=f"Unknown session '{session_id}'")


@router.post("/{session_id}/authorization", response_model=SessionInfo)
async def update_authorization(
    session_id: str,
    update: AuthorizationUpdate,
    store: SessionStore = Depends(get_session_store),
) -> SessionInfo:
    entry = await _entry_or_404(session_id, store)
    _push_provider_or_409(entry).set_authorization(update.status)
    return _info(entry)


@router.post("/{session_id}/location", response_model=LocationPushResponse)
async def push_location(
    session_id: str,
    coordinate: Coordinate,
    store: SessionStore = Depends(get_session_store),
) -> LocationPushResponse:
    entry = await _entry_or_404(session_id, store)
    accepted = _push_provider_or_409(entry).push_fix(coordinate)
    return LocationPushResponse(accepted=accepted)


@router.post("/{session_id}/search", response_model=SearchResult)
async def search(
    session_id: str,
    query: SearchQuery,
    store: SessionStore = Depends(get_session_store),
) -> SearchResult:
    """
    Geocode the query, wait for the user's position, route between them
    and update the session map. Failures come back as a `failed` result.
    """
    entry = await _entry_or_404(session_id, store)
    return await entry.session.search(query.query)


@router.get("/{session_id}/map", response_model=MapState)
async def get_map(session_id: str, store: SessionStore = Depends(get_session_store)) -> MapState:
    entry = await _entry_or_404(session_id, store)
    return entry.surface.snapshot()
