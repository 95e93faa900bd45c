# app/api/v1/routes_health.py
from fastapi import APIRouter, Depends

from app.api.dependencies import get_session_store, get_settings
from app.core.config import Settings
from app.services.session_store import SessionStore

router = APIRouter(
    prefix="/health",
    tags=["health"],
)


@router.get("/", summary="Health check")
async def health_check(
    settings: Settings = Depends(get_settings),
    store: SessionStore = Depends(get_session_store),
):
    """
    Report that the API is up, which build is running and how many
    navigation sessions are open.
    """
    return {
        "status": "ok",
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "sessions": len(store),
    }
