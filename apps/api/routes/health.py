"""Liveness endpoint."""

from datetime import datetime, timezone

from fastapi import APIRouter

from apps.api.schemas.health import HealthResponse
from apps.api.services.app_context import SettingsDep, StoreDep

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health(settings: SettingsDep, store: StoreDep) -> HealthResponse:
    """ok, build version (GIT_SHA or dev), server time and store dialect. Does not touch the database."""
    return HealthResponse(
        ok=True,
        version=settings.version,
        time=datetime.now(timezone.utc).isoformat(),
        database=store.dialect,
    )
