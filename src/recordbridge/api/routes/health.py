"""Health check endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Request

from recordbridge.backends.redis_backend import RedisCacheBackend
from recordbridge.core.config import AppSettings
from recordbridge.core.exceptions import CacheError

router = APIRouter(tags=["health"])


@router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "healthy"}


@router.get("/ready")
async def ready(request: Request) -> dict[str, str]:
    settings: AppSettings = getattr(request.app.state, "settings", None) or AppSettings()
    if not settings.redis.enabled:
        return {"status": "ready", "cache": "disabled"}
    try:
        RedisCacheBackend.from_config(settings.redis).ping()
    except CacheError as exc:
        return {"status": "degraded", "cache": str(exc)}
    return {"status": "ready", "cache": "ok"}
