# landbot/entrypoints/api/routers/health.py
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Request

from ..deps import require_api_key
from ....config import settings

router = APIRouter(tags=["health"])


@router.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/debug/config", dependencies=[Depends(require_api_key)])
def debug_config(request: Request) -> dict[str, Any]:
    registry = request.app.state.registry
    return {
        "ENV": settings.ENV,
        "LANDBOT_DB_URL": settings.LANDBOT_DB_URL,
        "PROFILES_PATH": settings.PROFILES_PATH,
        "BROWSER_HEADLESS": settings.BROWSER_HEADLESS,
        "BROWSER_STEALTH": settings.BROWSER_STEALTH,
        "MONITOR_WEBHOOK_SET": bool(settings.MONITOR_WEBHOOK_URL),
        "sources": [s.metadata.name for s in registry.sources()],
        "matchers": [m.name for m in registry.matchers()],
    }
