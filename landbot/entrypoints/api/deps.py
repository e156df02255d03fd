# landbot/entrypoints/api/deps.py
from __future__ import annotations

from fastapi import Depends, Header, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ...adapters.browser.pool import create_browser_pool
from ...adapters.profiles import ProfileStore
from ...adapters.repos.properties import PropertyRepository
from ...config import settings
from ...db import get_session
from ...integrations.base import NotificationProvider
from ...registry import PluginRegistry
from ...service_layer.use_cases.search import PoolFactory


def require_api_key(x_api_key: str | None = Header(default=None, alias="X-API-Key")) -> None:
    if settings.API_KEY:
        if not x_api_key or x_api_key != settings.API_KEY:
            raise HTTPException(status_code=401, detail="Invalid API key")


def repository_dep(session: AsyncSession = Depends(get_session)) -> PropertyRepository:
    return PropertyRepository(session)


def registry_dep(request: Request) -> PluginRegistry:
    return request.app.state.registry


def profiles_dep(request: Request) -> ProfileStore:
    return request.app.state.profiles


def pool_factory_dep(request: Request) -> PoolFactory:
    return getattr(request.app.state, "pool_factory", create_browser_pool)


def notifiers_dep(request: Request) -> list[NotificationProvider] | None:
    # None means the default console/file/webhook set
    return getattr(request.app.state, "notifiers", None)
