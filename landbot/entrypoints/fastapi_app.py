# landbot/entrypoints/fastapi_app.py
from __future__ import annotations

from fastapi import FastAPI

from ..adapters.browser.pool import browser_pool_factory
from ..adapters.profiles import ProfileStore
from ..config import configure_logging
from ..db import init_db
from ..registry import PluginRegistry, build_registry
from .api.routers import health, monitoring, profiles as profiles_router, properties, searches


def create_app(
    *,
    registry: PluginRegistry | None = None,
    profiles: ProfileStore | None = None,
) -> FastAPI:
    configure_logging()
    app = FastAPI(title="Landbot - Rural Land Listings")

    app.state.profiles = profiles or ProfileStore.from_settings()
    scraping = app.state.profiles.scraping_settings()
    app.state.registry = registry or build_registry(scraping)
    app.state.pool_factory = browser_pool_factory(scraping)

    @app.on_event("startup")
    async def _startup() -> None:
        # Single place where DB tables are created in dev.
        await init_db()

    app.include_router(health.router)
    app.include_router(properties.router)
    app.include_router(searches.router)
    app.include_router(monitoring.router)
    app.include_router(profiles_router.router)

    return app
