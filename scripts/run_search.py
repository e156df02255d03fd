from __future__ import annotations

import argparse
import asyncio
import json

from landbot.adapters.browser.pool import browser_pool_factory
from landbot.adapters.profiles import ProfileStore
from landbot.adapters.repos.properties import PropertyRepository
from landbot.adapters.sources.base import SearchCallbacks
from landbot.config import configure_logging
from landbot.db import async_session, init_db
from landbot.registry import build_registry
from landbot.service_layer.use_cases.search import run_search


async def main() -> None:
    parser = argparse.ArgumentParser(description="Run one search for a saved profile")
    parser.add_argument("--profile", default=None, help="Profile name (default: active profile)")
    parser.add_argument("--quiet", action="store_true", help="Do not print per-listing progress")
    args = parser.parse_args()

    configure_logging()
    await init_db()

    profiles = ProfileStore.from_settings()
    profile = profiles.get(args.profile) if args.profile else profiles.get_active()
    scraping = profiles.scraping_settings()

    callbacks = SearchCallbacks(
        on_progress=None if args.quiet else print,
        on_property_found=None if args.quiet else (lambda p: print(f"  {p.id}  {p.title}  ${p.price}  {p.acres}ac")),
    )

    async with async_session() as session:
        result = await run_search(
            repository=PropertyRepository(session),
            profile=profile,
            registry=build_registry(scraping),
            callbacks=callbacks,
            pool_factory=browser_pool_factory(scraping),
        )

    print(json.dumps(result.to_dict(), indent=2))


if __name__ == "__main__":
    asyncio.run(main())
