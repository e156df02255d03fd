# landbot/entrypoints/api/routers/searches.py
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from ..deps import pool_factory_dep, profiles_dep, registry_dep, repository_dep, require_api_key
from ....adapters.profiles import ProfileStore
from ....adapters.repos.properties import PropertyRepository
from ....domain.criteria import Profile
from ....domain.errors import ProfileNotFoundError, ProfileStoreError, SessionLaunchError
from ....registry import PluginRegistry
from ....schemas import LastRunOut, SearchResultOut
from ....service_layer.use_cases.search import PoolFactory, run_search

log = logging.getLogger(__name__)

router = APIRouter(tags=["searches"])


def _load_profile(profiles: ProfileStore, name: str | None) -> Profile:
    try:
        return profiles.get(name) if name else profiles.get_active()
    except ProfileNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ProfileStoreError as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/searches", response_model=SearchResultOut, dependencies=[Depends(require_api_key)])
async def start_search(
    profile: str | None = Query(None, description="Profile name; defaults to the active profile"),
    repo: PropertyRepository = Depends(repository_dep),
    profiles: ProfileStore = Depends(profiles_dep),
    registry: PluginRegistry = Depends(registry_dep),
    pool_factory: PoolFactory = Depends(pool_factory_dep),
) -> SearchResultOut:
    prof = _load_profile(profiles, profile)
    try:
        result = await run_search(repository=repo, profile=prof, registry=registry, pool_factory=pool_factory)
    except SessionLaunchError as e:
        log.error("Search for %r aborted: %s", prof.name, e)
        raise HTTPException(status_code=503, detail=str(e))
    return SearchResultOut(**result.to_dict())


@router.get("/searches/last", response_model=LastRunOut)
async def last_search(
    profile: str | None = Query(None),
    repo: PropertyRepository = Depends(repository_dep),
) -> LastRunOut:
    return LastRunOut(profile=profile, completed_at=await repo.last_run_timestamp(profile))
