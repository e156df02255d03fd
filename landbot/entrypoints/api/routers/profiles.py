# landbot/entrypoints/api/routers/profiles.py
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from ..deps import profiles_dep, require_api_key
from ....adapters.profiles import ProfileStore
from ....domain.criteria import Profile
from ....domain.errors import ProfileExistsError, ProfileNotFoundError, ProfileStoreError
from ....schemas import ProfileCreate, ProfileSummaryOut

router = APIRouter(prefix="/profiles", tags=["profiles"])


def _store_error(e: ProfileStoreError) -> HTTPException:
    if isinstance(e, ProfileNotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, ProfileExistsError):
        return HTTPException(status_code=409, detail=str(e))
    return HTTPException(status_code=500, detail=str(e))


@router.get("", response_model=list[ProfileSummaryOut])
async def list_profiles(profiles: ProfileStore = Depends(profiles_dep)) -> list[ProfileSummaryOut]:
    try:
        data = profiles.load()
    except ProfileStoreError as e:
        raise _store_error(e)
    return [
        ProfileSummaryOut(name=name, description=p.description, active=name == data.active_profile)
        for name, p in data.profiles.items()
    ]


@router.get("/{name}", response_model=Profile)
async def show_profile(name: str, profiles: ProfileStore = Depends(profiles_dep)) -> Profile:
    try:
        return profiles.get(name)
    except ProfileStoreError as e:
        raise _store_error(e)


@router.post("/{name}/activate", response_model=ProfileSummaryOut, dependencies=[Depends(require_api_key)])
async def activate_profile(name: str, profiles: ProfileStore = Depends(profiles_dep)) -> ProfileSummaryOut:
    try:
        profiles.set_active(name)
        p = profiles.get(name)
    except ProfileStoreError as e:
        raise _store_error(e)
    return ProfileSummaryOut(name=name, description=p.description, active=True)


@router.post("", response_model=Profile, status_code=201, dependencies=[Depends(require_api_key)])
async def create_profile(body: ProfileCreate, profiles: ProfileStore = Depends(profiles_dep)) -> Profile:
    try:
        return profiles.create(body.name, from_profile=body.from_profile, description=body.description)
    except ProfileStoreError as e:
        raise _store_error(e)
