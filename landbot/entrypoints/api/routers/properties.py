# landbot/entrypoints/api/routers/properties.py
from __future__ import annotations

from dataclasses import asdict
from datetime import datetime, timedelta
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from ..deps import profiles_dep, repository_dep, require_api_key
from ....adapters.profiles import ProfileStore
from ....adapters.repos.properties import DEFAULT_CHANGE_WINDOW, PropertyRepository
from ....domain.clock import as_naive_utc, utcnow
from ....domain.errors import AmbiguousIdError, ProfileNotFoundError, ProfileStoreError
from ....domain.scoring import score_breakdown
from ....domain.types import Property
from ....schemas import (
    DuplicateLinkOut,
    MergeOut,
    PriceChangeOut,
    PriceHistoryOut,
    PropertyDetailOut,
    PropertyOut,
    ScoreBreakdownOut,
    SnapshotOut,
)
from ....service_layer.export import export_properties

MANUAL_MATCH = "manual"

EXPORT_MEDIA_TYPES = {"csv": "text/csv", "json": "application/json"}

router = APIRouter(tags=["properties"])


def to_out(p: Property) -> PropertyOut:
    return PropertyOut(
        id=p.id,
        source=p.source,
        source_id=p.source_id,
        url=p.url,
        title=p.title,
        description=p.description,
        acres=p.acres,
        price=p.price,
        state=p.state,
        county=p.county,
        city=p.city,
        address=p.address,
        latitude=p.coordinates.latitude if p.coordinates else None,
        longitude=p.coordinates.longitude if p.coordinates else None,
        water_features=asdict(p.water_features) if p.water_features else None,
        structures=asdict(p.structures) if p.structures else None,
        utilities=asdict(p.utilities) if p.utilities else None,
        distance_to_town_minutes=p.distance_to_town_minutes,
        terrain_tags=p.terrain_tags,
        images=p.images,
        score=p.score,
        field_completeness=p.field_completeness,
        first_seen=p.first_seen,
        last_seen=p.last_seen,
        last_checked=p.last_checked,
    )


@router.get("/properties", response_model=list[PropertyOut])
async def list_properties(
    state: str | None = Query(None, min_length=2, max_length=2),
    min_price: float | None = Query(None, ge=0),
    max_price: float | None = Query(None, ge=0),
    min_acres: float | None = Query(None, ge=0),
    max_acres: float | None = Query(None, ge=0),
    min_score: float | None = Query(None),
    limit: int = Query(50, ge=1, le=500),
    repo: PropertyRepository = Depends(repository_dep),
) -> list[PropertyOut]:
    rows = await repo.find_by_filters(
        state=state.upper() if state else None,
        min_price=min_price,
        max_price=max_price,
        min_acres=min_acres,
        max_acres=max_acres,
        min_score=min_score,
        limit=limit,
    )
    return [to_out(p) for p in rows]


@router.get("/properties/new", response_model=list[PropertyOut])
async def new_properties(
    since: datetime | None = Query(None, description="Defaults to 24 hours ago"),
    repo: PropertyRepository = Depends(repository_dep),
) -> list[PropertyOut]:
    cutoff = as_naive_utc(since) if since else utcnow() - timedelta(hours=24)
    return [to_out(p) for p in await repo.new_since(cutoff)]


@router.get("/properties/price-changes", response_model=list[PriceChangeOut])
async def price_changes(
    since: datetime | None = Query(None, description=f"Defaults to {DEFAULT_CHANGE_WINDOW.days} days ago"),
    repo: PropertyRepository = Depends(repository_dep),
) -> list[PriceChangeOut]:
    changes = await repo.price_changes_since(as_naive_utc(since) if since else None)
    return [
        PriceChangeOut(
            property=to_out(c.record),
            old_price=c.old_price,
            new_price=c.new_price,
            change=c.change,
            recorded_at=c.recorded_at,
        )
        for c in changes
    ]


@router.get("/properties/export")
async def export(
    fmt: Literal["csv", "json"] = Query("csv", alias="format"),
    state: str | None = Query(None, min_length=2, max_length=2),
    min_price: float | None = Query(None, ge=0),
    max_price: float | None = Query(None, ge=0),
    min_acres: float | None = Query(None, ge=0),
    max_acres: float | None = Query(None, ge=0),
    min_score: float | None = Query(None),
    limit: int | None = Query(None, ge=1),
    repo: PropertyRepository = Depends(repository_dep),
) -> Response:
    rows = await repo.find_by_filters(
        state=state.upper() if state else None,
        min_price=min_price,
        max_price=max_price,
        min_acres=min_acres,
        max_acres=max_acres,
        min_score=min_score,
        limit=limit,
    )
    if not rows:
        raise HTTPException(status_code=404, detail="No properties found matching the filters")

    return Response(
        content=export_properties(rows, fmt),
        media_type=EXPORT_MEDIA_TYPES[fmt],
        headers={"Content-Disposition": f'attachment; filename="properties.{fmt}"'},
    )


async def _resolve_or_404(repo: PropertyRepository, id_or_prefix: str) -> Property:
    try:
        p = await repo.resolve(id_or_prefix)
    except AmbiguousIdError as e:
        raise HTTPException(status_code=409, detail={"error": str(e), "matches": e.matches})
    if p is None:
        raise HTTPException(status_code=404, detail=f"Property not found: {id_or_prefix}")
    return p


def _breakdown(p: Property, profiles: ProfileStore, name: str | None) -> ScoreBreakdownOut | None:
    try:
        profile = profiles.get(name) if name else profiles.get_active()
    except ProfileNotFoundError as e:
        if name:
            raise HTTPException(status_code=404, detail=str(e))
        return None
    except ProfileStoreError:
        # no profiles file yet; detail still renders
        return None

    b = score_breakdown(p, profile.criteria)
    return ScoreBreakdownOut(
        profile=profile.name,
        water=b.water,
        structures=b.structures,
        terrain=b.terrain,
        utilities=b.utilities,
        distance=b.distance,
        total=b.total,
        explain=b.explain,
    )


@router.post(
    "/properties/{canonical_id}/duplicates/{duplicate_id}",
    response_model=MergeOut,
    dependencies=[Depends(require_api_key)],
)
async def merge_properties(
    canonical_id: str,
    duplicate_id: str,
    repo: PropertyRepository = Depends(repository_dep),
) -> MergeOut:
    """Manually mark `duplicate_id` as a duplicate of `canonical_id`."""
    if canonical_id == duplicate_id:
        raise HTTPException(status_code=400, detail="A property cannot be a duplicate of itself")
    if await repo.find_by_id(canonical_id) is None:
        raise HTTPException(status_code=404, detail=f"Canonical property not found: {canonical_id}")
    if await repo.find_by_id(duplicate_id) is None:
        raise HTTPException(status_code=404, detail=f"Duplicate property not found: {duplicate_id}")

    created = await repo.link_duplicates(canonical_id, [duplicate_id], MANUAL_MATCH, 1.0)
    await repo.commit()
    return MergeOut(canonical_id=canonical_id, duplicate_id=duplicate_id, created=created > 0)


@router.get("/properties/{id_or_prefix}", response_model=PropertyDetailOut)
async def show_property(
    id_or_prefix: str,
    profile: str | None = Query(None, description="Profile to explain the score with; defaults to the active one"),
    repo: PropertyRepository = Depends(repository_dep),
    profiles: ProfileStore = Depends(profiles_dep),
) -> PropertyDetailOut:
    p = await _resolve_or_404(repo, id_or_prefix)

    snapshots = await repo.snapshots_for(p.id)
    history = await repo.price_history_for(p.id)
    links = await repo.duplicates_for(p.id)

    return PropertyDetailOut(
        property=to_out(p),
        snapshots=[SnapshotOut(scraped_at=s.scraped_at, fields=s.fields) for s in snapshots],
        price_history=[
            PriceHistoryOut(price=h.price, previous_price=h.previous_price, recorded_at=h.recorded_at)
            for h in history
        ],
        duplicates=[
            DuplicateLinkOut(
                canonical_id=d.canonical_id,
                duplicate_id=d.duplicate_id,
                match_method=d.match_method,
                confidence=d.confidence,
                detected_at=d.detected_at,
            )
            for d in links
        ],
        score_breakdown=_breakdown(p, profiles, profile),
    )
