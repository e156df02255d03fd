# landbot/adapters/repos/properties.py
from __future__ import annotations

import enum
from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta
from typing import Any, Callable

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from ...domain.clock import utcnow
from ...domain.errors import AmbiguousIdError
from ...domain.property import (
    comparable_fields,
    field_completeness,
    properties_differ,
    structures_from_dict,
    utilities_from_dict,
    water_features_from_dict,
)
from ...domain.types import (
    Coordinates,
    DuplicateLinkView,
    PriceChange,
    PriceHistoryEntry,
    Property,
    Snapshot,
)
from ...models import DuplicateLink, PriceHistory, PropertyRow, PropertySnapshot, SearchRun

DEFAULT_CHANGE_WINDOW = timedelta(days=30)


class UpsertStatus(str, enum.Enum):
    inserted = "inserted"
    updated = "updated"
    unchanged = "unchanged"


@dataclass
class SearchRunRecord:
    profile_name: str
    started_at: datetime
    completed_at: datetime
    properties_found: int
    sources_used: list[str] = field(default_factory=list)
    filters_applied: dict[str, list[str]] = field(default_factory=dict)
    criteria_snapshot: dict[str, Any] = field(default_factory=dict)
    errors: list[str] = field(default_factory=list)


def _nested(value: Any) -> dict[str, Any] | None:
    return asdict(value) if value is not None else None


def _apply(row: PropertyRow, p: Property, completeness: int) -> None:
    row.source = p.source
    row.source_id = p.source_id
    row.url = p.url
    row.title = p.title

    row.description = p.description
    row.acres = p.acres
    row.price = p.price
    row.state = p.state
    row.county = p.county
    row.city = p.city
    row.address = p.address

    row.latitude = p.coordinates.latitude if p.coordinates else None
    row.longitude = p.coordinates.longitude if p.coordinates else None

    row.water_features = _nested(p.water_features)
    row.structures = _nested(p.structures)
    row.utilities = _nested(p.utilities)
    row.distance_to_town_minutes = p.distance_to_town_minutes
    row.terrain_tags = list(p.terrain_tags) if p.terrain_tags is not None else None
    row.images = list(p.images) if p.images is not None else None
    row.raw_data = p.raw_data

    row.score = p.score
    row.field_completeness = completeness


def _to_domain(row: PropertyRow) -> Property:
    coords = None
    if row.latitude is not None and row.longitude is not None:
        coords = Coordinates(latitude=row.latitude, longitude=row.longitude)

    return Property(
        id=row.id,
        source=row.source,
        source_id=row.source_id,
        url=row.url,
        title=row.title,
        description=row.description,
        acres=row.acres,
        price=row.price,
        state=row.state,
        county=row.county,
        city=row.city,
        address=row.address,
        coordinates=coords,
        water_features=water_features_from_dict(row.water_features),
        structures=structures_from_dict(row.structures),
        utilities=utilities_from_dict(row.utilities),
        distance_to_town_minutes=row.distance_to_town_minutes,
        terrain_tags=list(row.terrain_tags) if row.terrain_tags is not None else None,
        images=list(row.images) if row.images is not None else None,
        raw_data=row.raw_data,
        score=row.score,
        field_completeness=row.field_completeness,
        first_seen=row.first_seen,
        last_seen=row.last_seen,
        last_checked=row.last_checked,
    )


class PropertyRepository:
    """
    Single source of truth for listing state, history and duplicate links.

    Methods flush; the caller owns the transaction (see commit/rollback).
    """

    def __init__(self, session: AsyncSession, *, clock: Callable[[], datetime] = utcnow):
        self.session = session
        self.clock = clock

    async def commit(self) -> None:
        await self.session.commit()

    async def rollback(self) -> None:
        await self.session.rollback()

    # -----------------------------
    # Writes
    # -----------------------------
    def _add_snapshot(self, p: Property, scraped_at: datetime) -> None:
        self.session.add(
            PropertySnapshot(
                property_id=p.id,
                scraped_at=scraped_at,
                data=comparable_fields(p),
                raw_data=p.raw_data,
            )
        )

    async def upsert(self, p: Property) -> UpsertStatus:
        """
        Insert, update or merely re-observe a listing.

          - new id: insert, first snapshot
          - any comparable field differs: update, snapshot, price history if the price moved
          - otherwise: only last_checked moves
        """
        completeness = field_completeness(p)
        now = self.clock()

        row = await self.session.get(PropertyRow, p.id)
        if row is None:
            row = PropertyRow(id=p.id, first_seen=now, last_seen=now, last_checked=now)
            _apply(row, p, completeness)
            self.session.add(row)
            self._add_snapshot(p, now)
            await self.session.flush()
            return UpsertStatus.inserted

        if not properties_differ(_to_domain(row), p):
            row.last_checked = now
            await self.session.flush()
            return UpsertStatus.unchanged

        previous_price = row.price
        _apply(row, p, completeness)
        row.last_seen = now
        row.last_checked = now
        self._add_snapshot(p, now)

        if p.price is not None and previous_price != p.price:
            self.session.add(
                PriceHistory(
                    property_id=p.id,
                    price=p.price,
                    previous_price=previous_price,
                    recorded_at=now,
                )
            )

        await self.session.flush()
        return UpsertStatus.updated

    async def record_run(self, run: SearchRunRecord) -> int:
        row = SearchRun(
            profile_name=run.profile_name,
            started_at=run.started_at,
            completed_at=run.completed_at,
            properties_found=run.properties_found,
            sources_used=list(run.sources_used),
            filters_applied=dict(run.filters_applied),
            criteria_snapshot=dict(run.criteria_snapshot),
            errors=list(run.errors),
        )
        self.session.add(row)
        await self.session.flush()
        return row.id

    async def link_duplicates(
        self,
        canonical_id: str,
        duplicate_ids: list[str],
        method: str,
        confidence: float,
    ) -> int:
        """Assert duplicate edges. Self-links are skipped, existing edges are left alone."""
        created = 0
        now = self.clock()
        for duplicate_id in duplicate_ids:
            if duplicate_id == canonical_id:
                continue

            # either direction counts as the same pair
            q = select(DuplicateLink.id).where(
                DuplicateLink.match_method == method,
                or_(
                    (DuplicateLink.canonical_id == canonical_id) & (DuplicateLink.duplicate_id == duplicate_id),
                    (DuplicateLink.canonical_id == duplicate_id) & (DuplicateLink.duplicate_id == canonical_id),
                ),
            )
            if (await self.session.execute(q)).first() is not None:
                continue

            self.session.add(
                DuplicateLink(
                    canonical_id=canonical_id,
                    duplicate_id=duplicate_id,
                    match_method=method,
                    confidence=confidence,
                    detected_at=now,
                )
            )
            created += 1

        await self.session.flush()
        return created

    # -----------------------------
    # Reads
    # -----------------------------
    async def find_by_id(self, property_id: str) -> Property | None:
        row = await self.session.get(PropertyRow, property_id)
        return _to_domain(row) if row is not None else None

    async def find_by_id_prefix(self, prefix: str) -> list[Property]:
        q = select(PropertyRow).where(PropertyRow.id.startswith(prefix, autoescape=True)).order_by(PropertyRow.id)
        rows = (await self.session.execute(q)).scalars().all()
        return [_to_domain(r) for r in rows]

    async def resolve(self, id_or_prefix: str) -> Property | None:
        """Exact id first, then a unique prefix."""
        exact = await self.find_by_id(id_or_prefix)
        if exact is not None:
            return exact
        matches = await self.find_by_id_prefix(id_or_prefix)
        if len(matches) > 1:
            raise AmbiguousIdError(id_or_prefix, [m.id for m in matches])
        return matches[0] if matches else None

    async def find_by_filters(
        self,
        *,
        state: str | None = None,
        min_price: float | None = None,
        max_price: float | None = None,
        min_acres: float | None = None,
        max_acres: float | None = None,
        min_score: float | None = None,
        limit: int | None = None,
    ) -> list[Property]:
        q = select(PropertyRow)
        if state is not None:
            q = q.where(PropertyRow.state == state)
        if min_price is not None:
            q = q.where(PropertyRow.price >= min_price)
        if max_price is not None:
            q = q.where(PropertyRow.price <= max_price)
        if min_acres is not None:
            q = q.where(PropertyRow.acres >= min_acres)
        if max_acres is not None:
            q = q.where(PropertyRow.acres <= max_acres)
        if min_score is not None:
            q = q.where(PropertyRow.score >= min_score)

        q = q.order_by(PropertyRow.score.desc(), PropertyRow.last_seen.desc())
        if limit is not None:
            q = q.limit(limit)

        rows = (await self.session.execute(q)).scalars().all()
        return [_to_domain(r) for r in rows]

    async def snapshots_for(self, property_id: str) -> list[Snapshot]:
        q = (
            select(PropertySnapshot)
            .where(PropertySnapshot.property_id == property_id)
            .order_by(PropertySnapshot.scraped_at.desc(), PropertySnapshot.id.desc())
        )
        rows = (await self.session.execute(q)).scalars().all()
        return [Snapshot(property_id=r.property_id, scraped_at=r.scraped_at, fields=dict(r.data)) for r in rows]

    async def price_history_for(self, property_id: str) -> list[PriceHistoryEntry]:
        q = (
            select(PriceHistory)
            .where(PriceHistory.property_id == property_id)
            .order_by(PriceHistory.recorded_at.desc(), PriceHistory.id.desc())
        )
        rows = (await self.session.execute(q)).scalars().all()
        return [
            PriceHistoryEntry(
                property_id=r.property_id,
                price=r.price,
                previous_price=r.previous_price,
                recorded_at=r.recorded_at,
            )
            for r in rows
        ]

    async def new_since(self, since: datetime) -> list[Property]:
        q = (
            select(PropertyRow)
            .where(PropertyRow.first_seen > since)
            .order_by(PropertyRow.first_seen.desc(), PropertyRow.id)
        )
        rows = (await self.session.execute(q)).scalars().all()
        return [_to_domain(r) for r in rows]

    async def changed_since(self, since: datetime | None = None) -> list[Property]:
        """Listings with at least one price history entry after `since` (default: last 30 days)."""
        cutoff = since if since is not None else self.clock() - DEFAULT_CHANGE_WINDOW
        latest = func.max(PriceHistory.recorded_at).label("latest")
        q = (
            select(PropertyRow, latest)
            .join(PriceHistory, PriceHistory.property_id == PropertyRow.id)
            .where(PriceHistory.recorded_at > cutoff)
            .group_by(PropertyRow.id)
            .order_by(latest.desc())
        )
        rows = (await self.session.execute(q)).all()
        return [_to_domain(row) for row, _ in rows]

    async def price_changes_since(self, since: datetime | None = None) -> list[PriceChange]:
        cutoff = since if since is not None else self.clock() - DEFAULT_CHANGE_WINDOW
        q = (
            select(PriceHistory, PropertyRow)
            .join(PropertyRow, PropertyRow.id == PriceHistory.property_id)
            .where(PriceHistory.recorded_at > cutoff)
            .order_by(PriceHistory.recorded_at.desc(), PriceHistory.id.desc())
        )
        rows = (await self.session.execute(q)).all()
        return [
            PriceChange(
                record=_to_domain(prop),
                old_price=entry.previous_price,
                new_price=entry.price,
                recorded_at=entry.recorded_at,
            )
            for entry, prop in rows
        ]

    async def last_run_timestamp(self, profile_name: str | None = None) -> datetime | None:
        q = select(func.max(SearchRun.completed_at))
        if profile_name is not None:
            q = q.where(SearchRun.profile_name == profile_name)
        return (await self.session.execute(q)).scalar_one_or_none()

    async def duplicates_for(self, property_id: str) -> list[DuplicateLinkView]:
        q = (
            select(DuplicateLink)
            .where(or_(DuplicateLink.canonical_id == property_id, DuplicateLink.duplicate_id == property_id))
            .order_by(DuplicateLink.detected_at.desc(), DuplicateLink.id)
        )
        rows = (await self.session.execute(q)).scalars().all()
        return [
            DuplicateLinkView(
                canonical_id=r.canonical_id,
                duplicate_id=r.duplicate_id,
                match_method=r.match_method,
                confidence=r.confidence,
                detected_at=r.detected_at,
            )
            for r in rows
        ]
