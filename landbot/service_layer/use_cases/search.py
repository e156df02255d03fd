# landbot/service_layer/use_cases/search.py
from __future__ import annotations

import asyncio
import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable

from ...adapters.browser.pool import BrowserPool, create_browser_pool
from ...adapters.repos.properties import PropertyRepository, SearchRunRecord, UpsertStatus
from ...adapters.sources.base import PropertySource, SearchCallbacks
from ...domain.clock import utcnow
from ...domain.criteria import Profile, SearchCriteria
from ...domain.dedup import select_canonical
from ...domain.errors import SessionLaunchError
from ...domain.property import field_completeness
from ...domain.scoring import score_property
from ...domain.types import Property
from ...registry import PluginRegistry

log = logging.getLogger(__name__)

NO_SOURCES_ERROR = "No enabled property sources"

PoolFactory = Callable[[], Awaitable[BrowserPool]]


@dataclass
class SearchResult:
    properties_found: int = 0
    sources_used: list[str] = field(default_factory=list)
    filters_applied: dict[str, list[str]] = field(default_factory=dict)
    errors: list[str] = field(default_factory=list)

    per_source: dict[str, int] = field(default_factory=dict)
    inserted: int = 0
    updated: int = 0
    unchanged: int = 0
    duplicates_linked: int = 0

    # set when the audit record itself could not be written
    audit_error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


async def _collect(
    source: PropertySource,
    criteria: SearchCriteria,
    callbacks: SearchCallbacks,
    pool: BrowserPool,
) -> list[Property]:
    out: list[Property] = []
    async for p in source.search(criteria, callbacks=callbacks, pool=pool):
        out.append(p)
    return out


async def _run_source(
    source: PropertySource,
    criteria: SearchCriteria,
    callbacks: SearchCallbacks,
    pool: BrowserPool,
    errors: list[str],
) -> list[Property]:
    name = source.metadata.name
    callbacks.progress(f"Searching {source.metadata.display_name}...")
    try:
        records = await _collect(source, criteria, callbacks, pool)
    except Exception as e:
        msg = f"Error searching {name}: {e}"
        log.warning(msg)
        errors.append(msg)
        callbacks.error(e)
        return []

    log.info("Source %s returned %d properties", name, len(records))
    return records


def _reason(e: Exception) -> object:
    # DBAPIError text carries the full statement and parameters; keep the driver message
    return getattr(e, "orig", None) or e


async def _persist(repository: PropertyRepository, records: list[Property], result: SearchResult) -> list[Property]:
    saved: list[Property] = []
    for p in records:
        try:
            status = await repository.upsert(p)
            await repository.commit()
        except Exception as e:
            await repository.rollback()
            msg = f"Error saving property {p.id}: {_reason(e)}"
            log.warning(msg)
            result.errors.append(msg)
            continue

        if status == UpsertStatus.inserted:
            result.inserted += 1
        elif status == UpsertStatus.updated:
            result.updated += 1
        else:
            result.unchanged += 1
        saved.append(p)
    return saved


async def _deduplicate(
    repository: PropertyRepository,
    registry: PluginRegistry,
    records: list[Property],
    result: SearchResult,
) -> None:
    by_id = {p.id: p for p in records}
    batch = list(by_id.values())

    for p in batch:
        for matcher in registry.matchers():
            for match in matcher.find_duplicates(p, batch):
                other = by_id.get(match.property_id)
                if other is None:
                    continue
                canonical = select_canonical(p, other)
                duplicate = other if canonical is p else p
                try:
                    result.duplicates_linked += await repository.link_duplicates(
                        canonical.id, [duplicate.id], matcher.name, match.confidence
                    )
                    await repository.commit()
                except Exception as e:
                    await repository.rollback()
                    msg = f"Error linking duplicates {canonical.id} <- {duplicate.id} ({matcher.name}): {_reason(e)}"
                    log.warning(msg)
                    result.errors.append(msg)


async def _write_audit(
    repository: PropertyRepository,
    profile: Profile,
    started_at: datetime,
    result: SearchResult,
    clock: Callable[[], datetime],
) -> None:
    run = SearchRunRecord(
        profile_name=profile.name,
        started_at=started_at,
        completed_at=clock(),
        properties_found=result.properties_found,
        sources_used=list(result.sources_used),
        filters_applied=dict(result.filters_applied),
        criteria_snapshot=profile.criteria.model_dump(mode="json"),
        errors=list(result.errors),
    )
    try:
        await repository.record_run(run)
        await repository.commit()
    except Exception as e:
        await repository.rollback()
        result.audit_error = f"Failed to record search run for {profile.name!r}: {_reason(e)}"
        log.error(result.audit_error)


async def run_search(
    *,
    repository: PropertyRepository,
    profile: Profile,
    registry: PluginRegistry,
    callbacks: SearchCallbacks | None = None,
    pool_factory: PoolFactory = create_browser_pool,
    clock: Callable[[], datetime] = utcnow,
) -> SearchResult:
    """
    One search run for `profile`:

      1) resolve enabled sources (priority order)
      2) open one shared browser
      3) run every source concurrently; a failing source only costs its own records
      4) score, persist, deduplicate the merged batch
      5) write the search run audit record

    Raises SessionLaunchError if the shared browser cannot start. Every other
    failure ends up in `SearchResult.errors` (or `audit_error`).
    """
    cb = callbacks or SearchCallbacks()
    started_at = clock()
    result = SearchResult()

    # -------------------------
    # Phase 1: SETUP
    # -------------------------
    sources = registry.enabled_sources(profile)
    if not sources:
        log.warning("Profile %r has no enabled property sources", profile.name)
        result.errors.append(NO_SOURCES_ERROR)
        await _write_audit(repository, profile, started_at, result, clock)
        return result

    result.sources_used = [s.metadata.name for s in sources]
    result.filters_applied = {s.metadata.name: s.metadata.supported_filters.names() for s in sources}
    cb.progress(f"Searching {len(sources)} sources: {', '.join(result.sources_used)}")

    try:
        pool = await pool_factory()
    except Exception as e:
        raise SessionLaunchError(f"Failed to launch shared browser: {e}") from e

    # -------------------------
    # Phase 2: FAN-OUT / JOIN
    # -------------------------
    criteria = profile.criteria
    try:
        batches = await asyncio.gather(
            *(_run_source(s, criteria, cb, pool, result.errors) for s in sources)
        )
    finally:
        try:
            await pool.close()
        except Exception as e:
            log.warning("Error closing shared browser: %s", e)
            result.errors.append(f"Error closing browser: {e}")

    records: list[Property] = []
    for source, batch in zip(sources, batches):
        result.per_source[source.metadata.name] = len(batch)
        records.extend(batch)
    result.properties_found = len(records)

    # -------------------------
    # Phase 3: SCORE
    # -------------------------
    for p in records:
        p.score = score_property(p, criteria)
        p.field_completeness = field_completeness(p)

    # -------------------------
    # Phase 4: PERSIST + DEDUP
    # -------------------------
    saved = await _persist(repository, records, result)
    await _deduplicate(repository, registry, saved, result)

    log.info(
        "Search %r: %d found (%d new, %d updated, %d unchanged), %d duplicate links, %d errors",
        profile.name,
        result.properties_found,
        result.inserted,
        result.updated,
        result.unchanged,
        result.duplicates_linked,
        len(result.errors),
    )

    # -------------------------
    # Phase 5: AUDIT
    # -------------------------
    await _write_audit(repository, profile, started_at, result, clock)
    return result
