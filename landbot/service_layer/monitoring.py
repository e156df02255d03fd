# landbot/service_layer/monitoring.py
from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from ..adapters.browser.pool import create_browser_pool
from ..adapters.profiles import ProfileStore
from ..adapters.repos.properties import PropertyRepository
from ..domain.clock import utcnow
from ..domain.types import PriceChange, Property
from ..integrations.base import EventType, MonitoringEvent, NotificationProvider
from ..integrations.console import ConsoleNotifier
from ..integrations.file import FileNotifier
from ..integrations.webhook import WebhookNotifier
from ..models import MonitoringJob
from ..registry import PluginRegistry
from .jobruns import finish_job_run_fail, finish_job_run_success, start_job_run
from .use_cases.search import PoolFactory, run_search

log = logging.getLogger(__name__)


@dataclass
class MonitoringOutcome:
    total_properties: int = 0
    new_properties: int = 0
    price_changes: int = 0
    duration_s: float = 0.0
    error: str | None = None


def default_notifiers() -> list[NotificationProvider]:
    out: list[NotificationProvider] = [ConsoleNotifier(), FileNotifier.from_settings()]
    webhook = WebhookNotifier.from_settings()
    if webhook is not None:
        out.append(webhook)
    return out


async def notify(
    providers: Sequence[NotificationProvider],
    channels: Sequence[str],
    event: MonitoringEvent,
) -> None:
    """Deliver to every enabled provider on the job's channels. Failures are logged, not raised."""
    selected = [p for p in providers if p.enabled and p.channel in channels]
    results = await asyncio.gather(*(p.send(event) for p in selected), return_exceptions=True)
    for provider, res in zip(selected, results):
        if isinstance(res, Exception):
            log.warning("Notifier %s raised on %s: %s", provider.name, event.type.value, res)
        elif not res.ok:
            log.warning("Notifier %s failed on %s: %s", provider.name, event.type.value, res.error)


def _new_properties_event(profile_name: str, now: datetime, props: list[Property]) -> MonitoringEvent:
    return MonitoringEvent(
        type=EventType.new_properties,
        timestamp=now,
        profile_name=profile_name,
        data={
            "count": len(props),
            "properties": [
                {"id": p.id, "title": p.title, "url": p.url, "price": p.price, "acres": p.acres} for p in props
            ],
        },
    )


def _price_changes_event(profile_name: str, now: datetime, changes: list[PriceChange]) -> MonitoringEvent:
    return MonitoringEvent(
        type=EventType.price_changes,
        timestamp=now,
        profile_name=profile_name,
        data={
            "count": len(changes),
            "changes": [
                {
                    "property_id": c.record.id,
                    "title": c.record.title,
                    "old_price": c.old_price,
                    "new_price": c.new_price,
                    "change": c.change,
                }
                for c in changes
            ],
        },
    )


async def run_monitoring_job(
    session: AsyncSession,
    job: MonitoringJob,
    *,
    profiles: ProfileStore,
    registry: PluginRegistry,
    notifiers: Sequence[NotificationProvider] | None = None,
    pool_factory: PoolFactory = create_browser_pool,
    clock: Callable[[], datetime] = utcnow,
) -> MonitoringOutcome:
    """
    Scheduled search for one monitoring job.

    "New" means first seen after the profile's previous run (nothing on the
    very first run); price changes are counted from the same point, or the
    last 30 days when there is no previous run.
    """
    providers = default_notifiers() if notifiers is None else notifiers

    # plain values up front: search-time rollbacks expire ORM instances
    job_id = job.id
    profile_name = job.profile_name
    channels = list(job.notification_channels or [])

    jr = await start_job_run(session, job_id)
    run_id = jr.id
    await session.commit()

    repo = PropertyRepository(session, clock=clock)
    started = time.monotonic()
    log.info("Running monitoring job %s for %s", job_id, profile_name)

    try:
        profile = profiles.get(profile_name)
        last_run = await repo.last_run_timestamp(profile.name)
        result = await run_search(
            repository=repo,
            profile=profile,
            registry=registry,
            pool_factory=pool_factory,
            clock=clock,
        )
        new_props = await repo.new_since(last_run) if last_run is not None else []
        changes = await repo.price_changes_since(last_run)
    except Exception as e:
        await session.rollback()
        await finish_job_run_fail(session, run_id, e)
        await session.commit()
        log.error("Monitoring job %s failed: %s", job_id, e)
        await notify(
            providers,
            channels,
            MonitoringEvent(
                type=EventType.search_error,
                timestamp=clock(),
                profile_name=profile_name,
                data={"error": str(e)},
            ),
        )
        return MonitoringOutcome(duration_s=time.monotonic() - started, error=str(e))

    outcome = MonitoringOutcome(
        total_properties=result.properties_found,
        new_properties=len(new_props),
        price_changes=len(changes),
        duration_s=time.monotonic() - started,
    )

    await finish_job_run_success(
        session,
        run_id,
        total_properties=outcome.total_properties,
        new_properties=outcome.new_properties,
        price_changes=outcome.price_changes,
    )
    await session.commit()

    now = clock()
    if new_props:
        await notify(providers, channels, _new_properties_event(profile_name, now, new_props))
    if changes:
        await notify(providers, channels, _price_changes_event(profile_name, now, changes))
    await notify(
        providers,
        channels,
        MonitoringEvent(
            type=EventType.search_complete,
            timestamp=now,
            profile_name=profile_name,
            data={
                "total_properties": outcome.total_properties,
                "new_properties": outcome.new_properties,
                "price_changes": outcome.price_changes,
                "duration_s": round(outcome.duration_s, 3),
                "errors": len(result.errors),
            },
        ),
    )

    log.info(
        "Completed job %s - %d new, %d price changes",
        job_id,
        outcome.new_properties,
        outcome.price_changes,
    )
    return outcome
