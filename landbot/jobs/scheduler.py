# landbot/jobs/scheduler.py
from __future__ import annotations

import logging
from typing import Sequence

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..adapters.browser.pool import browser_pool_factory
from ..adapters.profiles import ProfileStore
from ..db import AsyncSessionLocal
from ..integrations.base import NotificationProvider
from ..models import MonitoringJob
from ..registry import PluginRegistry, build_registry
from ..service_layer.jobruns import load_enabled_jobs
from ..service_layer.monitoring import default_notifiers, run_monitoring_job
from ..service_layer.use_cases.search import PoolFactory

log = logging.getLogger(__name__)


async def _run_job(
    job_id: str,
    session_factory: async_sessionmaker[AsyncSession],
    profiles: ProfileStore,
    registry: PluginRegistry,
    notifiers: Sequence[NotificationProvider],
    pool_factory: PoolFactory,
) -> None:
    async with session_factory() as session:
        job = await session.get(MonitoringJob, job_id)
        if job is None or not job.enabled:
            # deleted or disabled since the scheduler started
            log.info("Skipping monitoring job %s (gone or disabled)", job_id)
            return
        await run_monitoring_job(
            session,
            job,
            profiles=profiles,
            registry=registry,
            notifiers=notifiers,
            pool_factory=pool_factory,
        )


async def build_scheduler(
    *,
    session_factory: async_sessionmaker[AsyncSession] = AsyncSessionLocal,
    profiles: ProfileStore | None = None,
    registry: PluginRegistry | None = None,
    notifiers: Sequence[NotificationProvider] | None = None,
    pool_factory: PoolFactory | None = None,
) -> AsyncIOScheduler:
    profiles = profiles or ProfileStore.from_settings()
    scraping = profiles.scraping_settings()
    registry = registry or build_registry(scraping)
    pool_factory = pool_factory or browser_pool_factory(scraping)
    notifiers = default_notifiers() if notifiers is None else notifiers

    async with session_factory() as session:
        jobs = await load_enabled_jobs(session)

    sched = AsyncIOScheduler()
    for job in jobs:
        try:
            trigger = CronTrigger.from_crontab(job.schedule)
        except ValueError:
            log.warning("Invalid cron schedule for job %s: %s", job.id, job.schedule)
            continue

        sched.add_job(
            _run_job,
            trigger,
            args=[job.id, session_factory, profiles, registry, notifiers, pool_factory],
            id=job.id,
            name=f"monitor:{job.profile_name}",
            max_instances=1,
            coalesce=True,
        )
        log.info("Scheduled job %s for %s with cron: %s", job.id, job.profile_name, job.schedule)

    log.info("Loaded %d scheduled monitoring jobs", len(sched.get_jobs()))
    return sched
