from __future__ import annotations

import secrets

from apscheduler.triggers.cron import CronTrigger
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..domain.clock import utcnow
from ..models import JobRunStatus, MonitoringJob, MonitoringJobRun

CHANNELS = ("console", "file", "webhook")


def validate_schedule(schedule: str) -> None:
    """Raises ValueError for anything that is not a 5-field cron expression."""
    CronTrigger.from_crontab(schedule)


def _validate_channels(channels: list[str]) -> list[str]:
    unknown = [c for c in channels if c not in CHANNELS]
    if unknown:
        raise ValueError(f"Unknown notification channels: {unknown}")
    return list(channels)


# -----------------------------
# Jobs
# -----------------------------
async def create_job(
    session: AsyncSession,
    profile_name: str,
    schedule: str,
    notification_channels: list[str] | None = None,
) -> MonitoringJob:
    validate_schedule(schedule)
    now = utcnow()
    job = MonitoringJob(
        id=secrets.token_hex(8),
        profile_name=profile_name,
        schedule=schedule,
        enabled=True,
        notification_channels=_validate_channels(notification_channels or ["console"]),
        created_at=now,
        updated_at=now,
    )
    session.add(job)
    await session.flush()
    return job


async def list_jobs(session: AsyncSession) -> list[MonitoringJob]:
    q = select(MonitoringJob).order_by(MonitoringJob.created_at, MonitoringJob.id)
    return list((await session.execute(q)).scalars().all())


async def load_enabled_jobs(session: AsyncSession) -> list[MonitoringJob]:
    q = select(MonitoringJob).where(MonitoringJob.enabled == True).order_by(MonitoringJob.created_at)  # noqa: E712
    return list((await session.execute(q)).scalars().all())


async def set_schedule(session: AsyncSession, job_id: str, schedule: str) -> MonitoringJob | None:
    validate_schedule(schedule)
    job = await session.get(MonitoringJob, job_id)
    if job is None:
        return None
    job.schedule = schedule
    job.updated_at = utcnow()
    await session.flush()
    return job


async def set_enabled(session: AsyncSession, job_id: str, enabled: bool) -> MonitoringJob | None:
    job = await session.get(MonitoringJob, job_id)
    if job is None:
        return None
    job.enabled = enabled
    job.updated_at = utcnow()
    await session.flush()
    return job


async def enable_job(session: AsyncSession, job_id: str) -> MonitoringJob | None:
    return await set_enabled(session, job_id, True)


async def disable_job(session: AsyncSession, job_id: str) -> MonitoringJob | None:
    return await set_enabled(session, job_id, False)


async def delete_job(session: AsyncSession, job_id: str) -> bool:
    job = await session.get(MonitoringJob, job_id)
    if job is None:
        return False
    await session.execute(delete(MonitoringJobRun).where(MonitoringJobRun.job_id == job_id))
    await session.delete(job)
    await session.flush()
    return True


# -----------------------------
# Runs
# -----------------------------
async def start_job_run(session: AsyncSession, job_id: str) -> MonitoringJobRun:
    jr = MonitoringJobRun(job_id=job_id, started_at=utcnow(), status=JobRunStatus.running)
    session.add(jr)
    await session.flush()
    return jr


async def finish_job_run_success(
    session: AsyncSession,
    run_id: int,
    *,
    total_properties: int,
    new_properties: int,
    price_changes: int,
) -> None:
    jr = await session.get(MonitoringJobRun, run_id)
    now = utcnow()
    jr.status = JobRunStatus.completed
    jr.completed_at = now
    jr.error = None
    jr.total_properties = total_properties
    jr.new_properties = new_properties
    jr.price_changes = price_changes

    job = await session.get(MonitoringJob, jr.job_id)
    if job is not None:
        job.last_run_at = now
        job.updated_at = now
    await session.flush()


async def finish_job_run_fail(session: AsyncSession, run_id: int, err: Exception) -> None:
    jr = await session.get(MonitoringJobRun, run_id)
    jr.status = JobRunStatus.failed
    jr.completed_at = utcnow()
    jr.error = str(err)
    await session.flush()


async def recent_runs(session: AsyncSession, job_id: str, limit: int = 20) -> list[MonitoringJobRun]:
    q = (
        select(MonitoringJobRun)
        .where(MonitoringJobRun.job_id == job_id)
        .order_by(MonitoringJobRun.started_at.desc(), MonitoringJobRun.id.desc())
        .limit(limit)
    )
    return list((await session.execute(q)).scalars().all())
