# landbot/entrypoints/api/routers/monitoring.py
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from ..deps import notifiers_dep, pool_factory_dep, profiles_dep, registry_dep, require_api_key
from ....adapters.profiles import ProfileStore
from ....db import get_session
from ....domain.errors import ProfileStoreError
from ....integrations.base import NotificationProvider
from ....models import MonitoringJob, MonitoringJobRun
from ....registry import PluginRegistry
from ....schemas import MonitoringJobCreate, MonitoringJobOut, MonitoringJobUpdate, MonitoringRunOut
from ....service_layer import jobruns
from ....service_layer.monitoring import run_monitoring_job
from ....service_layer.use_cases.search import PoolFactory

router = APIRouter(prefix="/monitoring", tags=["monitoring"])


def _job_out(job: MonitoringJob) -> MonitoringJobOut:
    return MonitoringJobOut(
        id=job.id,
        profile_name=job.profile_name,
        schedule=job.schedule,
        enabled=job.enabled,
        notification_channels=list(job.notification_channels or []),
        last_run_at=job.last_run_at,
        created_at=job.created_at,
        updated_at=job.updated_at,
    )


def _run_out(jr: MonitoringJobRun) -> MonitoringRunOut:
    return MonitoringRunOut(
        id=jr.id,
        status=jr.status.value,
        started_at=jr.started_at,
        completed_at=jr.completed_at,
        error=jr.error,
        new_properties=jr.new_properties,
        price_changes=jr.price_changes,
        total_properties=jr.total_properties,
    )


def _missing(job_id: str) -> HTTPException:
    return HTTPException(status_code=404, detail=f"Monitoring job not found: {job_id}")


@router.get("/jobs", response_model=list[MonitoringJobOut])
async def list_jobs(session: AsyncSession = Depends(get_session)) -> list[MonitoringJobOut]:
    return [_job_out(j) for j in await jobruns.list_jobs(session)]


@router.post("/jobs", response_model=MonitoringJobOut, status_code=201, dependencies=[Depends(require_api_key)])
async def create_job(
    body: MonitoringJobCreate,
    session: AsyncSession = Depends(get_session),
    profiles: ProfileStore = Depends(profiles_dep),
) -> MonitoringJobOut:
    try:
        known = profiles.list_profiles()
    except ProfileStoreError as e:
        raise HTTPException(status_code=500, detail=str(e))
    if body.profile_name not in known:
        raise HTTPException(status_code=404, detail=f"Profile not found: {body.profile_name!r}")
    try:
        job = await jobruns.create_job(session, body.profile_name, body.schedule, list(body.notification_channels))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    await session.commit()
    return _job_out(job)


@router.patch("/jobs/{job_id}", response_model=MonitoringJobOut, dependencies=[Depends(require_api_key)])
async def update_schedule(
    job_id: str,
    body: MonitoringJobUpdate,
    session: AsyncSession = Depends(get_session),
) -> MonitoringJobOut:
    try:
        job = await jobruns.set_schedule(session, job_id, body.schedule)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if job is None:
        raise _missing(job_id)
    await session.commit()
    return _job_out(job)


@router.post("/jobs/{job_id}/enable", response_model=MonitoringJobOut, dependencies=[Depends(require_api_key)])
async def enable_job(job_id: str, session: AsyncSession = Depends(get_session)) -> MonitoringJobOut:
    job = await jobruns.enable_job(session, job_id)
    if job is None:
        raise _missing(job_id)
    await session.commit()
    return _job_out(job)


@router.post("/jobs/{job_id}/disable", response_model=MonitoringJobOut, dependencies=[Depends(require_api_key)])
async def disable_job(job_id: str, session: AsyncSession = Depends(get_session)) -> MonitoringJobOut:
    job = await jobruns.disable_job(session, job_id)
    if job is None:
        raise _missing(job_id)
    await session.commit()
    return _job_out(job)


@router.delete("/jobs/{job_id}", status_code=204, dependencies=[Depends(require_api_key)])
async def delete_job(job_id: str, session: AsyncSession = Depends(get_session)) -> Response:
    if not await jobruns.delete_job(session, job_id):
        raise _missing(job_id)
    await session.commit()
    return Response(status_code=204)


@router.get("/jobs/{job_id}/runs", response_model=list[MonitoringRunOut])
async def job_runs(
    job_id: str,
    limit: int = Query(20, ge=1, le=200),
    session: AsyncSession = Depends(get_session),
) -> list[MonitoringRunOut]:
    if await session.get(MonitoringJob, job_id) is None:
        raise _missing(job_id)
    return [_run_out(r) for r in await jobruns.recent_runs(session, job_id, limit)]


@router.post("/jobs/{job_id}/run", response_model=MonitoringRunOut, dependencies=[Depends(require_api_key)])
async def run_job_now(
    job_id: str,
    session: AsyncSession = Depends(get_session),
    profiles: ProfileStore = Depends(profiles_dep),
    registry: PluginRegistry = Depends(registry_dep),
    pool_factory: PoolFactory = Depends(pool_factory_dep),
    notifiers: list[NotificationProvider] | None = Depends(notifiers_dep),
) -> MonitoringRunOut:
    job = await session.get(MonitoringJob, job_id)
    if job is None:
        raise _missing(job_id)
    await run_monitoring_job(
        session,
        job,
        profiles=profiles,
        registry=registry,
        notifiers=notifiers,
        pool_factory=pool_factory,
    )
    runs = await jobruns.recent_runs(session, job_id, limit=1)
    return _run_out(runs[0])
