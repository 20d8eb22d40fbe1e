from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from jobsearch.database import get_db
from jobsearch.models import JobCandidate, SavedJob
from jobsearch.schemas import (
    SavedJobCreate,
    SavedJobDelete,
    SavedJobResponse,
    SavedJobUpdate,
)
from jobsearch.schemas.saved_job import SavedJobStatus

router = APIRouter()


async def _load_saved_job(db: AsyncSession, saved_job_id: str) -> Optional[SavedJob]:
    result = await db.execute(
        select(SavedJob)
        .options(selectinload(SavedJob.job))
        .where(SavedJob.id == saved_job_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


@router.post("", response_model=SavedJobResponse)
async def save_job(
    body: SavedJobCreate,
    db: AsyncSession = Depends(get_db),
):
    job = await db.get(JobCandidate, body.job_id)
    if not job:
        raise HTTPException(status_code=404, detail="Job not found")

    existing = await db.execute(select(SavedJob.id).where(SavedJob.job_id == body.job_id))
    if existing.scalar_one_or_none():
        raise HTTPException(status_code=409, detail="Job already saved")

    saved_job = SavedJob(job_id=body.job_id, notes=body.notes, status=body.status)
    db.add(saved_job)
    await db.commit()

    return SavedJobResponse.model_validate(await _load_saved_job(db, saved_job.id))


@router.get("", response_model=List[SavedJobResponse])
async def list_saved_jobs(
    status: Optional[SavedJobStatus] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    query = select(SavedJob).options(selectinload(SavedJob.job))
    if status:
        query = query.where(SavedJob.status == status)
    query = query.order_by(SavedJob.created_at.desc())

    result = await db.execute(query)
    return [SavedJobResponse.model_validate(saved) for saved in result.scalars().all()]


@router.put("", response_model=SavedJobResponse)
async def update_saved_job(
    body: SavedJobUpdate,
    db: AsyncSession = Depends(get_db),
):
    saved_job = await db.get(SavedJob, body.id)
    if not saved_job:
        raise HTTPException(status_code=404, detail="Saved job not found")

    # Only fields present in the request body change
    update_data = body.model_dump(exclude_unset=True, exclude={"id"})
    if update_data.get("status") is None:
        update_data.pop("status", None)
    for field, value in update_data.items():
        setattr(saved_job, field, value)

    await db.commit()

    return SavedJobResponse.model_validate(await _load_saved_job(db, body.id))


@router.delete("")
async def delete_saved_job(
    body: SavedJobDelete,
    db: AsyncSession = Depends(get_db),
):
    saved_job = await db.get(SavedJob, body.id)
    if not saved_job:
        raise HTTPException(status_code=404, detail="Saved job not found")

    await db.delete(saved_job)
    await db.commit()

    return {"success": True}
