from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from jobsearch.database import get_db
from jobsearch.models import JobCandidate, SavedJob, SearchRequest
from jobsearch.schemas import DeleteSearchRequest, JobWithSavedResponse

router = APIRouter()


@router.get("", response_model=List[JobWithSavedResponse])
async def list_jobs(
    search_id: Optional[str] = Query(None, alias="searchId"),
    min_score: Optional[int] = Query(None, alias="minScore", ge=0, le=10),
    location: Optional[str] = Query(None),
    company: Optional[str] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
):
    query = select(JobCandidate).options(selectinload(JobCandidate.saved_job))

    if search_id:
        query = query.where(JobCandidate.search_id == search_id)

    if min_score is not None:
        query = query.where(JobCandidate.score >= min_score)

    if location:
        query = query.where(JobCandidate.location.ilike(f"%{location}%"))

    if company:
        query = query.where(JobCandidate.company.ilike(f"%{company}%"))

    # Highest score first, newest first within a score
    query = query.order_by(JobCandidate.score.desc(), JobCandidate.created_at.desc()).limit(limit)

    result = await db.execute(query)
    jobs = result.scalars().all()

    return [JobWithSavedResponse.model_validate(job) for job in jobs]


@router.delete("")
async def delete_search(
    body: DeleteSearchRequest,
    db: AsyncSession = Depends(get_db),
):
    search = await db.get(SearchRequest, body.search_id)
    if not search:
        raise HTTPException(status_code=404, detail="Search not found")

    job_ids = select(JobCandidate.id).where(JobCandidate.search_id == body.search_id)
    count_result = await db.execute(
        select(func.count(JobCandidate.id)).where(JobCandidate.search_id == body.search_id)
    )
    deleted_jobs = count_result.scalar() or 0

    await db.execute(delete(SavedJob).where(SavedJob.job_id.in_(job_ids)))
    await db.execute(delete(JobCandidate).where(JobCandidate.search_id == body.search_id))
    await db.execute(delete(SearchRequest).where(SearchRequest.id == body.search_id))
    await db.commit()

    return {"success": True, "deletedJobs": deleted_jobs}
