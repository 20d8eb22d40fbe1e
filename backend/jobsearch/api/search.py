from typing import List, Optional, Tuple

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from jobsearch.api.deps import get_pipeline, require_pipeline
from jobsearch.database import get_db
from jobsearch.models import JobCandidate, SearchRequest
from jobsearch.schemas import (
    EnhancedSearchResponse,
    JobResponse,
    SearchForm,
    SearchResponse,
    SearchSummary,
)
from jobsearch.services.insights import generate_insights, search_metrics
from jobsearch.services.persistence import save_jobs, save_search
from jobsearch.services.pipeline import JobSearchPipeline

router = APIRouter()


async def _run_search(
    form: SearchForm,
    pipeline: Optional[JobSearchPipeline],
    db: AsyncSession,
) -> Tuple[str, List[JobResponse]]:
    if not form.query or not form.query.strip():
        raise HTTPException(status_code=400, detail="Search query is required")
    pipeline = require_pipeline(pipeline)

    query = form.query.strip()
    # Runs before any write so a failed search leaves nothing behind
    ranked = await pipeline.run(
        query,
        form.preferences(),
        num_results=form.num_results,
        find_similar=form.find_similar,
    )

    search = await save_search(db, form)
    # A failed job row rolls the session back and expires the search
    search_id = search.id
    jobs = await save_jobs(db, search_id, ranked)
    return search_id, jobs


@router.post("/search", response_model=SearchResponse)
async def search_jobs(
    form: SearchForm,
    pipeline: Optional[JobSearchPipeline] = Depends(get_pipeline),
    db: AsyncSession = Depends(get_db),
):
    search_id, jobs = await _run_search(form, pipeline, db)
    return SearchResponse(search_id=search_id, jobs=jobs, total_found=len(jobs))


@router.post("/search/enhanced", response_model=EnhancedSearchResponse)
async def enhanced_search(
    form: SearchForm,
    pipeline: Optional[JobSearchPipeline] = Depends(get_pipeline),
    db: AsyncSession = Depends(get_db),
):
    search_id, jobs = await _run_search(form, pipeline, db)
    return EnhancedSearchResponse(
        search_id=search_id,
        jobs=jobs,
        total_found=len(jobs),
        insights=generate_insights(jobs, form.preferences()),
        search_metrics=search_metrics(jobs),
    )


@router.get("/searches", response_model=List[SearchSummary])
async def list_searches(
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    job_count = func.count(JobCandidate.id).label("job_count")
    query = (
        select(SearchRequest, job_count)
        .outerjoin(JobCandidate, JobCandidate.search_id == SearchRequest.id)
        .group_by(SearchRequest.id)
        .order_by(SearchRequest.created_at.desc())
        .limit(limit)
    )
    result = await db.execute(query)

    return [
        SearchSummary(
            id=search.id,
            query=search.query,
            location=search.location,
            job_type=search.job_type,
            created_at=search.created_at,
            job_count=count,
        )
        for search, count in result.all()
    ]
