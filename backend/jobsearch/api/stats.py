from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from jobsearch.database import get_db
from jobsearch.models import JobCandidate, SavedJob, SearchRequest, SAVED_JOB_STATUSES

router = APIRouter()


@router.get("")
async def get_stats(
    db: AsyncSession = Depends(get_db),
):
    total_searches = (await db.execute(select(func.count(SearchRequest.id)))).scalar() or 0
    total_jobs = (await db.execute(select(func.count(JobCandidate.id)))).scalar() or 0

    # Saved jobs by status - single GROUP BY query
    status_query = select(SavedJob.status, func.count(SavedJob.id)).group_by(SavedJob.status)
    status_result = await db.execute(status_query)
    status_counts = {row[0]: row[1] for row in status_result.all()}
    for status in SAVED_JOB_STATUSES:
        status_counts.setdefault(status, 0)

    avg_result = await db.execute(select(func.avg(JobCandidate.score)))
    average_score = round(avg_result.scalar() or 0, 1)

    high_result = await db.execute(select(func.count(JobCandidate.id)).where(JobCandidate.score >= 8))
    high_matches = high_result.scalar() or 0

    return {
        "totalSearches": total_searches,
        "totalJobs": total_jobs,
        "savedJobs": sum(status_counts.values()),
        "savedJobsByStatus": status_counts,
        "averageScore": average_score,
        "highMatches": high_matches,
    }
