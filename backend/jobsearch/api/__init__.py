from fastapi import APIRouter
from jobsearch.api import search, jobs, saved_jobs, stats

api_router = APIRouter()
api_router.include_router(search.router, tags=["search"])
api_router.include_router(jobs.router, prefix="/jobs", tags=["jobs"])
api_router.include_router(saved_jobs.router, prefix="/saved-jobs", tags=["saved-jobs"])
api_router.include_router(stats.router, prefix="/stats", tags=["stats"])
