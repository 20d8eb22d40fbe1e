"""
Persistence Gateway - writes one search and its ranked jobs

The search row is written first and must succeed. Each job row is then
committed on its own: a row that cannot be written (for example a URL
already stored by an earlier search) is rolled back and returned as an
unsaved in-memory copy so the caller still sees every ranked job.
"""

import logging
from typing import List, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from jobsearch.errors import PersistenceError
from jobsearch.models import JobCandidate, SearchRequest
from jobsearch.schemas import JobResponse, SearchForm
from jobsearch.services.pipeline import EnrichedJob

logger = logging.getLogger(__name__)


def _job_values(job: EnrichedJob) -> dict:
    return {
        "url": job.url,
        "title": job.title,
        "company": job.company,
        "location": job.location,
        "salary": job.salary,
        "experience_level": job.experience_level,
        "job_type": job.job_type,
        "skills": job.skills,
        "remote_policy": job.remote_policy,
        "apply_method": job.apply_method,
        "benefits": list(job.benefits),
        "company_size": job.company_size,
        "content": job.content,
        "score": job.score,
        "published_at": job.published_at,
    }


async def save_search(db: AsyncSession, form: SearchForm) -> SearchRequest:
    """
    Insert the SearchRequest row.

    Raises:
        PersistenceError: the row could not be committed
    """
    search = SearchRequest(
        query=form.query.strip(),
        location=form.location,
        job_type=form.job_type,
        experience_level=form.experience_level,
        salary=form.salary,
        technologies=form.technologies,
        company_size=form.company_size,
    )
    db.add(search)
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Saving search '{form.query}' failed: {e}")
        raise PersistenceError(f"Could not save search: {e}") from e
    return search


async def save_jobs(db: AsyncSession, search_id: str, jobs: Sequence[EnrichedJob]) -> List[JobResponse]:
    """Insert each job independently; output order matches input order."""
    responses: List[JobResponse] = []

    for job in jobs:
        values = _job_values(job)
        row = JobCandidate(search_id=search_id, **values)
        db.add(row)
        try:
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.warning(f"Job {job.url} not saved: {e}")
            responses.append(JobResponse(search_id=search_id, persisted=False, **values))
            continue
        responses.append(JobResponse.model_validate(row))

    saved = sum(1 for r in responses if r.persisted)
    logger.info(f"Saved {saved} of {len(responses)} jobs for search {search_id}")
    return responses
