from typing import List, Optional
from datetime import datetime
from jobsearch.schemas.common import CamelModel


class JobResponse(CamelModel):
    id: Optional[str] = None
    url: str
    title: str
    company: str
    location: str
    salary: Optional[str] = None
    experience_level: Optional[str] = None
    job_type: Optional[str] = None
    skills: Optional[str] = None
    remote_policy: Optional[str] = None
    apply_method: Optional[str] = None
    benefits: List[str] = []
    company_size: Optional[str] = None
    content: str
    score: int
    published_at: Optional[datetime] = None
    search_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    # False when the row could not be written and this is an in-memory copy
    persisted: bool = True


class SavedJobSummary(CamelModel):
    id: str
    job_id: str
    notes: Optional[str] = None
    status: str
    created_at: datetime
    updated_at: datetime


class JobWithSavedResponse(JobResponse):
    saved_job: Optional[SavedJobSummary] = None


class DeleteSearchRequest(CamelModel):
    search_id: str
