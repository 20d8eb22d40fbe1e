from typing import Literal, Optional
from jobsearch.schemas.common import CamelModel
from jobsearch.schemas.job import JobResponse, SavedJobSummary

SavedJobStatus = Literal["interested", "applied", "interviewing", "rejected", "offer"]


class SavedJobCreate(CamelModel):
    job_id: str
    notes: Optional[str] = None
    status: SavedJobStatus = "interested"


class SavedJobUpdate(CamelModel):
    id: str
    notes: Optional[str] = None
    status: Optional[SavedJobStatus] = None


class SavedJobDelete(CamelModel):
    id: str


class SavedJobResponse(SavedJobSummary):
    job: JobResponse
