from jobsearch.models.search import SearchRequest
from jobsearch.models.job import JobCandidate
from jobsearch.models.saved_job import SavedJob, SAVED_JOB_STATUSES

__all__ = ["SearchRequest", "JobCandidate", "SavedJob", "SAVED_JOB_STATUSES"]
