from jobsearch.schemas.job import (
    JobResponse,
    JobWithSavedResponse,
    SavedJobSummary,
    DeleteSearchRequest,
)
from jobsearch.schemas.saved_job import (
    SavedJobCreate,
    SavedJobUpdate,
    SavedJobDelete,
    SavedJobResponse,
)
from jobsearch.schemas.insights import Insights, SearchMetrics
from jobsearch.schemas.search import (
    Preferences,
    SearchForm,
    SearchResponse,
    EnhancedSearchResponse,
    SearchSummary,
)

__all__ = [
    "JobResponse",
    "JobWithSavedResponse",
    "SavedJobSummary",
    "DeleteSearchRequest",
    "SavedJobCreate",
    "SavedJobUpdate",
    "SavedJobDelete",
    "SavedJobResponse",
    "Insights",
    "SearchMetrics",
    "Preferences",
    "SearchForm",
    "SearchResponse",
    "EnhancedSearchResponse",
    "SearchSummary",
]
