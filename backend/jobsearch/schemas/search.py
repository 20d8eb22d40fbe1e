from typing import List, Optional
from datetime import datetime
from pydantic import Field
from jobsearch.schemas.common import CamelModel
from jobsearch.schemas.job import JobResponse
from jobsearch.schemas.insights import Insights, SearchMetrics


class Preferences(CamelModel):
    location: Optional[str] = None
    job_type: Optional[str] = None
    experience_level: Optional[str] = None
    salary: Optional[str] = None
    technologies: Optional[str] = None
    company_size: Optional[str] = None

    @property
    def remote_requested(self) -> bool:
        if self.location and self.location.strip().lower() == "remote":
            return True
        return bool(self.job_type and "remote" in self.job_type.lower())

    def technology_list(self) -> List[str]:
        if not self.technologies:
            return []
        return [t.strip() for t in self.technologies.split(",") if t.strip()]


class SearchForm(Preferences):
    # Optional so a missing query is reported as 400 by the route, not 422
    query: Optional[str] = None
    num_results: int = Field(20, ge=1, le=50)
    find_similar: bool = False

    def preferences(self) -> Preferences:
        return Preferences.model_validate(self.model_dump(include=set(Preferences.model_fields)))


class SearchResponse(CamelModel):
    search_id: Optional[str]
    jobs: List[JobResponse]
    total_found: int


class EnhancedSearchResponse(SearchResponse):
    insights: Insights
    search_metrics: SearchMetrics


class SearchSummary(CamelModel):
    id: str
    query: str
    location: Optional[str] = None
    job_type: Optional[str] = None
    created_at: datetime
    job_count: int = 0
