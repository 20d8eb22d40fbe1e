from typing import List, Optional
from jobsearch.schemas.common import CamelModel


class CompanyCount(CamelModel):
    company: str
    job_count: int


class SalaryRange(CamelModel):
    average: int
    min: int
    max: int
    jobs_with_salary: int
    total_jobs: int


class LocationCount(CamelModel):
    location: str
    count: int


class SkillCount(CamelModel):
    skill: str
    count: int


class ExperienceCount(CamelModel):
    level: str
    count: int


class RemoteOpportunities(CamelModel):
    fully_remote: int
    hybrid: int
    on_site: int
    remote_percentage: int


class Recommendation(CamelModel):
    type: str
    message: str


class Insights(CamelModel):
    top_companies: List[CompanyCount]
    salary_range: Optional[SalaryRange] = None
    location_distribution: List[LocationCount]
    skills_trending: List[SkillCount]
    experience_levels: List[ExperienceCount]
    remote_opportunities: RemoteOpportunities
    recommendations: List[Recommendation]


class SearchMetrics(CamelModel):
    average_score: float
    perfect_matches: int
    great_matches: int
    remote_jobs: int
    companies_found: int
