"""
Query Builder - turns a query and preferences into search strategies

Each strategy is an independent retrieval attempt against the search
provider. Running several differently-worded variants widens recall; a
failed variant is skipped by the retriever rather than retried.

Strategies:
    job_boards      - neural query over job boards and ATS platforms (40%)
    company_careers - neural query over company career sites (30%)
    keyword_exact   - boolean keyword query over both domain lists (30%)
"""

import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import List, Optional

from jobsearch.database import utcnow
from jobsearch.schemas import Preferences

JOB_BOARD_DOMAINS = [
    # Major job boards
    "linkedin.com", "indeed.com", "glassdoor.com", "monster.com", "dice.com",
    "ziprecruiter.com", "careerbuilder.com", "simplyhired.com",
    # Tech and startup boards
    "stackoverflow.com", "wellfound.com", "hired.com", "otta.com", "builtin.com",
    # Remote boards
    "remote.co", "flexjobs.com", "weworkremotely.com", "remoteok.io", "remotejobs.com",
    # ATS platforms
    "lever.co", "greenhouse.io", "workable.com", "ashbyhq.com", "smartrecruiters.com",
    "myworkdayjobs.com", "icims.com", "taleo.net", "jobvite.com", "breezy.hr",
]

COMPANY_CAREER_DOMAINS = [
    "careers.google.com", "amazon.jobs", "careers.microsoft.com", "jobs.apple.com",
    "metacareers.com", "careers.salesforce.com", "netflix.jobs", "jobs.boeing.com",
]

SIMILAR_JOB_DOMAINS = [
    "linkedin.com", "indeed.com", "glassdoor.com", "monster.com", "dice.com",
    "ziprecruiter.com", "wellfound.com", "lever.co", "greenhouse.io",
    "workable.com", "builtin.com",
]

COMPANY_SIZE_TERMS = {
    "startup": "startup early stage",
    "small": "growing company",
    "medium": "established company",
    "large": "enterprise corporation",
}

INCLUDE_TEXT = ["apply"]
EXCLUDE_TEXT = ["no longer available"]


@dataclass
class SearchStrategy:
    """One query + filter configuration sent to the search provider."""

    name: str
    query: str
    num_results: int
    search_type: str = "neural"
    include_domains: List[str] = field(default_factory=list)
    start_published_date: Optional[datetime] = None
    end_published_date: Optional[datetime] = None
    include_text: List[str] = field(default_factory=lambda: list(INCLUDE_TEXT))
    exclude_text: List[str] = field(default_factory=lambda: list(EXCLUDE_TEXT))


def _is_remote(location: Optional[str]) -> bool:
    return bool(location) and location.strip().lower() == "remote"


def build_job_board_query(query: str, preferences: Preferences, max_technologies: int = 3) -> str:
    search_query = f"{query} job opening position hiring now"

    if preferences.location and not _is_remote(preferences.location):
        search_query += f" in {preferences.location.strip()}"

    if preferences.remote_requested:
        search_query += " remote work from home"

    if preferences.experience_level:
        search_query += f" {preferences.experience_level.strip()}"

    technologies = preferences.technology_list()[:max_technologies]
    if technologies:
        search_query += f" {' '.join(technologies)}"

    return search_query


def build_company_career_query(query: str, preferences: Preferences) -> str:
    search_query = f"{query} careers jobs opportunities team join"

    if preferences.company_size:
        size_terms = COMPANY_SIZE_TERMS.get(preferences.company_size.strip().lower())
        if size_terms:
            search_query += f" {size_terms}"

    return search_query


def build_keyword_query(query: str, preferences: Preferences) -> str:
    keyword_query = f'"{query}" AND (job OR position OR hiring OR career)'

    if preferences.location and not _is_remote(preferences.location):
        keyword_query += f' AND "{preferences.location.strip()}"'

    if preferences.remote_requested:
        keyword_query += ' AND (remote OR "work from home")'

    return keyword_query


def build_strategies(
    query: str,
    preferences: Preferences,
    num_results: int,
    recency_days: int = 30,
    max_technologies: int = 3,
    now: Optional[datetime] = None,
) -> List[SearchStrategy]:
    """
    Build the independent search strategies for one search request.

    Args:
        query: Free-text query (non-empty)
        preferences: User preference filters
        num_results: Total result budget, split across strategies by weight
        recency_days: Publish-date window, counted back from now
        max_technologies: Technology keywords appended to the job board query
        now: Reference time (defaults to the current time)

    Returns:
        Strategies in execution order; earlier strategies win deduplication
    """
    query = query.strip()
    end_date = now or utcnow()
    start_date = end_date - timedelta(days=recency_days)

    def budget(weight: float) -> int:
        # exact splits stay exact despite float error
        return max(1, math.ceil(round(num_results * weight, 6)))

    return [
        SearchStrategy(
            name="job_boards",
            query=build_job_board_query(query, preferences, max_technologies),
            num_results=budget(0.4),
            search_type="neural",
            include_domains=list(JOB_BOARD_DOMAINS),
            start_published_date=start_date,
            end_published_date=end_date,
        ),
        SearchStrategy(
            name="company_careers",
            query=build_company_career_query(query, preferences),
            num_results=budget(0.3),
            search_type="neural",
            include_domains=list(COMPANY_CAREER_DOMAINS),
            start_published_date=start_date,
            end_published_date=end_date,
        ),
        SearchStrategy(
            name="keyword_exact",
            query=build_keyword_query(query, preferences),
            num_results=budget(0.3),
            search_type="keyword",
            include_domains=JOB_BOARD_DOMAINS + COMPANY_CAREER_DOMAINS,
            start_published_date=start_date,
            end_published_date=end_date,
        ),
    ]
