"""
Market Insights - summary statistics over one search's results

Pure functions of (jobs, preferences). Jobs are any objects exposing
company, location, salary, skills, experience_level, remote_policy and
score attributes (pipeline results or API responses).
"""

import re
from collections import Counter
from typing import List, Optional, Sequence

from jobsearch.schemas import Preferences
from jobsearch.schemas.insights import (
    CompanyCount,
    ExperienceCount,
    Insights,
    LocationCount,
    Recommendation,
    RemoteOpportunities,
    SalaryRange,
    SearchMetrics,
    SkillCount,
)

TOP_COMPANIES = 5
TOP_LOCATIONS = 8
TOP_SKILLS = 10
MIN_SALARY = 1000


def classify_work_mode(job) -> str:
    """Classify as "remote", "hybrid" or "on_site"; every job gets exactly one."""
    text = f"{job.location or ''} {job.remote_policy or ''}".lower()
    if "remote" in text:
        return "remote"
    if "hybrid" in text:
        return "hybrid"
    return "on_site"


def parse_salary(salary: Optional[str]) -> Optional[int]:
    """First integer token (thousands separators allowed) when it is >= 1000."""
    if not salary or salary == "Not specified":
        return None
    match = re.search(r"\d[\d,]*", salary)
    if not match:
        return None
    value = int(match.group(0).replace(",", ""))
    return value if value >= MIN_SALARY else None


def top_companies(jobs: Sequence) -> List[CompanyCount]:
    counts = Counter(job.company for job in jobs if job.company)
    return [
        CompanyCount(company=company, job_count=count)
        for company, count in counts.most_common(TOP_COMPANIES)
    ]


def salary_range(jobs: Sequence) -> Optional[SalaryRange]:
    salaries = [s for s in (parse_salary(job.salary) for job in jobs) if s is not None]
    if not salaries:
        return None
    return SalaryRange(
        average=round(sum(salaries) / len(salaries)),
        min=min(salaries),
        max=max(salaries),
        jobs_with_salary=len(salaries),
        total_jobs=len(jobs),
    )


def location_distribution(jobs: Sequence) -> List[LocationCount]:
    counts = Counter(job.location or "Unknown" for job in jobs)
    return [
        LocationCount(location=location, count=count)
        for location, count in counts.most_common(TOP_LOCATIONS)
    ]


def trending_skills(jobs: Sequence) -> List[SkillCount]:
    counts: Counter = Counter()
    for job in jobs:
        if not job.skills:
            continue
        for skill in job.skills.split(","):
            skill = skill.strip().lower()
            if len(skill) > 1:
                counts[skill] += 1
    return [SkillCount(skill=skill, count=count) for skill, count in counts.most_common(TOP_SKILLS)]


def experience_levels(jobs: Sequence) -> List[ExperienceCount]:
    counts = Counter(job.experience_level or "Not specified" for job in jobs)
    return [ExperienceCount(level=level, count=count) for level, count in counts.items()]


def remote_opportunities(jobs: Sequence) -> RemoteOpportunities:
    modes = Counter(classify_work_mode(job) for job in jobs)
    total = len(jobs)
    return RemoteOpportunities(
        fully_remote=modes["remote"],
        hybrid=modes["hybrid"],
        on_site=modes["on_site"],
        remote_percentage=round(modes["remote"] / total * 100) if total else 0,
    )


def recommendations(jobs: Sequence, preferences: Preferences) -> List[Recommendation]:
    recs: List[Recommendation] = []
    if not jobs:
        return recs

    average = sum(job.score for job in jobs) / len(jobs)
    if average < 6:
        recs.append(Recommendation(
            type="query",
            message="Try broadening your search terms or removing some filters for more results",
        ))

    if len(jobs) < 5:
        recs.append(Recommendation(
            type="results",
            message="Consider expanding your search criteria to find more opportunities",
        ))

    remote_count = sum(1 for job in jobs if classify_work_mode(job) == "remote")
    if not preferences.remote_requested and remote_count > len(jobs) * 0.3:
        recs.append(Recommendation(
            type="location",
            message="Many remote opportunities available - consider including remote positions",
        ))

    return recs


def generate_insights(jobs: Sequence, preferences: Preferences) -> Insights:
    return Insights(
        top_companies=top_companies(jobs),
        salary_range=salary_range(jobs),
        location_distribution=location_distribution(jobs),
        skills_trending=trending_skills(jobs),
        experience_levels=experience_levels(jobs),
        remote_opportunities=remote_opportunities(jobs),
        recommendations=recommendations(jobs, preferences),
    )


def search_metrics(jobs: Sequence) -> SearchMetrics:
    total = len(jobs)
    return SearchMetrics(
        average_score=round(sum(job.score for job in jobs) / total, 1) if total else 0.0,
        perfect_matches=sum(1 for job in jobs if job.score >= 9),
        great_matches=sum(1 for job in jobs if 7 <= job.score < 9),
        remote_jobs=sum(1 for job in jobs if classify_work_mode(job) == "remote"),
        companies_found=len({job.company for job in jobs}),
    )
