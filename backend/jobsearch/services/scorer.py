"""
Job Fit Scoring - 1-10 score of how well a posting matches preferences

Two composable strategies:

Heuristic (deterministic for fixed inputs and reference time):
    base                  5
    title has full query  +2  (else +1 when half the query terms appear)
    content > 2000 chars  +1, > 4000 chars another +1
    location preference   +1.5 (a Remote preference is met by remote postings)
    pay/benefit keywords  +0.5 each, at most +1.5
    preferred technology  +0.5 each, at most +1
    recency               +1 within 7 days, +0.5 within 14 days
    clamped to [1, 10] and rounded to an integer

Generative:
    One text-generation call with the extracted fields and preferences,
    asked for a bare integer. A parseable reply supersedes the heuristic
    score; any failure falls back to it.
"""

import logging
import math
import re
from datetime import datetime
from typing import Optional

from jobsearch.database import utcnow
from jobsearch.errors import ScoringError
from jobsearch.schemas import Preferences
from jobsearch.services.extractor import ExtractedFields, NOT_SPECIFIED
from jobsearch.services.providers.base import RawDocument, TextGenerator

logger = logging.getLogger(__name__)

MIN_SCORE = 1
MAX_SCORE = 10
BASE_SCORE = 5.0

QUALITY_KEYWORDS = [
    "salary", "competitive", "benefits", "equity", "bonus",
    "health insurance", "401k", "pto", "vacation", "retirement",
]

SCORING_PROMPT = """Rate how well this job matches the user's preferences on a scale of 1 to 10.

Job Details:
- Title: {title}
- Company: {company}
- Location: {location}
- Salary: {salary}
- Experience: {experience_level}
- Type: {job_type}
- Skills: {skills}
- Remote Policy: {remote_policy}

User Preferences:
- Location: {pref_location}
- Job Type: {pref_job_type}
- Experience: {pref_experience}
- Salary: {pref_salary}
- Technologies: {pref_technologies}
- Company Size: {pref_company_size}

Scoring rubric:
- 10: Perfect match
- 7-9: Strong match (most preferences met)
- 4-6: Moderate match (some preferences met)
- 1-3: Poor match (few or no preferences met)

Treat "Remote" as satisfying any location preference.
Return ONLY a single integer from 1 to 10."""


def clamp_score(score: float) -> int:
    """Round half up and clamp to the closed range [1, 10]."""
    if score != score:  # NaN
        return MIN_SCORE
    bounded = min(float(MAX_SCORE), max(float(MIN_SCORE), score))
    return int(math.floor(bounded + 0.5))


def location_matches(
    preferences: Preferences,
    document: RawDocument,
    fields: Optional[ExtractedFields] = None,
) -> bool:
    """True when the posting satisfies the location preference."""
    if not preferences.location or not preferences.location.strip():
        return False

    content = (document.text or "").lower()
    location = (fields.location if fields else "").lower()
    remote_policy = (fields.remote_policy if fields else "").lower()

    if preferences.remote_requested:
        return "remote" in content or "remote" in location or "remote" in remote_policy

    wanted = preferences.location.strip().lower()
    return wanted in content or wanted in location or "remote" in location


def heuristic_score(
    document: RawDocument,
    preferences: Preferences,
    query: str = "",
    fields: Optional[ExtractedFields] = None,
    now: Optional[datetime] = None,
) -> int:
    title = (document.title or "").lower()
    content = (document.text or "").lower()
    query_lower = query.strip().lower()

    score = BASE_SCORE

    if query_lower:
        terms = [t for t in query_lower.split() if len(t) > 2]
        if query_lower in title:
            score += 2
        elif terms and sum(1 for t in terms if t in title) >= math.ceil(len(terms) / 2):
            score += 1

    if len(content) > 2000:
        score += 1
    if len(content) > 4000:
        score += 1

    if location_matches(preferences, document, fields):
        score += 1.5

    quality_count = sum(1 for keyword in QUALITY_KEYWORDS if keyword in content)
    score += min(1.5, quality_count * 0.5)

    tech_matches = sum(1 for tech in preferences.technology_list() if tech.lower() in content)
    score += min(1.0, tech_matches * 0.5)

    if document.published_date:
        reference = now or utcnow()
        published = document.published_date
        if published.tzinfo is not None:
            published = published.replace(tzinfo=None)
        days_old = max(0, (reference - published).days)
        if days_old <= 7:
            score += 1
        elif days_old <= 14:
            score += 0.5

    return clamp_score(score)


def parse_score(reply: str) -> Optional[int]:
    """Parse the first number in a model reply, or None when there is none."""
    if not reply:
        return None
    match = re.search(r"\d+(?:\.\d+)?", reply)
    if not match:
        return None
    return clamp_score(float(match.group(0)))


def build_scoring_prompt(
    document: RawDocument,
    fields: ExtractedFields,
    preferences: Preferences,
) -> str:
    def pref(value: Optional[str]) -> str:
        return value.strip() if value and value.strip() else "Any"

    def known(value: str) -> str:
        return value if value else NOT_SPECIFIED

    return SCORING_PROMPT.format(
        title=document.title or "Untitled Position",
        company=known(fields.company),
        location=known(fields.location),
        salary=known(fields.salary),
        experience_level=known(fields.experience_level),
        job_type=known(fields.job_type),
        skills=known(fields.skills),
        remote_policy=known(fields.remote_policy),
        pref_location=pref(preferences.location),
        pref_job_type=pref(preferences.job_type),
        pref_experience=pref(preferences.experience_level),
        pref_salary=pref(preferences.salary),
        pref_technologies=pref(preferences.technologies),
        pref_company_size=pref(preferences.company_size),
    )


class Scorer:
    """
    Scores enriched postings, preferring the generative score when usable.

    Attributes:
        text_generator: Generator for holistic scoring (optional)
        generative: Whether to ask the generator at all
        max_tokens: Reply budget for the score
    """

    def __init__(
        self,
        text_generator: Optional[TextGenerator] = None,
        generative: bool = True,
        max_tokens: int = 10,
    ):
        self.text_generator = text_generator
        self.generative = generative and text_generator is not None
        self.max_tokens = max_tokens

    async def generative_score(
        self,
        document: RawDocument,
        fields: ExtractedFields,
        preferences: Preferences,
    ) -> int:
        """
        Ask the generator for a score.

        Raises:
            ScoringError: call failed or reply held no number
        """
        prompt = build_scoring_prompt(document, fields, preferences)
        try:
            reply = await self.text_generator.generate_text(prompt, self.max_tokens)
        except Exception as e:
            raise ScoringError(f"Scoring call failed: {e}") from e

        score = parse_score(reply)
        if score is None:
            raise ScoringError(f"Unparseable score reply: {reply[:50]!r}")
        return score

    async def score(
        self,
        document: RawDocument,
        fields: ExtractedFields,
        preferences: Preferences,
        query: str = "",
        now: Optional[datetime] = None,
    ) -> int:
        base = heuristic_score(document, preferences, query, fields, now)
        if not self.generative:
            return base

        try:
            return await self.generative_score(document, fields, preferences)
        except ScoringError as e:
            logger.warning(f"Falling back to heuristic score for {document.url}: {e}")
            return base
