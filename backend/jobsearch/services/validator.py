"""
Posting Validator - decides whether a retrieved page is a job posting

Search results include company overviews, blog posts and policy pages that
mention the query. Each page is checked against six independent signals and
accepted once enough of them hold:

    job_url         - URL contains a job path pattern (/jobs/, jobid=, ...)
    title_keyword   - title contains a hiring keyword or a query term
    sections        - content covers at least two of: responsibilities,
                      requirements, compensation/benefits
    not_excluded    - no non-job phrase in the title or opening text
    substantial     - content longer than the substantial-content threshold
    apply_cue       - content tells the reader how to apply

Pages with an empty title or content below the minimum length are rejected
before any signal is counted.
"""

from dataclasses import dataclass
from typing import List, Optional

from jobsearch.services.providers.base import RawDocument

JOB_URL_PATTERNS = [
    "/jobs/", "/careers/", "/job/", "/career/", "/position/", "/opening/",
    "/vacancy/", "job-", "career-", "-job", "-career", "jobid=", "job_id=",
    "requisition", "posting", "/apply",
]

TITLE_JOB_INDICATORS = [
    "hiring", "job", "position", "role", "opening", "opportunity",
    "career", "vacancy", "wanted", "seeking", "engineer", "developer",
]

REQUIRED_SECTIONS = [
    ["responsibilit", "duties", "what you", "you will"],
    ["requirement", "qualification", "skill", "experience", "must have"],
    ["benefit", "perks", "salary", "compensation", "we offer"],
]

EXCLUDE_PATTERNS = [
    "company overview", "about us page", "store location", "press release",
    "news article", "blog post", "case study", "product page", "service page",
    "contact us", "privacy policy", "terms of service", "cookie policy",
]

APPLY_CUES = ["apply", "application", "submit your resume", "send your cv"]


@dataclass
class ValidationPolicy:
    """Thresholds for accepting a page as a job posting."""

    min_signals: int = 3
    min_content_length: int = 200
    substantial_content_length: int = 500
    min_sections: int = 2
    exclusion_window: int = 500


@dataclass
class PostingSignals:
    job_url: bool
    title_keyword: bool
    sections_found: int
    not_excluded: bool
    substantial: bool
    apply_cue: bool

    def count(self, min_sections: int) -> int:
        return sum([
            self.job_url,
            self.title_keyword,
            self.sections_found >= min_sections,
            self.not_excluded,
            self.substantial,
            self.apply_cue,
        ])


def query_terms(query: str) -> List[str]:
    return [word for word in query.lower().split() if len(word) > 2]


def posting_signals(
    document: RawDocument,
    policy: ValidationPolicy,
    query: str = "",
) -> PostingSignals:
    title = (document.title or "").lower()
    content = (document.text or "").lower()
    url = (document.url or "").lower()
    opening = content[:policy.exclusion_window]

    sections_found = sum(
        1 for terms in REQUIRED_SECTIONS if any(term in content for term in terms)
    )
    excluded = any(p in title or p in opening for p in EXCLUDE_PATTERNS)
    # A title naming the searched role counts as a hiring title
    title_keyword = any(k in title for k in TITLE_JOB_INDICATORS) or any(
        term in title for term in query_terms(query)
    )

    return PostingSignals(
        job_url=any(p in url for p in JOB_URL_PATTERNS),
        title_keyword=title_keyword,
        sections_found=sections_found,
        not_excluded=not excluded,
        substantial=len(content) > policy.substantial_content_length,
        apply_cue=any(cue in content for cue in APPLY_CUES),
    )


def is_job_posting(
    document: RawDocument,
    query: str = "",
    policy: Optional[ValidationPolicy] = None,
) -> bool:
    """
    Return True when the page looks like a single job posting.

    Args:
        document: Raw search result
        query: Original query; its terms in the title count as a hiring title
        policy: Thresholds; defaults to ValidationPolicy()
    """
    policy = policy or ValidationPolicy()
    content = document.text or ""

    if not (document.title or "").strip() or len(content) < policy.min_content_length:
        return False

    signals = posting_signals(document, policy, query)
    return signals.count(policy.min_sections) >= policy.min_signals
