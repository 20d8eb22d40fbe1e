"""
Job Search Pipeline - retrieval to ranked candidates

Flow:
    1. Build search strategies from query + preferences
    2. Retrieve documents from every strategy concurrently
    3. Keep documents that look like single job postings
    4. Enrich in batches: extract fields concurrently, then score
    5. Deduplicate by URL or (title, company)
    6. Optionally expand with pages similar to the best matches
    7. Sort by score descending and cut to the requested count

Nothing here touches the database; persistence happens only after the
pipeline returns, so a failed search leaves no rows behind.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Sequence

from jobsearch.config import Settings
from jobsearch.middleware.metrics import record_pipeline_stage
from jobsearch.schemas import Preferences
from jobsearch.services.dedup import deduplicate_jobs
from jobsearch.services.extractor import ExtractedFields, FieldExtractor
from jobsearch.services.providers.base import RawDocument, SearchProvider, TextGenerator
from jobsearch.services.query_builder import build_strategies
from jobsearch.services.retriever import retrieve, retrieve_similar
from jobsearch.services.scorer import Scorer
from jobsearch.services.validator import ValidationPolicy, is_job_posting

logger = logging.getLogger(__name__)

UNKNOWN_COMPANY = "Unknown Company"
UNKNOWN_LOCATION = "Unknown"


@dataclass
class EnrichedJob:
    """A validated posting with its extracted fields and score, not yet persisted."""

    url: str
    title: str
    content: str
    company: str
    location: str
    salary: str = ""
    experience_level: str = ""
    job_type: str = ""
    skills: str = ""
    remote_policy: str = ""
    apply_method: str = ""
    benefits: List[str] = field(default_factory=list)
    company_size: str = "Unknown"
    score: int = 0
    published_at: Optional[datetime] = None

    @classmethod
    def from_document(cls, document: RawDocument, fields: ExtractedFields, score: int) -> "EnrichedJob":
        return cls(
            url=document.url,
            title=document.title or "Untitled Position",
            content=document.text or "",
            company=fields.company or UNKNOWN_COMPANY,
            location=fields.location or UNKNOWN_LOCATION,
            salary=fields.salary,
            experience_level=fields.experience_level,
            job_type=fields.job_type,
            skills=fields.skills,
            remote_policy=fields.remote_policy,
            apply_method=fields.apply_method,
            benefits=list(fields.benefits),
            company_size=fields.company_size,
            score=score,
            published_at=document.published_date,
        )


class JobSearchPipeline:
    """
    Orchestrates one search from query to ranked, deduplicated candidates.

    Provider clients are injected so tests can swap in deterministic stubs.
    """

    def __init__(
        self,
        search_provider: SearchProvider,
        text_generator: Optional[TextGenerator],
        settings: Settings,
    ):
        self.search_provider = search_provider
        self.text_generator = text_generator
        self.settings = settings
        self.policy = ValidationPolicy(
            min_signals=settings.validator_min_signals,
            min_content_length=settings.validator_min_content_length,
            substantial_content_length=settings.validator_substantial_content_length,
        )
        self.extractor = FieldExtractor(
            text_generator,
            mode=settings.extraction_mode,
            input_chars=settings.extraction_input_chars,
            max_tokens=settings.extraction_max_tokens,
        )
        self.scorer = Scorer(
            text_generator,
            generative=settings.generative_scoring,
            max_tokens=settings.scoring_max_tokens,
        )

    def validate(self, documents: Sequence[RawDocument], query: str) -> List[RawDocument]:
        accepted = [doc for doc in documents if is_job_posting(doc, query, self.policy)]
        logger.info(f"Validated {len(accepted)} of {len(documents)} documents as job postings")
        return accepted

    async def enrich(
        self,
        document: RawDocument,
        query: str,
        preferences: Preferences,
        now: Optional[datetime] = None,
    ) -> EnrichedJob:
        fields = await self.extractor.extract_all(document, preferences)
        score = await self.scorer.score(document, fields, preferences, query, now)
        return EnrichedJob.from_document(document, fields, score)

    async def enrich_all(
        self,
        documents: Sequence[RawDocument],
        query: str,
        preferences: Preferences,
        now: Optional[datetime] = None,
    ) -> List[EnrichedJob]:
        """
        Enrich documents in batches of ``batch_size``.

        A candidate whose enrichment raises is logged and dropped; the rest of
        its batch is unaffected. Output follows input order.
        """
        batch_size = max(1, self.settings.batch_size)
        jobs: List[EnrichedJob] = []

        for start in range(0, len(documents), batch_size):
            batch = documents[start:start + batch_size]
            results = await asyncio.gather(
                *(self.enrich(doc, query, preferences, now) for doc in batch),
                return_exceptions=True,
            )
            for doc, result in zip(batch, results):
                if isinstance(result, BaseException):
                    logger.error(f"Dropping {doc.url}: enrichment failed: {result}")
                    continue
                jobs.append(result)

        return jobs

    async def find_similar_jobs(
        self,
        seeds: Sequence[EnrichedJob],
        query: str,
        preferences: Preferences,
        now: Optional[datetime] = None,
    ) -> List[EnrichedJob]:
        """Expand the best matches with similar pages, validated and enriched like the rest."""
        candidates = [job for job in seeds if job.score >= self.settings.similar_min_score]
        candidates = candidates[:self.settings.similar_seed_jobs]
        if not candidates:
            return []

        batches = await asyncio.gather(
            *(
                retrieve_similar(self.search_provider, job.url, self.settings.similar_per_seed)
                for job in candidates
            )
        )
        documents = [doc for batch in batches for doc in batch]
        logger.info(f"Found {len(documents)} similar pages from {len(candidates)} top jobs")

        accepted = self.validate(documents, query)
        return await self.enrich_all(accepted, query, preferences, now)

    async def run(
        self,
        query: str,
        preferences: Preferences,
        num_results: Optional[int] = None,
        find_similar: bool = False,
        now: Optional[datetime] = None,
    ) -> List[EnrichedJob]:
        """
        Run a full search.

        Args:
            query: Non-empty free-text query
            preferences: User preference filters
            num_results: Result budget and final cut-off
            find_similar: Expand with pages similar to top matches
            now: Reference time for date windows and recency scoring

        Returns:
            Candidates sorted by score descending, at most num_results

        Raises:
            RetrievalError: every search strategy failed
            RateLimitError: every strategy was rate limited
        """
        num_results = num_results or self.settings.default_num_results
        strategies = build_strategies(
            query,
            preferences,
            num_results,
            recency_days=self.settings.search_recency_days,
            max_technologies=self.settings.max_technology_terms,
            now=now,
        )

        documents = await retrieve(self.search_provider, strategies)
        record_pipeline_stage("retrieved", len(documents))

        accepted = self.validate(documents, query)
        record_pipeline_stage("accepted", len(accepted))

        jobs = deduplicate_jobs(await self.enrich_all(accepted, query, preferences, now))

        if find_similar and jobs:
            ranked = sorted(jobs, key=lambda job: job.score, reverse=True)
            similar = await self.find_similar_jobs(ranked, query, preferences, now)
            jobs = deduplicate_jobs(jobs + similar)

        # sorted() is stable, so equal scores keep retrieval order
        jobs = sorted(jobs, key=lambda job: job.score, reverse=True)[:num_results]
        record_pipeline_stage("ranked", len(jobs))
        logger.info(f"Search '{query}' produced {len(jobs)} ranked jobs")
        return jobs
