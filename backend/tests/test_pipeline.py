"""
Tests for the end-to-end search pipeline with stub providers.

Run with: cd backend && pytest tests/test_pipeline.py -v
"""
import asyncio
from unittest.mock import AsyncMock

import pytest

from jobsearch.config import Settings
from jobsearch.errors import RetrievalError
from jobsearch.schemas import Preferences
from jobsearch.services.extractor import FIELDS
from jobsearch.services.pipeline import JobSearchPipeline
from jobsearch.services.providers.base import RawDocument
from jobsearch.services.scorer import heuristic_score
from tests.stubs import StubSearchProvider, StubTextGenerator

QUERY = "Software Engineer"
REMOTE = Preferences(location="Remote")


def plain_posting(title: str) -> str:
    """Posting text with validator signals but no pay/benefit keywords."""
    return (
        f"{title} (Remote). We are hiring. Responsibilities: you will build and operate "
        "services for our customers. Requirements: experience with Python and distributed "
        "systems. " * 3
        + "Apply through the link below."
    )


@pytest.fixture
def engineer_doc():
    return RawDocument(
        url="https://boards.greenhouse.io/acme/jobs/1",
        title="Software Engineer",
        text=plain_posting("Software Engineer"),
    )


@pytest.fixture
def developer_doc():
    return RawDocument(
        url="https://jobs.lever.co/acme/2",
        title="Backend Developer (Software)",
        text=plain_posting("Backend Developer"),
    )


@pytest.fixture
def blog_doc():
    return RawDocument(
        url="https://acme.com/blog/culture",
        title="Engineering culture at Acme",
        text="Blog post: what we learned building distributed systems over the years. " * 8,
    )


@pytest.fixture
def documents(developer_doc, engineer_doc, blog_doc):
    return [developer_doc, engineer_doc, blog_doc]


class TestJobSearchPipeline:
    @pytest.mark.asyncio
    async def test_remote_search_ranks_validated_postings(self, documents, heuristic_settings):
        provider = StubSearchProvider(documents)
        pipeline = JobSearchPipeline(provider, None, heuristic_settings)

        jobs = await pipeline.run(QUERY, REMOTE, num_results=20)

        assert len(provider.calls) == 3
        assert [job.url for job in jobs] == [
            "https://boards.greenhouse.io/acme/jobs/1",
            "https://jobs.lever.co/acme/2",
        ]
        assert [job.score for job in jobs] == [9, 8]
        assert all(job.location == "Remote" for job in jobs)

        # Each score includes the remote location bonus
        for job, doc in zip(jobs, documents[1::-1]):
            assert job.score > heuristic_score(doc, Preferences(), QUERY)

    @pytest.mark.asyncio
    async def test_results_cut_to_requested_count(self, documents, heuristic_settings):
        pipeline = JobSearchPipeline(StubSearchProvider(documents), None, heuristic_settings)
        jobs = await pipeline.run(QUERY, REMOTE, num_results=1)
        assert [job.title for job in jobs] == ["Software Engineer"]

    @pytest.mark.asyncio
    async def test_retrieval_failure_propagates(self, failing_provider, heuristic_settings):
        pipeline = JobSearchPipeline(failing_provider, None, heuristic_settings)
        with pytest.raises(RetrievalError):
            await pipeline.run(QUERY, REMOTE)

    @pytest.mark.asyncio
    async def test_no_valid_documents(self, blog_doc, heuristic_settings):
        pipeline = JobSearchPipeline(StubSearchProvider([blog_doc]), None, heuristic_settings)
        assert await pipeline.run(QUERY, REMOTE) == []

    @pytest.mark.asyncio
    async def test_failed_candidate_is_dropped(self, documents, heuristic_settings):
        pipeline = JobSearchPipeline(StubSearchProvider(documents), None, heuristic_settings)
        real_score = pipeline.scorer.score

        async def flaky_score(document, *args, **kwargs):
            if "lever" in document.url:
                raise RuntimeError("unexpected")
            return await real_score(document, *args, **kwargs)

        pipeline.scorer.score = AsyncMock(side_effect=flaky_score)
        jobs = await pipeline.run(QUERY, REMOTE)
        assert [job.url for job in jobs] == ["https://boards.greenhouse.io/acme/jobs/1"]

    @pytest.mark.asyncio
    async def test_missing_company_and_location_defaults(self, heuristic_settings):
        doc = RawDocument(
            url="https://example.com/jobs/99",
            title="Software Engineer",
            text=plain_posting("Software Engineer").replace("(Remote)", "").replace("Remote", ""),
        )
        pipeline = JobSearchPipeline(StubSearchProvider([doc]), None, heuristic_settings)
        jobs = await pipeline.run(QUERY, Preferences())
        assert jobs[0].company == "Unknown Company"
        assert jobs[0].location == "Unknown"

    @pytest.mark.asyncio
    async def test_find_similar_expands_from_top_matches(self, documents, heuristic_settings):
        similar_doc = RawDocument(
            url="https://boards.greenhouse.io/initech/jobs/7",
            title="Software Engineer, Payments",
            text=plain_posting("Software Engineer, Payments"),
        )
        provider = StubSearchProvider(documents, similar=[similar_doc])
        pipeline = JobSearchPipeline(provider, None, heuristic_settings)

        jobs = await pipeline.run(QUERY, REMOTE, find_similar=True)

        assert provider.similar_calls == [
            "https://boards.greenhouse.io/acme/jobs/1",
            "https://jobs.lever.co/acme/2",
        ]
        urls = [job.url for job in jobs]
        assert urls.count("https://boards.greenhouse.io/initech/jobs/7") == 1
        assert len(jobs) == 3
        assert [job.score for job in jobs] == sorted((job.score for job in jobs), reverse=True)

    @pytest.mark.asyncio
    async def test_find_similar_needs_high_scores(self, documents):
        settings = Settings(extraction_mode="heuristic", generative_scoring=False, similar_min_score=10)
        provider = StubSearchProvider(documents)
        pipeline = JobSearchPipeline(provider, None, settings)
        await pipeline.run(QUERY, REMOTE, find_similar=True)
        assert provider.similar_calls == []

    @pytest.mark.asyncio
    async def test_generative_scoring(self, documents):
        settings = Settings(extraction_mode="heuristic", generative_scoring=True)
        generator = StubTextGenerator(default="3")
        pipeline = JobSearchPipeline(StubSearchProvider(documents), generator, settings)

        jobs = await pipeline.run(QUERY, REMOTE)

        assert [job.score for job in jobs] == [3, 3]
        # Equal scores keep retrieval order
        assert jobs[0].url == "https://jobs.lever.co/acme/2"
        assert all("Rate how well" in prompt for prompt in generator.prompts)


class InFlightGenerator:
    """Records prompt start order and the peak number of concurrent calls."""

    def __init__(self):
        self.in_flight = 0
        self.peak = 0
        self.prompts = []

    async def generate_text(self, prompt: str, max_tokens: int) -> str:
        self.prompts.append(prompt)
        self.in_flight += 1
        self.peak = max(self.peak, self.in_flight)
        try:
            await asyncio.sleep(0)
        finally:
            self.in_flight -= 1
        return "7" if "Rate how well" in prompt else "Acme"


class TestEnrichmentBatches:
    @pytest.fixture
    def postings(self):
        return [
            RawDocument(
                url=f"https://jobs.lever.co/acme/{i}",
                title=f"Role {i:02d}",
                text=f"posting-{i:02d} " + plain_posting("Engineer"),
            )
            for i in range(12)
        ]

    @pytest.mark.asyncio
    async def test_batches_bound_concurrency(self, postings):
        settings = Settings(extraction_mode="generative", generative_scoring=True, batch_size=5)
        generator = InFlightGenerator()
        pipeline = JobSearchPipeline(StubSearchProvider(), generator, settings)

        jobs = await pipeline.enrich_all(postings, QUERY, REMOTE)

        assert len(jobs) == 12
        assert all(job.score == 7 for job in jobs)
        assert len(generator.prompts) == 12 * (len(FIELDS) + 1)
        assert len(FIELDS) < generator.peak <= 5 * len(FIELDS)

    @pytest.mark.asyncio
    async def test_scoring_waits_for_fields_and_batches_run_in_order(self, postings):
        settings = Settings(extraction_mode="generative", generative_scoring=True, batch_size=5)
        generator = InFlightGenerator()
        pipeline = JobSearchPipeline(StubSearchProvider(), generator, settings)

        await pipeline.enrich_all(postings, QUERY, REMOTE)

        def field_calls(i):
            return [n for n, p in enumerate(generator.prompts) if f"posting-{i:02d}" in p]

        def score_call(i):
            return next(n for n, p in enumerate(generator.prompts) if f"Role {i:02d}" in p)

        for i in range(12):
            fields = field_calls(i)
            assert len(fields) == len(FIELDS)
            assert score_call(i) > max(fields)

        # Nothing from the next batch starts until the previous one is done
        for start in (5, 10):
            previous = range(start - 5, start)
            current = range(start, min(start + 5, 12))
            last_previous = max(max(field_calls(i) + [score_call(i)]) for i in previous)
            first_current = min(min(field_calls(i)) for i in current)
            assert first_current > last_previous
