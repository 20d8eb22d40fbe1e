"""
Shared fixtures: isolated SQLite database, stub providers, API client.

Environment is set before any jobsearch import so the cached Settings and
the module-level engine point at a throwaway database.
"""
import os
import tempfile
from datetime import datetime

_tmpdir = tempfile.mkdtemp(prefix="jobsearch-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{_tmpdir}/test.db"
os.environ.setdefault("EXA_API_KEY", "test-exa-key")
os.environ.setdefault("OPENAI_API_KEY", "test-openai-key")

import pytest
from fastapi.testclient import TestClient

from jobsearch.config import Settings
from jobsearch.errors import RetrievalError
from tests.stubs import StubSearchProvider


@pytest.fixture
def heuristic_settings():
    return Settings(extraction_mode="heuristic", generative_scoring=False)


@pytest.fixture
def now():
    return datetime(2024, 6, 1, 12, 0, 0)


@pytest.fixture
def failing_provider():
    return StubSearchProvider(error=RetrievalError("Exa API error: 500"))


@pytest.fixture(scope="session")
def app():
    from jobsearch.main import app as fastapi_app
    return fastapi_app


@pytest.fixture(scope="session")
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def use_pipeline(app):
    """Install a pipeline built on the given stub provider for one test."""
    from jobsearch.api.deps import get_pipeline
    from jobsearch.services.pipeline import JobSearchPipeline

    def install(provider, text_generator=None, settings=None):
        settings = settings or Settings(extraction_mode="heuristic", generative_scoring=False)
        pipeline = JobSearchPipeline(provider, text_generator, settings)
        app.dependency_overrides[get_pipeline] = lambda: pipeline
        return pipeline

    yield install
    app.dependency_overrides.clear()
