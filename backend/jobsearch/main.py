"""
Job Search API - Main Application Entry Point

This module initializes the FastAPI application with:
- Logging and database schema initialization
- Search provider clients (Exa, OpenAI) built once at start-up
- CORS middleware for frontend communication
- Prometheus metrics and error handlers
- API router registration

Architecture:
    FastAPI App
    ├── Lifespan Management (startup/shutdown)
    ├── CORS Middleware
    ├── Prometheus Middleware (/metrics)
    └── API Router
        ├── /search, /search/enhanced, /searches - Run and list searches
        ├── /jobs - Query and delete job candidates
        ├── /saved-jobs - Bookmark management
        └── /stats - Dashboard statistics
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from openai import AsyncOpenAI
from starlette.exceptions import HTTPException as StarletteHTTPException

from jobsearch.api import api_router
from jobsearch.config import get_settings
from jobsearch.database import init_db
from jobsearch.errors import JobSearchError
from jobsearch.logging_config import setup_logging
from jobsearch.middleware.metrics import setup_metrics
from jobsearch.services.pipeline import JobSearchPipeline
from jobsearch.services.providers import ExaSearchProvider, OpenAITextGenerator

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifecycle events.

    Startup:
        1. Configure logging
        2. Initialize database tables
        3. Build provider clients and the search pipeline when credentials exist

    Shutdown:
        1. Close the provider HTTP clients

    Yields:
        Control to the application during its runtime
    """
    settings = get_settings()
    setup_logging()
    await init_db()

    exa = None
    openai_client = None
    app.state.pipeline = None

    missing = settings.missing_credentials()
    if missing:
        # Search requests report this as a configuration error
        logger.warning(f"Search disabled, missing: {', '.join(missing)}")
    else:
        exa = ExaSearchProvider(
            settings.exa_api_key,
            base_url=settings.exa_base_url,
            timeout=settings.provider_timeout_seconds,
            max_characters=settings.exa_max_characters,
        )
        openai_client = AsyncOpenAI(
            api_key=settings.openai_api_key,
            timeout=settings.provider_timeout_seconds,
        )
        generator = OpenAITextGenerator(openai_client, model=settings.openai_model)
        app.state.pipeline = JobSearchPipeline(exa, generator, settings)

    yield

    if exa is not None:
        await exa.aclose()
    if openai_client is not None:
        await openai_client.close()


app = FastAPI(
    title="Job Search API",
    description="AI-powered job search over Exa with OpenAI enrichment",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

setup_metrics(app)


@app.exception_handler(JobSearchError)
async def job_search_error_handler(request: Request, exc: JobSearchError):
    logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.title, "message": exc.message, "tip": exc.tip},
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    messages = []
    for err in exc.errors():
        field = ".".join(str(part) for part in err["loc"] if part != "body") or "body"
        messages.append(f"{field}: {err['msg']}")
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request", "message": "; ".join(messages)},
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})


app.include_router(api_router)


@app.get("/health")
async def health_check():
    return {"status": "healthy"}
