from typing import Optional

from fastapi import Request

from jobsearch.config import get_settings
from jobsearch.errors import ConfigurationError
from jobsearch.services.pipeline import JobSearchPipeline


def get_pipeline(request: Request) -> Optional[JobSearchPipeline]:
    """Pipeline built at start-up, or None when credentials were missing."""
    return getattr(request.app.state, "pipeline", None)


def require_pipeline(pipeline: Optional[JobSearchPipeline]) -> JobSearchPipeline:
    """Missing credentials surface here, per request, after the request is validated."""
    if pipeline is None:
        missing = get_settings().missing_credentials() or ["provider clients"]
        raise ConfigurationError(f"Missing configuration: {', '.join(missing)}")
    return pipeline
