"""
Prometheus Metrics Middleware

Provides request/response metrics for monitoring:
- HTTP request latency and count by endpoint and status
- Active request gauge
- Upstream provider (Exa, OpenAI) call latency and failures
- Pipeline candidate funnel (retrieved, accepted, ranked)

Usage:
    from jobsearch.middleware.metrics import setup_metrics

    # In main.py
    app = FastAPI()
    setup_metrics(app)

Metrics Endpoint:
    GET /metrics - Prometheus-format metrics
"""

import time
import logging
from typing import Callable

from fastapi import FastAPI, Request, Response
from fastapi.responses import PlainTextResponse
from prometheus_client import (
    Counter,
    Gauge,
    Histogram,
    CONTENT_TYPE_LATEST,
    generate_latest,
    REGISTRY,
)
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.routing import Match

logger = logging.getLogger(__name__)

# ==================== Prometheus Metrics ====================

REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "endpoint", "status"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0]
)

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"]
)

ACTIVE_REQUESTS = Gauge(
    "http_requests_active",
    "Number of active HTTP requests",
    ["method", "endpoint"]
)

PROVIDER_LATENCY = Histogram(
    "provider_call_seconds",
    "Upstream provider call latency",
    ["provider", "operation"],  # exa/openai, search/find_similar/chat
    buckets=[0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0]
)

PROVIDER_ERRORS = Counter(
    "provider_errors_total",
    "Failed upstream provider calls",
    ["provider", "operation"]
)

PIPELINE_CANDIDATES = Counter(
    "pipeline_candidates_total",
    "Job candidates seen by each pipeline stage",
    ["stage"]  # retrieved, accepted, ranked
)


class PrometheusMiddleware(BaseHTTPMiddleware):
    """
    FastAPI middleware for Prometheus metrics collection.

    Records:
    - Request latency
    - Request count by status code
    - Active request count
    """

    def __init__(self, app: FastAPI, app_name: str = "jobsearch"):
        super().__init__(app)
        self.app_name = app_name

    async def dispatch(
        self,
        request: Request,
        call_next: Callable
    ) -> Response:
        endpoint = self._get_endpoint(request)
        method = request.method

        if endpoint == "/metrics":
            return await call_next(request)

        ACTIVE_REQUESTS.labels(method=method, endpoint=endpoint).inc()
        start_time = time.perf_counter()

        try:
            response = await call_next(request)
            status = str(response.status_code)
        except Exception as e:
            status = "500"
            logger.error(f"Request error: {e}")
            raise
        finally:
            duration = time.perf_counter() - start_time

            REQUEST_LATENCY.labels(
                method=method,
                endpoint=endpoint,
                status=status
            ).observe(duration)

            REQUEST_COUNT.labels(
                method=method,
                endpoint=endpoint,
                status=status
            ).inc()

            ACTIVE_REQUESTS.labels(
                method=method,
                endpoint=endpoint
            ).dec()

        return response

    def _get_endpoint(self, request: Request) -> str:
        """
        Get normalized endpoint path from request.

        Uses the route pattern instead of the actual path to keep label
        cardinality bounded.
        """
        for route in request.app.routes:
            match, _ = route.matches(request.scope)
            # Mounted and included routers can match without a path of their own
            path = getattr(route, "path", None)
            if match == Match.FULL and path:
                return path

        return request.url.path


def metrics_endpoint(request: Request) -> Response:
    """Endpoint handler for Prometheus metrics scraping."""
    return PlainTextResponse(
        content=generate_latest(REGISTRY),
        media_type=CONTENT_TYPE_LATEST
    )


def setup_metrics(app: FastAPI) -> None:
    """
    Configure Prometheus metrics for FastAPI app.

    Args:
        app: FastAPI application instance
    """
    app.add_middleware(PrometheusMiddleware, app_name="jobsearch")
    app.add_route("/metrics", metrics_endpoint, methods=["GET"])

    logger.info("Prometheus metrics configured")


# ==================== Helper Functions ====================

def record_provider_call(provider: str, operation: str, duration: float) -> None:
    """Record the latency of one upstream provider call."""
    PROVIDER_LATENCY.labels(provider=provider, operation=operation).observe(duration)


def record_provider_error(provider: str, operation: str) -> None:
    """Record a failed upstream provider call."""
    PROVIDER_ERRORS.labels(provider=provider, operation=operation).inc()


def record_pipeline_stage(stage: str, count: int) -> None:
    """Add the number of candidates that reached a pipeline stage."""
    PIPELINE_CANDIDATES.labels(stage=stage).inc(count)
