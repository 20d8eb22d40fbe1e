"""
Middleware Package

Contains FastAPI middleware for:
- Prometheus metrics collection
- Upstream provider call monitoring
"""

from jobsearch.middleware.metrics import (
    PrometheusMiddleware,
    setup_metrics,
    REQUEST_LATENCY,
    REQUEST_COUNT,
    ACTIVE_REQUESTS,
    PROVIDER_LATENCY,
    PROVIDER_ERRORS,
)

__all__ = [
    "PrometheusMiddleware",
    "setup_metrics",
    "REQUEST_LATENCY",
    "REQUEST_COUNT",
    "ACTIVE_REQUESTS",
    "PROVIDER_LATENCY",
    "PROVIDER_ERRORS",
]
