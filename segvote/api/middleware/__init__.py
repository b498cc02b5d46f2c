"""API middleware components."""

from segvote.api.middleware.logging_middleware import LoggingMiddleware
from segvote.api.middleware.metrics_middleware import MetricsMiddleware

__all__: list[str] = [
    "LoggingMiddleware",
    "MetricsMiddleware",
]
