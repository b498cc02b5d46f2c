"""Metrics middleware recording HTTP request metrics to Prometheus."""

import time
from collections.abc import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from segvote.infrastructure.monitoring.metrics import get_metrics_collector

_CLIENT_ERROR_TYPES: dict[int, str] = {
    400: "bad_request",
    403: "forbidden",
    404: "not_found",
    422: "validation_error",
    429: "rate_limited",
}

_SERVER_ERROR_TYPES: dict[int, str] = {
    500: "internal_error",
    503: "service_unavailable",
}


def classify_error_type(status_code: int) -> str:
    """Classify an HTTP error status code for the failed-requests counter."""
    if 400 <= status_code < 500:
        return _CLIENT_ERROR_TYPES.get(status_code, "client_error")
    if status_code >= 500:
        return _SERVER_ERROR_TYPES.get(status_code, "server_error")
    return "unknown"


class MetricsMiddleware(BaseHTTPMiddleware):
    """Records duration, total and failed request counts per route.

    The endpoint label is the route template when one matched, so
    /v1/segments/{segment_id}/votes is one series rather than one per
    segment.
    """

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Response]
    ) -> Response:
        start_time = time.perf_counter()
        response = await call_next(request)
        duration = time.perf_counter() - start_time

        route = request.scope.get("route")
        endpoint = getattr(route, "path", None) or request.url.path
        method = request.method
        status = str(response.status_code)

        collector = get_metrics_collector()
        collector.observe_request_duration(
            method=method, endpoint=endpoint, duration=duration
        )
        collector.increment_requests(method=method, endpoint=endpoint, status=status)
        if response.status_code >= 400:
            collector.increment_failed_requests(
                method=method,
                endpoint=endpoint,
                status=status,
                error_type=classify_error_type(response.status_code),
            )
        return response
