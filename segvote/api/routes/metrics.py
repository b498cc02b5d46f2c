"""Metrics endpoint for Prometheus scraping."""

from fastapi import APIRouter, Response

from segvote.infrastructure.monitoring.metrics import (
    METRICS_CONTENT_TYPE,
    generate_metrics,
)

router = APIRouter(tags=["metrics"])


@router.get(
    "/metrics",
    summary="Prometheus metrics endpoint",
    response_class=Response,
    responses={
        200: {
            "description": "Metrics in Prometheus format",
            "content": {"text/plain": {}},
        }
    },
)
async def get_metrics() -> Response:
    """Operational and vote metrics in Prometheus exposition format.

    Exposes uptime_seconds, service_starts_total, the http_request_*
    series, segment_votes_total, category_reassignments_total and
    notification_failures_total.
    """
    return Response(content=generate_metrics(), media_type=METRICS_CONTENT_TYPE)
