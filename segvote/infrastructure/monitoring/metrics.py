"""Prometheus metrics for the vote service.

Two groups share one registry per collector:

- Process and HTTP: uptime, restarts, request latency and failures,
  recorded by the API middleware and the lifespan hooks.
- Votes: outcomes by vote kind, category reassignments and failed
  notification deliveries, recorded by the application services.

Every series carries the service and environment labels, read from
SERVICE_NAME and ENVIRONMENT when the collector is created.
"""

import os
import threading
import time

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

METRICS_CONTENT_TYPE = "text/plain; version=0.0.4; charset=utf-8"

# Vote requests finish well under a second; slow tails come from the store
REQUEST_DURATION_BUCKETS = (0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0)

BASE_LABELS = ("service", "environment")
HTTP_LABELS = (*BASE_LABELS, "method", "endpoint")

_collector_lock = threading.Lock()


class MetricsCollector:
    """Owns the vote service's Prometheus series.

    Pass a registry to share series with other collectors; by default
    each collector gets its own so tests stay isolated.
    """

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self._registry = registry or CollectorRegistry()
        self._environment = os.environ.get("ENVIRONMENT", "development")
        self._service_name = os.environ.get("SERVICE_NAME", "segvote-api")
        self.startup_times: dict[str, float] = {}

        # Process
        self.uptime_seconds = Gauge(
            "uptime_seconds",
            "Seconds since the service started",
            labelnames=BASE_LABELS,
            registry=self._registry,
        )
        self.service_starts_total = Counter(
            "service_starts_total",
            "Service starts, restarts included",
            labelnames=BASE_LABELS,
            registry=self._registry,
        )

        # HTTP
        self.http_request_duration_seconds = Histogram(
            "http_request_duration_seconds",
            "Request latency by route template",
            labelnames=HTTP_LABELS,
            buckets=REQUEST_DURATION_BUCKETS,
            registry=self._registry,
        )
        self.http_requests_total = Counter(
            "http_requests_total",
            "Requests by route template and status",
            labelnames=(*HTTP_LABELS, "status"),
            registry=self._registry,
        )
        self.http_requests_failed_total = Counter(
            "http_requests_failed_total",
            "Requests answered with 4xx or 5xx",
            labelnames=(*HTTP_LABELS, "status", "error_type"),
            registry=self._registry,
        )

        # Votes. kind is a VoteKind value or "category"; status is a
        # VoteOutcomeStatus value or "rejected".
        self.segment_votes_total = Counter(
            "segment_votes_total",
            "Vote requests by kind and outcome",
            labelnames=(*BASE_LABELS, "kind", "status"),
            registry=self._registry,
        )
        self.category_reassignments_total = Counter(
            "category_reassignments_total",
            "Segments moved to another category by consensus",
            labelnames=BASE_LABELS,
            registry=self._registry,
        )
        self.notification_failures_total = Counter(
            "notification_failures_total",
            "Vote notifications given up on after retries",
            labelnames=(*BASE_LABELS, "channel"),
            registry=self._registry,
        )

    def _labels(self, service: str | None = None, **extra: str) -> dict[str, str]:
        return {
            "service": service or self._service_name,
            "environment": self._environment,
            **extra,
        }

    # Process

    def record_startup(self, service: str) -> None:
        """Remember when service started and count the start."""
        self.startup_times[service] = time.time()
        self.service_starts_total.labels(**self._labels(service)).inc()

    def get_uptime_seconds(self, service: str) -> float:
        """Seconds since record_startup(service), 0.0 if never recorded."""
        started = self.startup_times.get(service)
        if started is None:
            return 0.0
        return time.time() - started

    def update_uptime_gauges(self) -> None:
        for service in self.startup_times:
            self.uptime_seconds.labels(**self._labels(service)).set(
                self.get_uptime_seconds(service)
            )

    # HTTP

    def observe_request_duration(
        self, method: str, endpoint: str, duration: float
    ) -> None:
        """Record one request's latency.

        Args:
            method: HTTP method.
            endpoint: Route template, e.g. /v1/segments/{segment_id}/votes.
            duration: Seconds spent handling the request.
        """
        self.http_request_duration_seconds.labels(
            **self._labels(method=method, endpoint=endpoint)
        ).observe(duration)

    def increment_requests(self, method: str, endpoint: str, status: str) -> None:
        self.http_requests_total.labels(
            **self._labels(method=method, endpoint=endpoint, status=status)
        ).inc()

    def increment_failed_requests(
        self, method: str, endpoint: str, status: str, error_type: str = "http_error"
    ) -> None:
        self.http_requests_failed_total.labels(
            **self._labels(
                method=method, endpoint=endpoint, status=status, error_type=error_type
            )
        ).inc()

    # Votes

    def increment_segment_votes(self, kind: str, status: str) -> None:
        self.segment_votes_total.labels(**self._labels(kind=kind, status=status)).inc()

    def increment_category_reassignments(self) -> None:
        self.category_reassignments_total.labels(**self._labels()).inc()

    def increment_notification_failures(self, channel: str) -> None:
        """Count a delivery given up on.

        Args:
            channel: "webhook" for custom webhooks, "discord" for reports.
        """
        self.notification_failures_total.labels(**self._labels(channel=channel)).inc()

    def get_registry(self) -> CollectorRegistry:
        return self._registry


_metrics_collector: MetricsCollector | None = None


def get_metrics_collector() -> MetricsCollector:
    """Process-wide collector, created on first use."""
    global _metrics_collector
    if _metrics_collector is None:
        with _collector_lock:
            if _metrics_collector is None:
                _metrics_collector = MetricsCollector()
    return _metrics_collector


def generate_metrics() -> bytes:
    """Render the process-wide collector in Prometheus text format."""
    collector = get_metrics_collector()
    collector.update_uptime_gauges()
    return generate_latest(collector.get_registry())


def reset_metrics_collector() -> None:
    """Drop the process-wide collector. Tests only."""
    global _metrics_collector
    with _collector_lock:
        _metrics_collector = None
