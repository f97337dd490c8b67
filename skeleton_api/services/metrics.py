"""
HTTP Metrics

Prometheus collectors for the request pipeline. Each application instance
owns its own CollectorRegistry, so two apps in one process (or two tests)
never see each other's counters.
"""

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)
from prometheus_client.utils import INF

# Same shape as the Go client's DefBuckets / ExponentialBuckets(100, 10, 8)
DURATION_BUCKETS = (0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, INF)
SIZE_BUCKETS = tuple(100.0 * 10 ** i for i in range(8)) + (INF,)


class HTTPMetrics:
    """Request counters, latency and size histograms and the in-flight gauge."""

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self.registry = registry or CollectorRegistry()

        self.requests_total = Counter(
            "http_requests_total",
            "Total number of HTTP requests",
            ["method", "path", "status"],
            registry=self.registry,
        )
        self.request_duration = Histogram(
            "http_request_duration_seconds",
            "Duration of HTTP requests in seconds",
            ["method", "path", "status"],
            buckets=DURATION_BUCKETS,
            registry=self.registry,
        )
        self.request_size = Histogram(
            "http_request_size_bytes",
            "Size of HTTP requests in bytes",
            ["method", "path"],
            buckets=SIZE_BUCKETS,
            registry=self.registry,
        )
        self.response_size = Histogram(
            "http_response_size_bytes",
            "Size of HTTP responses in bytes",
            ["method", "path", "status"],
            buckets=SIZE_BUCKETS,
            registry=self.registry,
        )
        self.active_connections = Gauge(
            "http_active_connections",
            "Number of active HTTP connections",
            registry=self.registry,
        )

    def observe(
        self,
        method: str,
        path: str,
        status: int,
        duration: float,
        request_size: int | None = None,
        response_size: int | None = None,
    ) -> None:
        """Record one finished request."""
        status_label = str(status)
        self.requests_total.labels(method, path, status_label).inc()
        self.request_duration.labels(method, path, status_label).observe(duration)
        if request_size:
            self.request_size.labels(method, path).observe(request_size)
        if response_size:
            self.response_size.labels(method, path, status_label).observe(response_size)

    def sample(self, name: str, labels: dict[str, str] | None = None) -> float | None:
        """Read a single sample value back from the registry."""
        return self.registry.get_sample_value(name, labels or {})

    def render(self) -> tuple[bytes, str]:
        """Prometheus text exposition of this registry."""
        return generate_latest(self.registry), CONTENT_TYPE_LATEST
