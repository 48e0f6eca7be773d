"""
Shared metrics configuration for the Secrets Manager caching proxy.
"""

from typing import Dict, Any, Optional

from prometheus_client import Counter, Histogram, Gauge, Info, CollectorRegistry


class MetricsCollector:
    """Centralized metrics collector for services."""

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        # Each collector owns its registry so several services (or tests) can coexist
        self.registry = registry if registry is not None else CollectorRegistry()
        self._metrics: Dict[str, Any] = {}
        self._setup_metrics()

    def _setup_metrics(self):
        """Set up common metrics for the service."""

        # Service info
        self._metrics["service_info"] = Info(
            "service_info",
            "Service information",
            registry=self.registry
        )
        self._metrics["service_info"].info({
            "service": self.service_name,
            "version": "1.0.0"
        })

        # HTTP metrics
        self._metrics["http_requests_total"] = Counter(
            "http_requests_total",
            "Total HTTP requests",
            ["method", "endpoint", "status_code"],
            registry=self.registry
        )

        self._metrics["http_request_duration_seconds"] = Histogram(
            "http_request_duration_seconds",
            "HTTP request duration in seconds",
            ["method", "endpoint"],
            registry=self.registry
        )

        # Health check metrics
        self._metrics["health_check_total"] = Counter(
            "health_check_total",
            "Total health check requests",
            ["status"],
            registry=self.registry
        )

        # Error metrics
        self._metrics["errors_total"] = Counter(
            "errors_total",
            "Total classified errors",
            ["error_type", "service"],
            registry=self.registry
        )

        self._setup_proxy_metrics()

    def _setup_proxy_metrics(self):
        """Set up cache and backend metrics."""
        self._metrics["cache_lookups_total"] = Counter(
            "cache_lookups_total",
            "Secret cache lookups by outcome",
            ["operation", "result"],
            registry=self.registry
        )

        self._metrics["cache_entries"] = Gauge(
            "cache_entries",
            "Number of (identifier, version stage) entries held in the secret cache",
            registry=self.registry
        )

        self._metrics["backend_calls_total"] = Counter(
            "backend_calls_total",
            "Calls made to Secrets Manager",
            ["operation", "outcome"],
            registry=self.registry
        )

        self._metrics["backend_call_duration_seconds"] = Histogram(
            "backend_call_duration_seconds",
            "Secrets Manager call duration in seconds",
            ["operation"],
            registry=self.registry
        )

        self._metrics["batch_chunks"] = Histogram(
            "batch_chunks",
            "Number of backend chunks a batch lookup was split into",
            buckets=(1, 2, 3, 5, 10, 25, 50),
            registry=self.registry
        )

    def record_http_request(self, method: str, endpoint: str, status_code: int, duration: float):
        """Record HTTP request metrics."""
        self._metrics["http_requests_total"].labels(
            method=method,
            endpoint=endpoint,
            status_code=str(status_code)
        ).inc()

        self._metrics["http_request_duration_seconds"].labels(
            method=method,
            endpoint=endpoint
        ).observe(duration)

    def record_health_check(self, status: str):
        """Record health check metrics."""
        self._metrics["health_check_total"].labels(status=status).inc()

    def record_error(self, error_type: str, service: Optional[str] = None):
        """Record error metrics."""
        service_name = service or self.service_name
        self._metrics["errors_total"].labels(error_type=error_type, service=service_name).inc()

    def record_cache_lookup(self, operation: str, hits: int, misses: int):
        """Record the outcome of a cache lookup."""
        if hits:
            self._metrics["cache_lookups_total"].labels(operation=operation, result="hit").inc(hits)
        if misses:
            self._metrics["cache_lookups_total"].labels(operation=operation, result="miss").inc(misses)

    def record_backend_call(self, operation: str, outcome: str, duration: float):
        """Record a single Secrets Manager call."""
        self._metrics["backend_calls_total"].labels(operation=operation, outcome=outcome).inc()
        self._metrics["backend_call_duration_seconds"].labels(operation=operation).observe(duration)

    def observe_batch_chunks(self, chunk_count: int):
        self._metrics["batch_chunks"].observe(chunk_count)

    def set_cache_entries(self, size: int):
        self._metrics["cache_entries"].set(size)


def get_metrics_collector(service_name: str, registry: Optional[CollectorRegistry] = None) -> MetricsCollector:
    """Get a metrics collector for a service."""
    return MetricsCollector(service_name, registry)
