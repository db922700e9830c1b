"""
Shared metrics configuration for the http.cat image cache.
"""

from typing import Dict, Any, Optional
import time
from contextlib import contextmanager

from prometheus_client import Counter, Histogram, Info, CollectorRegistry, start_http_server


class MetricsCollector:
    """Centralized metrics collector for services.

    Each collector owns its own registry so several service instances (tests,
    scripts) can coexist in one process without duplicate registrations.
    """

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
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
            ["method", "status_code"],
            registry=self.registry
        )

        self._metrics["http_request_duration_seconds"] = Histogram(
            "http_request_duration_seconds",
            "HTTP request duration in seconds",
            ["method"],
            registry=self.registry
        )

        # Error metrics
        self._metrics["errors_total"] = Counter(
            "errors_total",
            "Total errors",
            ["error_type", "service"],
            registry=self.registry
        )

        self._setup_cache_metrics()

    def _setup_cache_metrics(self):
        """Set up cache-specific metrics."""
        self._metrics["cache_outcomes_total"] = Counter(
            "cache_outcomes_total",
            "Cache signals by outcome (hit, miss, backfilled, not_found, stored, deleted)",
            ["outcome"],
            registry=self.registry
        )

        self._metrics["origin_fetches_total"] = Counter(
            "origin_fetches_total",
            "Total origin fetches by result",
            ["result"],
            registry=self.registry
        )

        self._metrics["origin_fetch_duration_seconds"] = Histogram(
            "origin_fetch_duration_seconds",
            "Origin fetch duration in seconds",
            registry=self.registry
        )

    def get_sample_value(self, name: str, **labels) -> Optional[float]:
        """Read the current value of a sample from this collector's registry."""
        return self.registry.get_sample_value(name, labels)

    def start_metrics_server(self, port: int = 9090):
        """Start the Prometheus metrics server."""
        start_http_server(port, registry=self.registry)

    def record_http_request(self, method: str, status_code: int, duration: float):
        """Record HTTP request metrics."""
        self._metrics["http_requests_total"].labels(
            method=method,
            status_code=str(status_code)
        ).inc()

        self._metrics["http_request_duration_seconds"].labels(
            method=method
        ).observe(duration)

    def record_error(self, error_type: str, service: Optional[str] = None):
        """Record error metrics."""
        service_name = service or self.service_name
        self._metrics["errors_total"].labels(error_type=error_type, service=service_name).inc()

    @contextmanager
    def time_operation(self, operation_name: str, **labels):
        """Context manager to time an operation."""
        start_time = time.perf_counter()
        try:
            yield
        finally:
            duration = time.perf_counter() - start_time
            if operation_name in self._metrics:
                metric = self._metrics[operation_name]
                if labels:
                    metric = metric.labels(**labels)
                metric.observe(duration)

    def increment_counter(self, metric_name: str, **labels):
        """Increment a counter metric."""
        if metric_name in self._metrics:
            self._metrics[metric_name].labels(**labels).inc()


def get_metrics_collector(service_name: str, registry: Optional[CollectorRegistry] = None) -> MetricsCollector:
    """Get a metrics collector for a service."""
    return MetricsCollector(service_name, registry)
