"""
Shared metrics configuration for the attendance client.
"""

from prometheus_client import Counter, Histogram, CollectorRegistry
from typing import Dict, Any, Optional


class MetricsCollector:
    """Centralized metrics collector for the client."""

    def __init__(self, app_name: str, registry: Optional[CollectorRegistry] = None):
        self.app_name = app_name
        # Private registry per collector
        self.registry = registry if registry is not None else CollectorRegistry()
        self._metrics: Dict[str, Any] = {}
        self._setup_metrics()

    def _setup_metrics(self):
        """Set up client metrics."""

        # Cache metrics
        self._metrics["cache_requests_total"] = Counter(
            "cache_requests_total",
            "Expiring cache lookups by result",
            ["result"],
            registry=self.registry
        )

        # Stale-while-revalidate refreshes
        self._metrics["resource_refresh_total"] = Counter(
            "resource_refresh_total",
            "Network refreshes by resource and outcome",
            ["resource", "outcome"],
            registry=self.registry
        )

        self._metrics["resource_refresh_duration_seconds"] = Histogram(
            "resource_refresh_duration_seconds",
            "Network refresh duration in seconds",
            ["resource"],
            registry=self.registry
        )

        # Scan submissions
        self._metrics["scan_submissions_total"] = Counter(
            "scan_submissions_total",
            "Scan submissions by outcome",
            ["outcome"],
            registry=self.registry
        )

    def increment_counter(self, metric_name: str, **labels):
        """Increment a counter metric."""
        if metric_name in self._metrics:
            self._metrics[metric_name].labels(**labels).inc()

    def observe_histogram(self, metric_name: str, value: float, **labels):
        """Observe a histogram metric."""
        if metric_name in self._metrics:
            self._metrics[metric_name].labels(**labels).observe(value)

    def sample_value(self, metric_name: str, **labels) -> Optional[float]:
        """Read back a sample value, mainly for diagnostics and tests."""
        return self.registry.get_sample_value(metric_name, labels)


def get_metrics_collector(app_name: str, registry: Optional[CollectorRegistry] = None) -> MetricsCollector:
    """Get a metrics collector for the client."""
    return MetricsCollector(app_name, registry)
