"""
Shared metrics configuration for Feature Guard.
"""

from typing import Dict, Any, Optional

from prometheus_client import Counter, Histogram, CollectorRegistry


class MetricsCollector:
    """Centralized metrics collector for the guard.

    Metrics are only exported when a registry is supplied; without one the
    collector still counts, which keeps repeated construction in tests safe.
    """

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        self.registry = registry
        self._metrics: Dict[str, Any] = {}
        self._setup_metrics()

    def _setup_metrics(self):
        """Set up common and guard-specific metrics."""

        self._metrics["feature_guard_decisions_total"] = Counter(
            "feature_guard_decisions_total",
            "Total guard decisions",
            ["scope", "outcome"],
            registry=self.registry
        )

        self._metrics["feature_guard_flag_results_total"] = Counter(
            "feature_guard_flag_results_total",
            "Per-flag evaluation results",
            ["result"],
            registry=self.registry
        )

        self._metrics["feature_guard_evaluation_duration_seconds"] = Histogram(
            "feature_guard_evaluation_duration_seconds",
            "Guard evaluation duration in seconds",
            ["scope"],
            registry=self.registry
        )

    def record_decision(self, scope: str, outcome: str, duration: float):
        """Record one guard decision."""
        self._metrics["feature_guard_decisions_total"].labels(scope=scope, outcome=outcome).inc()
        self._metrics["feature_guard_evaluation_duration_seconds"].labels(scope=scope).observe(duration)

    def increment_counter(self, metric_name: str, **labels):
        """Increment a counter metric."""
        if metric_name in self._metrics:
            self._metrics[metric_name].labels(**labels).inc()


def get_metrics_collector(service_name: str, registry: Optional[CollectorRegistry] = None) -> MetricsCollector:
    """Get a metrics collector for a service."""
    return MetricsCollector(service_name, registry)
