"""
Observability metrics module.

The manager operates in two modes:
1. No-op mode: every method exists but does nothing
2. Active mode: Prometheus counters on a registry owned by the manager

Callers never need to check which mode is active.
"""

import typing as t


class _DummyMetric:
    """Stands in for a Prometheus metric when metrics are disabled."""

    def labels(self, *args: t.Any, **kwargs: t.Any) -> "_DummyMetric":
        return self

    def inc(self, amount: float = 1) -> None:
        pass


class MetricsManager:
    """Central manager for metrics operations."""

    def __init__(self, enabled: bool = False):
        """
        Initialize the metrics manager.

        Args:
            enabled: Whether metrics collection is active
        """
        self.enabled = enabled
        self.registry = None
        self._initialize_metrics()

    def _initialize_metrics(self) -> None:
        """Initialize metric objects based on enabled state."""
        if self.enabled:
            from prometheus_client import CollectorRegistry, Counter

            # One registry per manager so several apps can live in one process
            self.registry = CollectorRegistry()

            self.reconciliations_total = Counter(
                "payrelay_reconciliations_total",
                "Reconciliation outcomes per channel",
                ["channel", "outcome"],
                registry=self.registry,
            )

            self.notifications_total = Counter(
                "payrelay_notifications_total",
                "Admin notification delivery attempts",
                ["result"],
                registry=self.registry,
            )

            self.provider_requests_total = Counter(
                "payrelay_provider_requests_total",
                "Calls to the payment provider",
                ["operation", "result"],
                registry=self.registry,
            )
        else:
            self.reconciliations_total = _DummyMetric()
            self.notifications_total = _DummyMetric()
            self.provider_requests_total = _DummyMetric()

    def record_reconciliation(self, channel: str, outcome: str) -> None:
        self.reconciliations_total.labels(channel=channel, outcome=outcome).inc()

    def record_notification(self, delivered: bool) -> None:
        self.notifications_total.labels(result="delivered" if delivered else "failed").inc()

    def record_provider_call(self, operation: str, result: str) -> None:
        self.provider_requests_total.labels(operation=operation, result=result).inc()

    def render(self) -> t.Tuple[bytes, str]:
        """Exposition payload and content type for the /metrics route."""
        from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

        if not self.enabled:
            return b"", CONTENT_TYPE_LATEST
        return generate_latest(self.registry), CONTENT_TYPE_LATEST


NOOP_METRICS = MetricsManager(enabled=False)
