"""Prometheus metrics for assistant action dispatch."""

from prometheus_client import Counter, Histogram

actions_total = Counter(
    "assistant_actions_total",
    "Total assistant actions processed",
    ["type", "status"],
)

action_latency_ms = Histogram(
    "assistant_action_latency_ms",
    "Assistant action processing latency in milliseconds",
    ["type"],
    buckets=[1, 5, 10, 25, 50, 100, 250, 500, 1000, 2500],
)

batches_rejected_total = Counter(
    "assistant_action_batches_rejected_total",
    "Action batches rejected by schema validation",
)

duplicates_dropped_total = Counter(
    "assistant_action_duplicates_dropped_total",
    "Actions dropped as duplicates",
    ["scope"],
)


class PrometheusActionMetrics:
    """Prometheus-based action metrics implementation."""

    def record_outcome(self, action_type: str, status: str, latency_ms: float) -> None:
        """Record one processed action."""
        actions_total.labels(type=action_type, status=status).inc()
        action_latency_ms.labels(type=action_type).observe(latency_ms)

    def inc_batch_rejected(self) -> None:
        batches_rejected_total.inc()

    def inc_duplicate(self, scope: str) -> None:
        duplicates_dropped_total.labels(scope=scope).inc()
