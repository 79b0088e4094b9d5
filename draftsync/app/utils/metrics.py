"""Prometheus metrics for tool dispatch and remote synchronization."""

from prometheus_client import Counter, Histogram

# Tool dispatch metrics
tool_dispatch_latency_ms = Histogram(
    "tool_dispatch_latency_ms",
    "Tool dispatch latency in milliseconds",
    ["tool", "outcome"],
    buckets=[10, 50, 100, 250, 500, 1000, 2500, 5000, 10000, 30000],
)

tool_dispatch_errors_total = Counter(
    "tool_dispatch_errors_total",
    "Total tool dispatch errors",
    ["tool", "code"],
)

# Remote synchronization metrics
remote_sync_total = Counter(
    "remote_sync_total",
    "Remote synchronization attempts",
    ["direction", "outcome"],
)

lock_retries_total = Counter(
    "lock_retries_total",
    "Upload retries caused by a locked remote document",
)


class PrometheusDispatchMetrics:
    """Prometheus-based dispatch metrics implementation."""

    def record_latency(self, tool: str, outcome: str, latency_ms: float) -> None:
        """Record tool dispatch latency."""
        tool_dispatch_latency_ms.labels(tool=tool, outcome=outcome).observe(latency_ms)

    def inc_error(self, tool: str, code: str) -> None:
        """Increment error counter."""
        tool_dispatch_errors_total.labels(tool=tool, code=code).inc()


class PrometheusSyncMetrics:
    """Prometheus-based sync metrics implementation."""

    def inc_sync(self, direction: str, outcome: str) -> None:
        """Count a pull or push attempt by outcome."""
        remote_sync_total.labels(direction=direction, outcome=outcome).inc()

    def inc_lock_retry(self) -> None:
        """Count one retry after a lock conflict."""
        lock_retries_total.inc()
