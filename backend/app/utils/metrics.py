"""Prometheus metrics for the request lifecycle."""

from prometheus_client import Counter, Histogram

# Reference data cache metrics
reference_cache_fill_ms = Histogram(
    "reference_cache_fill_ms",
    "Time spent computing reference data on a cache miss, in milliseconds",
    ["kind"],
    buckets=[1, 5, 10, 25, 50, 100, 250, 500, 1000],
)

reference_cache_misses_total = Counter(
    "reference_cache_misses_total",
    "Total reference data cache misses",
    ["kind"],
)

# Policy enforcement metrics
community_resolution_failures_total = Counter(
    "community_resolution_failures_total",
    "Total requests whose Host matched no community",
)

write_requests_blocked_total = Counter(
    "write_requests_blocked_total",
    "Total write requests rejected for a blocked identity",
    ["item_type"],
)

warning_redirects_total = Counter(
    "warning_redirects_total",
    "Total requests redirected to a pending moderation warning",
)


class PrometheusRequestMetrics:
    """Prometheus-based request metrics implementation."""

    def record_cache_fill(self, kind: str, latency_ms: float) -> None:
        """Record a reference data cache miss and its compute time."""
        reference_cache_misses_total.labels(kind=kind).inc()
        reference_cache_fill_ms.labels(kind=kind).observe(latency_ms)

    def inc_resolution_failure(self) -> None:
        """Increment unresolvable host counter."""
        community_resolution_failures_total.inc()

    def inc_blocked_write(self, item_type: str) -> None:
        """Increment blocked write counter."""
        write_requests_blocked_total.labels(item_type=item_type).inc()

    def inc_warning_redirect(self) -> None:
        """Increment warning redirect counter."""
        warning_redirects_total.inc()
