"""Prometheus metric inventory.

Every metric the service exports is declared here; the owning module
imports it and increments at the point of action.

  HTTP      populated by MetricsMiddleware for every request except
              /metrics itself.  The cache label carries the X-Cache
              header value (HIT, MISS, BYPASS) or "none" for routes the
              response cache does not wrap.
  Cache     hit/miss counts mirror CacheStats, but unlike CacheStats
              they are never reset by the operator endpoint; rate() over
              them is the long-running hit ratio.
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# ---------------------------------------------------------------------------
# HTTP metrics
# ---------------------------------------------------------------------------

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests by method, endpoint, status code and cache result",
    ["method", "endpoint", "status_code", "cache"],
)

REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    # 1-5ms is the cache-hit band; loader-backed misses land above 10ms
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

ACTIVE_REQUESTS = Gauge(
    "http_active_requests",
    "Number of HTTP requests currently being processed",
)

# ---------------------------------------------------------------------------
# Cache metrics
# ---------------------------------------------------------------------------

CACHE_OPERATIONS = Counter(
    "cache_operations_total",
    "Cache lookups by result",
    ["operation"],  # "hit" or "miss"
)

CACHE_WRITE_FAILURES = Counter(
    "cache_write_failures_total",
    "Cache populate attempts the store did not accept",
)

CACHE_INVALIDATED_KEYS = Counter(
    "cache_invalidated_keys_total",
    "Keys removed by pattern invalidation",
    ["resource"],  # Resource value, or "pattern" for ad-hoc operator clears
)

CACHE_BACKEND_ERRORS = Counter(
    "cache_backend_errors_total",
    "Errors raised by the cache backend, by store operation",
    ["operation"],
)
