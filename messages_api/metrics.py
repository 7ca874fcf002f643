"""
Prometheus metrics for the messages API.

This module provides:
- HTTP request counter (method, path, status)
- Request latency histogram (method, path)
- Cache lookup counter (namespace, result)
- Cache eviction counter (namespace)

Metrics are stored in-memory using prometheus-client.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST


# =============================================================================
# Metric Definitions
# =============================================================================

http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    labelnames=["method", "path", "status"]
)

# Default buckets: .005, .01, .025, .05, .075, .1, .25, .5, .75, 1.0, 2.5, 5.0, 7.5, 10.0
request_latency_seconds = Histogram(
    "request_latency_seconds",
    "Request latency in seconds",
    labelnames=["method", "path"]
)

# result: hit, miss
cache_requests_total = Counter(
    "cache_requests_total",
    "Total cache lookups",
    labelnames=["namespace", "result"]
)

cache_evictions_total = Counter(
    "cache_evictions_total",
    "Total whole-namespace cache evictions",
    labelnames=["namespace"]
)


# =============================================================================
# Helper Functions
# =============================================================================

def record_http_request(method: str, path: str, status: int, latency_seconds: float) -> None:
    """
    Record an HTTP request in metrics.

    Args:
        method: HTTP method (GET, POST, etc.)
        path: Request path
        status: HTTP status code
        latency_seconds: Request processing time in seconds
    """
    normalized_path = normalize_path(path)

    http_requests_total.labels(
        method=method,
        path=normalized_path,
        status=str(status)
    ).inc()

    request_latency_seconds.labels(
        method=method,
        path=normalized_path
    ).observe(latency_seconds)


def normalize_path(path: str) -> str:
    """
    Collapse numeric path segments to keep label cardinality bounded.

    /messages/42?x=1 -> /messages/{id}
    """
    segments = path.split("?")[0].split("/")
    return "/".join("{id}" if segment.isdigit() else segment for segment in segments)


def record_cache_lookup(namespace: str, hit: bool) -> None:
    cache_requests_total.labels(
        namespace=namespace,
        result="hit" if hit else "miss"
    ).inc()


def record_cache_eviction(namespace: str) -> None:
    cache_evictions_total.labels(namespace=namespace).inc()


def get_metrics() -> bytes:
    """
    Generate Prometheus exposition format metrics.

    Returns:
        Metrics in Prometheus text format as bytes
    """
    return generate_latest()


def get_metrics_content_type() -> str:
    """Get the content type for Prometheus metrics."""
    return CONTENT_TYPE_LATEST
