"""
Prometheus metrics for the discovery service itself.

Metrics Categories:
- RED Metrics: Rate, Errors, Duration of HTTP requests
- Discovery Metrics: SD requests per job, bucket listing latency and failures,
  bucket and target counts
- Resource Metrics: CPU, memory

Naming follows Prometheus conventions:
- Counters: _total suffix
- Histograms: _seconds suffix for duration
- Gauges: No special suffix
"""
from typing import Iterable, Optional
import psutil
from prometheus_client import (
    Counter,
    Histogram,
    Gauge,
    generate_latest,
    REGISTRY,
    CONTENT_TYPE_LATEST,
)

from app.core.logging import get_logger

logger = get_logger(__name__)

registry = REGISTRY

# ============================================================================
# RED METRICS - Rate, Errors, Duration
# ============================================================================

http_requests_total = Counter(
    "http_requests_total",
    "Total number of HTTP requests",
    ["method", "endpoint", "status"],
    registry=registry,
)

http_errors_total = Counter(
    "http_errors_total",
    "Total number of HTTP errors",
    ["method", "endpoint", "status_code"],
    registry=registry,
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "endpoint"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
    registry=registry,
)

# ============================================================================
# DISCOVERY METRICS
# ============================================================================

sd_requests_total = Counter(
    "sd_requests_total",
    "Total number of service discovery requests",
    ["job", "outcome"],  # outcome: ok, not_found, bad_request, error
    registry=registry,
)

sd_bucket_listing_duration_seconds = Histogram(
    "sd_bucket_listing_duration_seconds",
    "MinIO ListBuckets latency in seconds",
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
    registry=registry,
)

sd_bucket_listing_failures_total = Counter(
    "sd_bucket_listing_failures_total",
    "Total number of failed MinIO ListBuckets calls",
    registry=registry,
)

sd_buckets_listed = Gauge(
    "sd_buckets_listed",
    "Number of buckets returned by the last successful listing",
    registry=registry,
)

sd_targets_emitted = Gauge(
    "sd_targets_emitted",
    "Number of target groups returned by the last discovery request",
    ["job"],
    registry=registry,
)

# ============================================================================
# RESOURCE METRICS
# ============================================================================

system_cpu_usage_percent = Gauge(
    "system_cpu_usage_percent",
    "System CPU usage percentage",
    registry=registry,
)

system_memory_usage_bytes = Gauge(
    "system_memory_usage_bytes",
    "System memory usage in bytes",
    registry=registry,
)


# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

KNOWN_ENDPOINTS = {"/", "/sd", "/scrape_configs", "/health", "/metrics"}


def normalize_endpoint(path: str) -> str:
    """
    Normalize endpoint path for metrics.

    Query strings are dropped and unknown paths collapse into "other" to keep
    label cardinality bounded.

    Examples:
        /sd?job=minio-buckets -> /sd
        /metrics/ -> /metrics
        /does/not/exist -> other
    """
    if "?" in path:
        path = path.split("?")[0]
    if len(path) > 1:
        path = path.rstrip("/")
    return path if path in KNOWN_ENDPOINTS else "other"


def record_http_request(
    method: str,
    endpoint: str,
    status_code: int,
    duration_seconds: float,
) -> None:
    """
    Record HTTP request metrics (RED metrics).

    Args:
        method: HTTP method (GET, POST, etc.)
        endpoint: Request path
        status_code: HTTP status code
        duration_seconds: Request duration in seconds
    """
    normalized_endpoint = normalize_endpoint(endpoint)

    http_requests_total.labels(
        method=method,
        endpoint=normalized_endpoint,
        status=str(status_code),
    ).inc()

    if status_code >= 400:
        http_errors_total.labels(
            method=method,
            endpoint=normalized_endpoint,
            status_code=str(status_code),
        ).inc()

    http_request_duration_seconds.labels(
        method=method,
        endpoint=normalized_endpoint,
    ).observe(duration_seconds)


def normalize_job(job: Optional[str], known_jobs: Iterable[str]) -> str:
    """
    Normalize a requested job name for metrics.

    Only configured jobs keep their name; anything a client makes up collapses
    into "other" and a missing job into "none".
    """
    if not job:
        return "none"
    return job if job in known_jobs else "other"


def record_sd_request(job: Optional[str], outcome: str, target_count: Optional[int] = None) -> None:
    """
    Record a service discovery request.

    Args:
        job: Job label, already normalized with normalize_job()
        outcome: ok, not_found, bad_request or error
        target_count: Number of target groups returned (successful requests only)
    """
    job_label = job or "none"
    sd_requests_total.labels(job=job_label, outcome=outcome).inc()
    if target_count is not None:
        sd_targets_emitted.labels(job=job_label).set(target_count)


def record_bucket_listing(
    duration_seconds: float,
    success: bool,
    bucket_count: Optional[int] = None,
) -> None:
    """Record the outcome of a MinIO ListBuckets call."""
    sd_bucket_listing_duration_seconds.observe(duration_seconds)
    if not success:
        sd_bucket_listing_failures_total.inc()
    elif bucket_count is not None:
        sd_buckets_listed.set(bucket_count)


def update_resource_metrics() -> None:
    """
    Update system resource metrics (CPU, memory).

    Called on-demand when metrics are scraped.
    """
    try:
        system_cpu_usage_percent.set(psutil.cpu_percent(interval=None))
        system_memory_usage_bytes.set(psutil.virtual_memory().used)
    except Exception as e:
        logger.warning(
            "metrics_resource_update_failed",
            error=str(e),
            error_type=type(e).__name__,
        )


def get_metrics() -> bytes:
    """Get Prometheus metrics in text format."""
    update_resource_metrics()
    return generate_latest(registry)


def get_metrics_content_type() -> str:
    """Get content type for metrics endpoint."""
    return CONTENT_TYPE_LATEST
