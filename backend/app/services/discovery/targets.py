"""
Scrape target synthesis for Prometheus HTTP service discovery.

Turns a MinIO bucket list into target groups:
- one group per bucket that passes the include/exclude patterns, pointing
  Prometheus at the bucket's v3 metrics path
- one server-level group for the cluster's own metrics endpoint

Label keys follow Prometheus meta-label conventions so the HTTP SD response
can be consumed without relabelling.
"""
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Sequence

from app.core.config import Settings, format_duration
from app.models.responses import ScrapeConfig, StaticConfig, TargetGroup
from app.services.discovery.patterns import MATCH_ALL, matches
from app.services.storage.minio_client import Bucket

METRICS_PATH_LABEL = "__metrics_path__"
SCHEME_LABEL = "__scheme__"
INSTANCE_LABEL = "instance"
JOB_LABEL = "job"
BUCKET_LABEL = "sd_bucket"
BUCKET_CREATION_LABEL = "sd_bucket_creation"
BUCKET_PATTERN_LABEL = "bucket_pattern"

BUCKET_API_SUFFIX = "/bucket/api"

# Rendered when MinIO omits a bucket's CreationDate
ZERO_TIME = "0001-01-01T00:00:00Z"


def format_rfc3339(value: Optional[datetime]) -> str:
    """
    Format a timestamp as RFC 3339 with second precision.

    Naive datetimes are treated as UTC; UTC renders with a "Z" suffix.
    A missing timestamp renders as the zero time.
    """
    if value is None:
        return ZERO_TIME
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    offset = value.utcoffset()
    if offset is not None and offset.total_seconds() == 0:
        return value.strftime("%Y-%m-%dT%H:%M:%SZ")
    return value.isoformat(timespec="seconds")


def bucket_metrics_path(metrics_path: str) -> str:
    """Base path of the per-bucket metrics API under the given metrics path."""
    return metrics_path.rstrip("/") + BUCKET_API_SUFFIX


def filter_buckets(
    buckets: Iterable[Bucket],
    include_pattern: str,
    exclude_pattern: str,
) -> List[Bucket]:
    """
    Keep buckets matching the include pattern and not matching the exclude pattern.

    The exclude pattern wins when both match. Input order is preserved.
    """
    if include_pattern == MATCH_ALL and exclude_pattern == "":
        return list(buckets)

    filtered = []
    for bucket in buckets:
        if not matches(bucket.name, include_pattern):
            continue
        if exclude_pattern and matches(bucket.name, exclude_pattern):
            continue
        filtered.append(bucket)
    return filtered


def bucket_target(
    bucket: Bucket,
    endpoint: str,
    scheme: str,
    *,
    metrics_path: str,
    job_name: str,
) -> TargetGroup:
    """Build the target group for a single bucket."""
    return TargetGroup(
        targets=[endpoint],
        labels={
            METRICS_PATH_LABEL: f"{bucket_metrics_path(metrics_path)}/{bucket.name}",
            SCHEME_LABEL: scheme,
            INSTANCE_LABEL: endpoint,
            JOB_LABEL: job_name,
            BUCKET_LABEL: bucket.name,
            BUCKET_CREATION_LABEL: format_rfc3339(bucket.creation_date),
        },
    )


def synthesize(
    buckets: Sequence[Bucket],
    include_pattern: str,
    exclude_pattern: str,
    endpoint: str,
    scheme: str,
    *,
    metrics_path: str = "/minio/metrics/v3",
    job_name: str = "minio-buckets",
) -> List[TargetGroup]:
    """
    Produce one target group per bucket that survives filtering.

    Args:
        buckets: Buckets as listed by MinIO, in listing order
        include_pattern: Wildcard pattern a bucket must match
        exclude_pattern: Wildcard pattern that removes a bucket (empty disables it)
        endpoint: MinIO address Prometheus should scrape
        scheme: "http" or "https"
        metrics_path: Base path of the MinIO v3 metrics API
        job_name: Value of the "job" label

    Returns:
        Target groups in the order the buckets were supplied
    """
    return [
        bucket_target(
            bucket,
            endpoint,
            scheme,
            metrics_path=metrics_path,
            job_name=job_name,
        )
        for bucket in filter_buckets(buckets, include_pattern, exclude_pattern)
    ]


def server_target(
    endpoint: str,
    scheme: str,
    *,
    metrics_path: str = "/minio/metrics/v3",
    job_name: str = "minio-server",
) -> TargetGroup:
    """Target group for the cluster-wide MinIO server metrics."""
    return TargetGroup(
        targets=[endpoint],
        labels={
            METRICS_PATH_LABEL: metrics_path,
            SCHEME_LABEL: scheme,
            INSTANCE_LABEL: endpoint,
            JOB_LABEL: job_name,
        },
    )


def synthesize_for_settings(settings: Settings, buckets: Sequence[Bucket]) -> List[TargetGroup]:
    """Run synthesize() with the patterns, endpoint and job name from settings."""
    return synthesize(
        buckets,
        settings.bucket_pattern,
        settings.bucket_exclude_pattern,
        settings.minio_endpoint,
        settings.scheme,
        metrics_path=settings.metrics_path,
        job_name=settings.bucket_job_name,
    )


def server_target_for_settings(settings: Settings) -> TargetGroup:
    return server_target(
        settings.minio_endpoint,
        settings.scheme,
        metrics_path=settings.metrics_path,
        job_name=settings.server_job_name,
    )


def _base_scrape_config(settings: Settings, job_name: str) -> dict:
    return {
        "job_name": job_name,
        "metrics_path": settings.metrics_path,
        "scrape_interval": format_duration(settings.scrape_interval),
        "scrape_timeout": format_duration(settings.scrape_timeout),
        "scheme": settings.scheme,
    }


def build_scrape_configs(settings: Settings, buckets: Sequence[Bucket]) -> List[ScrapeConfig]:
    """
    Build the scrape configurations the service can discover targets for.

    The server job is always present; the bucket job only when the cluster
    has at least one bucket.
    """
    server = server_target_for_settings(settings)
    configs = [
        ScrapeConfig(
            **_base_scrape_config(settings, settings.server_job_name),
            static_configs=[StaticConfig(targets=server.targets, labels=server.labels)],
        )
    ]

    if buckets:
        configs.append(
            ScrapeConfig(
                **_base_scrape_config(settings, settings.bucket_job_name),
                static_configs=[
                    StaticConfig(
                        targets=[settings.minio_endpoint],
                        labels={
                            METRICS_PATH_LABEL: bucket_metrics_path(settings.metrics_path),
                            SCHEME_LABEL: settings.scheme,
                            INSTANCE_LABEL: settings.minio_endpoint,
                            JOB_LABEL: settings.bucket_job_name,
                            BUCKET_PATTERN_LABEL: settings.bucket_pattern,
                        },
                    )
                ],
            )
        )

    return configs
