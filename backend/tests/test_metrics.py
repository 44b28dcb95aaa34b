"""
Unit tests for the service's own Prometheus metrics.

Tests verify:
- RED metrics are recorded per normalized endpoint
- Discovery metrics track SD requests, bucket listings and target counts
- The exposition output is valid Prometheus text
"""
import pytest

from app.core.metrics import (
    get_metrics,
    get_metrics_content_type,
    http_errors_total,
    http_request_duration_seconds,
    http_requests_total,
    normalize_endpoint,
    normalize_job,
    record_bucket_listing,
    record_http_request,
    record_sd_request,
    sd_bucket_listing_failures_total,
    sd_buckets_listed,
    sd_requests_total,
    sd_targets_emitted,
)


@pytest.mark.parametrize(
    "path, expected",
    [
        ("/sd", "/sd"),
        ("/sd?job=minio-buckets", "/sd"),
        ("/health", "/health"),
        ("/metrics/", "/metrics"),
        ("/", "/"),
        ("/admin/secret", "other"),
    ],
)
def test_normalize_endpoint(path, expected):
    assert normalize_endpoint(path) == expected


@pytest.mark.parametrize(
    "job, expected",
    [
        ("minio-buckets", "minio-buckets"),
        ("minio-server", "minio-server"),
        ("junk-1", "other"),
        ("", "none"),
        (None, "none"),
    ],
)
def test_normalize_job(job, expected):
    assert normalize_job(job, ("minio-server", "minio-buckets")) == expected


def test_record_http_request_success():
    counter = http_requests_total.labels(method="GET", endpoint="/sd", status="200")
    before = counter._value.get()

    record_http_request(method="GET", endpoint="/sd", status_code=200, duration_seconds=0.02)

    assert counter._value.get() == before + 1
    samples = list(http_request_duration_seconds.collect()[0].samples)
    assert any(s.labels.get("endpoint") == "/sd" for s in samples)


def test_record_http_request_error():
    errors = http_errors_total.labels(method="GET", endpoint="/sd", status_code="500")
    before = errors._value.get()

    record_http_request(method="GET", endpoint="/sd", status_code=500, duration_seconds=0.1)

    assert errors._value.get() == before + 1


def test_record_sd_request():
    counter = sd_requests_total.labels(job="minio-buckets", outcome="ok")
    before = counter._value.get()

    record_sd_request("minio-buckets", "ok", target_count=7)

    assert counter._value.get() == before + 1
    assert sd_targets_emitted.labels(job="minio-buckets")._value.get() == 7


def test_record_sd_request_without_job():
    counter = sd_requests_total.labels(job="none", outcome="bad_request")
    before = counter._value.get()

    record_sd_request(None, "bad_request")

    assert counter._value.get() == before + 1


def test_record_bucket_listing():
    failures_before = sd_bucket_listing_failures_total._value.get()

    record_bucket_listing(duration_seconds=0.05, success=True, bucket_count=12)
    assert sd_buckets_listed._value.get() == 12

    record_bucket_listing(duration_seconds=1.5, success=False)
    assert sd_bucket_listing_failures_total._value.get() == failures_before + 1
    # A failed listing keeps the last known count
    assert sd_buckets_listed._value.get() == 12


def test_metrics_output_format():
    output = get_metrics().decode("utf-8")

    assert "sd_requests_total" in output
    assert "system_memory_usage_bytes" in output
    metric_lines = [line for line in output.split("\n") if line and not line.startswith("#")]
    assert metric_lines
    for line in metric_lines[:20]:
        if "{" in line:
            assert "}" in line
        else:
            assert len(line.split()) >= 2


def test_metrics_content_type():
    assert get_metrics_content_type().startswith("text/plain")
