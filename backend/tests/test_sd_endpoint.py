"""
Integration tests for the service discovery HTTP API.

MinIO is replaced with a mock SDK client; everything else runs as in
production.
"""
from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from app.application import create_app
from app.core.config import Settings
from app.core.metrics import http_requests_total, sd_requests_total
from app.services.storage.minio_client import BucketLister

CREATED = datetime(2024, 1, 15, 8, 0, 0, tzinfo=timezone.utc)


def sdk_bucket(name):
    return SimpleNamespace(name=name, creation_date=CREATED)


@pytest.fixture
def minio_sdk():
    """Mock MinIO SDK client with three buckets."""
    client = MagicMock()
    client.list_buckets.return_value = [sdk_bucket("prod-a"), sdk_bucket("dev-b"), sdk_bucket("prod-c")]
    return client


@pytest.fixture
def settings():
    return Settings(
        minio_endpoint="minio:9000",
        bucket_pattern="prod-*",
        log_json=False,
    )


@pytest.fixture
def client(settings, minio_sdk):
    """Create test client."""
    app = create_app(settings, BucketLister(settings, client=minio_sdk))
    return TestClient(app)


class TestServiceDiscovery:
    """GET /sd"""

    def test_missing_job_is_bad_request(self, client):
        response = client.get("/sd")
        assert response.status_code == 400
        assert response.json()["detail"] == "job parameter is required"

    def test_blank_job_is_bad_request(self, client):
        response = client.get("/sd", params={"job": ""})
        assert response.status_code == 400

    def test_unknown_job_is_not_found(self, client):
        response = client.get("/sd", params={"job": "nope"})
        assert response.status_code == 404
        data = response.json()
        assert data["detail"] == "Job not found"
        assert data["status_code"] == 404

    def test_bucket_job_filters_buckets(self, client):
        response = client.get("/sd", params={"job": "minio-buckets"})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/json")
        data = response.json()
        assert [group["labels"]["sd_bucket"] for group in data] == ["prod-a", "prod-c"]
        assert data[0] == {
            "targets": ["minio:9000"],
            "labels": {
                "__metrics_path__": "/minio/metrics/v3/bucket/api/prod-a",
                "__scheme__": "http",
                "instance": "minio:9000",
                "job": "minio-buckets",
                "sd_bucket": "prod-a",
                "sd_bucket_creation": "2024-01-15T08:00:00Z",
            },
        }

    def test_server_job_does_not_list_buckets(self, client, minio_sdk):
        response = client.get("/sd", params={"job": "minio-server"})

        assert response.status_code == 200
        assert response.json() == [
            {
                "targets": ["minio:9000"],
                "labels": {
                    "__metrics_path__": "/minio/metrics/v3",
                    "__scheme__": "http",
                    "instance": "minio:9000",
                    "job": "minio-server",
                },
            }
        ]
        minio_sdk.list_buckets.assert_not_called()

    def test_no_buckets_returns_empty_list(self, client, minio_sdk):
        minio_sdk.list_buckets.return_value = []

        response = client.get("/sd", params={"job": "minio-buckets"})

        assert response.status_code == 200
        assert response.json() == []

    def test_listing_failure_is_server_error(self, client, minio_sdk):
        """A failed listing is reported, not turned into an empty target list."""
        minio_sdk.list_buckets.side_effect = ConnectionError("connection refused")

        response = client.get("/sd", params={"job": "minio-buckets"})

        assert response.status_code == 500
        data = response.json()
        assert data["detail"] == "Internal server error"
        assert data["trace_id"]

    def test_each_request_lists_buckets_again(self, client, minio_sdk):
        client.get("/sd", params={"job": "minio-buckets"})
        minio_sdk.list_buckets.return_value = [sdk_bucket("prod-new")]

        response = client.get("/sd", params={"job": "minio-buckets"})

        assert [group["labels"]["sd_bucket"] for group in response.json()] == ["prod-new"]
        assert minio_sdk.list_buckets.call_count == 2


def test_exclude_pattern_and_custom_jobs(minio_sdk):
    settings = Settings(
        minio_endpoint="minio:9443",
        minio_use_ssl=True,
        bucket_exclude_pattern="dev-*",
        bucket_job_name="buckets",
        server_job_name="cluster",
        metrics_path="/minio/metrics/v3/",
    )
    client = TestClient(create_app(settings, BucketLister(settings, client=minio_sdk)))

    data = client.get("/sd", params={"job": "buckets"}).json()
    assert [group["labels"]["sd_bucket"] for group in data] == ["prod-a", "prod-c"]
    assert data[0]["labels"]["__scheme__"] == "https"
    assert data[0]["labels"]["__metrics_path__"] == "/minio/metrics/v3/bucket/api/prod-a"

    assert client.get("/sd", params={"job": "minio-buckets"}).status_code == 404
    assert client.get("/sd", params={"job": "cluster"}).json()[0]["labels"]["job"] == "cluster"


class TestScrapeConfigs:
    """GET /scrape_configs"""

    def test_lists_server_and_bucket_jobs(self, client):
        response = client.get("/scrape_configs")

        assert response.status_code == 200
        data = response.json()
        assert [config["job_name"] for config in data] == ["minio-server", "minio-buckets"]
        server = data[0]
        assert server["metrics_path"] == "/minio/metrics/v3"
        assert server["scrape_interval"] == "15s"
        assert server["scrape_timeout"] == "10s"
        assert server["scheme"] == "http"
        assert "relabel_configs" not in server
        assert data[1]["static_configs"][0]["labels"]["bucket_pattern"] == "prod-*"

    def test_bucket_job_omitted_without_buckets(self, client, minio_sdk):
        minio_sdk.list_buckets.return_value = []

        data = client.get("/scrape_configs").json()

        assert [config["job_name"] for config in data] == ["minio-server"]

    def test_listing_failure_is_server_error(self, client, minio_sdk):
        minio_sdk.list_buckets.side_effect = RuntimeError("boom")

        assert client.get("/scrape_configs").status_code == 500


class TestHealth:
    """GET /health"""

    def test_healthy(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["timestamp"].endswith("Z")
        assert "error" not in data

    def test_unhealthy(self, client, minio_sdk):
        minio_sdk.list_buckets.side_effect = ConnectionError("connection refused")

        response = client.get("/health")

        assert response.status_code == 503
        data = response.json()
        assert data["status"] == "unhealthy"
        assert "connection refused" in data["error"]
        assert "timestamp" in data


def test_documentation_page(client):
    response = client.get("/")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/html")
    assert "MinIO Prometheus Service Discovery" in response.text
    assert "/sd?job=minio-buckets" in response.text
    assert "prod-*" in response.text


def test_metrics_endpoint(client):
    from prometheus_client import CONTENT_TYPE_LATEST

    client.get("/sd", params={"job": "minio-buckets"})
    response = client.get("/metrics")

    assert response.status_code == 200
    assert response.headers["content-type"] == CONTENT_TYPE_LATEST
    assert "sd_requests_total" in response.text
    assert "sd_bucket_listing_duration_seconds" in response.text
    assert "http_requests_total" in response.text


def test_unknown_route_uses_error_shape(client):
    response = client.get("/does-not-exist")

    assert response.status_code == 404
    assert set(response.json()) == {"detail", "status_code", "trace_id"}


def test_bucket_without_creation_date_is_listed(client, minio_sdk):
    minio_sdk.list_buckets.return_value = [
        SimpleNamespace(name="prod-legacy", creation_date=None),
        sdk_bucket("prod-a"),
    ]

    response = client.get("/sd", params={"job": "minio-buckets"})

    assert response.status_code == 200
    data = response.json()
    assert [group["labels"]["sd_bucket"] for group in data] == ["prod-legacy", "prod-a"]
    assert data[0]["labels"]["sd_bucket_creation"] == "0001-01-01T00:00:00Z"


def test_unknown_jobs_share_one_metric_series(client):
    other = sd_requests_total.labels(job="other", outcome="not_found")
    before = other._value.get()

    for i in range(50):
        assert client.get("/sd", params={"job": f"junk-{i}"}).status_code == 404

    assert other._value.get() == before + 50
    job_labels = {
        sample.labels["job"]
        for sample in sd_requests_total.collect()[0].samples
    }
    assert not any(label.startswith("junk-") for label in job_labels)
    assert job_labels <= {"minio-server", "minio-buckets", "cluster", "buckets", "other", "none"}


def test_not_found_is_counted_once(client):
    counter = http_requests_total.labels(method="GET", endpoint="/sd", status="404")
    before = counter._value.get()

    client.get("/sd", params={"job": "nope"})

    assert counter._value.get() == before + 1
