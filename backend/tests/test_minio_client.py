"""
Unit tests for the MinIO bucket lister.
"""
from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from app.core.config import Settings
from app.core.metrics import sd_bucket_listing_failures_total, sd_buckets_listed
from app.services.storage.minio_client import Bucket, BucketLister, ListingFailure

CREATED = datetime(2024, 5, 6, 7, 8, 9, tzinfo=timezone.utc)


@pytest.fixture
def settings():
    return Settings(minio_endpoint="minio:9000")


def test_list_buckets_converts_sdk_objects(settings):
    client = MagicMock()
    client.list_buckets.return_value = [
        SimpleNamespace(name="b-bucket", creation_date=CREATED),
        SimpleNamespace(name="a-bucket", creation_date=CREATED),
    ]
    lister = BucketLister(settings, client=client)

    buckets = lister.list_buckets()

    assert buckets == [
        Bucket(name="b-bucket", creation_date=CREATED),
        Bucket(name="a-bucket", creation_date=CREATED),
    ]
    assert sd_buckets_listed._value.get() == 2


def test_list_buckets_empty(settings):
    client = MagicMock()
    client.list_buckets.return_value = []

    assert BucketLister(settings, client=client).list_buckets() == []


def test_listing_error_raises_listing_failure(settings):
    """Upstream errors surface as ListingFailure, never as an empty list."""
    client = MagicMock()
    cause = ConnectionError("connection refused")
    client.list_buckets.side_effect = cause
    lister = BucketLister(settings, client=client)
    failures_before = sd_bucket_listing_failures_total._value.get()

    with pytest.raises(ListingFailure) as exc_info:
        lister.list_buckets()

    assert exc_info.value.__cause__ is cause
    assert exc_info.value.endpoint == "minio:9000"
    assert "connection refused" in str(exc_info.value)
    assert sd_bucket_listing_failures_total._value.get() == failures_before + 1


def test_ping_propagates_failure(settings):
    client = MagicMock()
    client.list_buckets.side_effect = RuntimeError("access denied")

    with pytest.raises(ListingFailure):
        BucketLister(settings, client=client).ping()


def test_default_client_is_built_from_settings():
    settings = Settings(
        minio_endpoint="minio.example.com:9000",
        minio_access_key="key",
        minio_secret_key="secret",
        minio_use_ssl=True,
    )
    lister = BucketLister(settings)

    assert lister.endpoint == "minio.example.com:9000"
    assert lister.client is not None
