"""
MinIO bucket listing.

Wraps the MinIO SDK so the rest of the service sees plain Bucket records,
and a single ListingFailure error kind for anything that goes wrong upstream.
"""
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any, List, Optional

from minio import Minio

from app.core.config import Settings
from app.core.logging import get_logger
from app.core.metrics import record_bucket_listing
from app.core.tracing import get_tracer, record_exception, set_span_attribute

logger = get_logger(__name__)


@dataclass(frozen=True)
class Bucket:
    """A MinIO bucket as returned by ListBuckets (creation_date is None when MinIO omits it)."""
    name: str
    creation_date: Optional[datetime]


class ListingFailure(Exception):
    """Raised when the bucket list could not be retrieved from MinIO."""

    def __init__(self, endpoint: str, message: str):
        super().__init__(f"failed to list buckets on {endpoint}: {message}")
        self.endpoint = endpoint


class BucketLister:
    """
    Lists buckets of a MinIO deployment.

    The underlying SDK call is blocking; async callers should run it in a
    threadpool.
    """

    def __init__(self, settings: Settings, client: Optional[Any] = None):
        self.endpoint = settings.minio_endpoint
        self.client = client if client is not None else Minio(
            settings.minio_endpoint,
            access_key=settings.minio_access_key,
            secret_key=settings.minio_secret_key,
            secure=settings.minio_use_ssl,
        )

    def list_buckets(self) -> List[Bucket]:
        """
        Retrieve all buckets, in the order MinIO returns them.

        Raises:
            ListingFailure: if MinIO cannot be reached or rejects the request
        """
        tracer = get_tracer()
        with tracer.start_as_current_span("minio.list_buckets"):
            set_span_attribute("minio.endpoint", self.endpoint)
            start_time = time.time()
            try:
                raw_buckets = self.client.list_buckets()
            except Exception as e:
                duration = time.time() - start_time
                record_bucket_listing(duration_seconds=duration, success=False)
                record_exception(e)
                logger.error(
                    "bucket_listing_failed",
                    endpoint=self.endpoint,
                    error=str(e),
                    error_type=type(e).__name__,
                    latency_ms=int(duration * 1000),
                )
                raise ListingFailure(self.endpoint, str(e)) from e

            buckets = [
                Bucket(name=bucket.name, creation_date=bucket.creation_date)
                for bucket in raw_buckets
            ]
            duration = time.time() - start_time
            record_bucket_listing(duration_seconds=duration, success=True, bucket_count=len(buckets))
            set_span_attribute("minio.bucket_count", len(buckets))
            logger.debug(
                "bucket_listing_completed",
                endpoint=self.endpoint,
                bucket_count=len(buckets),
                latency_ms=int(duration * 1000),
            )
            return buckets

    def ping(self) -> None:
        """
        Check connectivity by listing buckets.

        Raises:
            ListingFailure: if MinIO is not reachable
        """
        self.list_buckets()
