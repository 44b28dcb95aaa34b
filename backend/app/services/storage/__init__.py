"""Object storage access."""

from .minio_client import Bucket, BucketLister, ListingFailure

__all__ = ["Bucket", "BucketLister", "ListingFailure"]
