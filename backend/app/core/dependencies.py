"""
FastAPI dependencies.

Settings and the bucket lister are created once per application and kept on
app.state; routes reach them through these functions.
"""
from fastapi import Request

from app.core.config import Settings
from app.services.storage.minio_client import BucketLister


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_bucket_lister(request: Request) -> BucketLister:
    return request.app.state.bucket_lister
