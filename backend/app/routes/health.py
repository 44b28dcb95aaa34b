"""
Health check endpoint.

Healthy means MinIO answered a ListBuckets call.
"""
from datetime import datetime, timezone
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from app.core.dependencies import get_bucket_lister
from app.core.logging import get_logger
from app.models.responses import HealthStatus
from app.services.discovery.targets import format_rfc3339
from app.services.storage.minio_client import BucketLister, ListingFailure

logger = get_logger(__name__)
router = APIRouter()


@router.get("")
async def health_check(lister: BucketLister = Depends(get_bucket_lister)):
    """
    Health check endpoint.

    Returns 200 with status "healthy" when MinIO is reachable, 503 with
    status "unhealthy" and the error otherwise.
    """
    timestamp = format_rfc3339(datetime.now(timezone.utc))
    try:
        await run_in_threadpool(lister.ping)
    except ListingFailure as e:
        logger.warning("health_check_failed", error=str(e))
        status = HealthStatus(status="unhealthy", error=str(e), timestamp=timestamp)
        return JSONResponse(status_code=503, content=status.model_dump(exclude_none=True))

    logger.debug("health_check_passed")
    status = HealthStatus(status="healthy", timestamp=timestamp)
    return JSONResponse(status_code=200, content=status.model_dump(exclude_none=True))
