"""
Prometheus HTTP service discovery endpoint.

GET /sd?job={job_name}

Returns a JSON array of {"targets": [...], "labels": {...}} groups, the
format expected by Prometheus http_sd_configs.
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from starlette.concurrency import run_in_threadpool

from app.core.config import Settings
from app.core.dependencies import get_bucket_lister, get_settings
from app.core.logging import get_logger
from app.core.metrics import normalize_job, record_sd_request
from app.models.responses import TargetGroup
from app.services.discovery.targets import server_target_for_settings, synthesize_for_settings
from app.services.storage.minio_client import BucketLister, ListingFailure

logger = get_logger(__name__)

router = APIRouter()


@router.get("", response_model=List[TargetGroup])
async def service_discovery(
    request: Request,
    job: Optional[str] = Query(None, description="Scrape job to return targets for"),
    settings: Settings = Depends(get_settings),
    lister: BucketLister = Depends(get_bucket_lister),
):
    """
    Return scrape targets for the requested job.

    - server job: a single target group for the MinIO server metrics
    - bucket job: one target group per bucket passing the include/exclude patterns
    """
    client_host = request.client.host if request.client else None
    job_label = normalize_job(job, (settings.server_job_name, settings.bucket_job_name))

    if not job:
        logger.warning("sd_request_missing_job", client_host=client_host)
        record_sd_request(job_label, "bad_request")
        raise HTTPException(status_code=400, detail="job parameter is required")

    logger.info("sd_request", job=job, client_host=client_host)

    if job == settings.server_job_name:
        targets = [server_target_for_settings(settings)]
        record_sd_request(job_label, "ok", target_count=len(targets))
        return targets

    if job != settings.bucket_job_name:
        record_sd_request(job_label, "not_found")
        raise HTTPException(status_code=404, detail="Job not found")

    try:
        buckets = await run_in_threadpool(lister.list_buckets)
    except ListingFailure:
        record_sd_request(job_label, "error")
        raise

    targets = synthesize_for_settings(settings, buckets)
    logger.info(
        "sd_buckets_filtered",
        job=job,
        bucket_count=len(buckets),
        remaining_count=len(targets),
        bucket_pattern=settings.bucket_pattern,
        bucket_exclude_pattern=settings.bucket_exclude_pattern,
    )
    record_sd_request(job_label, "ok", target_count=len(targets))
    return targets
