"""
Scrape configuration listing.

GET /scrape_configs
"""
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from app.core.config import Settings
from app.core.dependencies import get_bucket_lister, get_settings
from app.core.logging import get_logger
from app.services.discovery.targets import build_scrape_configs
from app.services.storage.minio_client import BucketLister

logger = get_logger(__name__)

router = APIRouter()


@router.get("")
async def scrape_configs(
    settings: Settings = Depends(get_settings),
    lister: BucketLister = Depends(get_bucket_lister),
):
    """
    Return every scrape configuration this service can discover targets for.

    The bucket job is only listed when the cluster has at least one bucket.
    """
    buckets = await run_in_threadpool(lister.list_buckets)
    configs = build_scrape_configs(settings, buckets)
    logger.debug("scrape_configs_generated", config_count=len(configs))
    return JSONResponse(content=[config.to_wire() for config in configs])
