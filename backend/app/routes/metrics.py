"""
Self-monitoring endpoint.

GET /metrics
Exposes the discovery service's own metrics (request rates, bucket listing
latency, target counts) in Prometheus text format. These are not the MinIO
metrics; those are scraped from MinIO directly using the discovered targets.
"""
from fastapi import APIRouter, Response
from fastapi.responses import PlainTextResponse

from app.core.metrics import get_metrics, get_metrics_content_type
from app.core.logging import get_logger

logger = get_logger(__name__)
router = APIRouter()


@router.get("", response_class=PlainTextResponse)
async def metrics():
    """Prometheus exposition of the service's own metrics."""
    try:
        payload = get_metrics()
    except Exception as e:
        logger.error(
            "metrics_endpoint_error",
            error=str(e),
            error_type=type(e).__name__,
            exc_info=True,
        )
        payload = b"# Error collecting metrics\n"
    return Response(content=payload, media_type=get_metrics_content_type())
