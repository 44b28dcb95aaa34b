"""Application factory for the MinIO service discovery API."""
import os
from typing import Optional
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.config import Settings, describe_settings, load_settings
from .core.logging import configure_logging, get_logger, get_trace_id
from .core.middleware import TraceIDMiddleware
from .core.tracing import (
    configure_tracing,
    instrument_fastapi,
    shutdown_tracing,
    get_trace_id_from_context,
    record_exception,
    set_span_status,
    StatusCode,
)
from .routes import docs, health, metrics, scrape_configs, sd
from .services.storage.minio_client import BucketLister, ListingFailure

logger = get_logger(__name__)


def _error_response(status_code: int, detail: str) -> JSONResponse:
    trace_id = get_trace_id() or get_trace_id_from_context()
    response = JSONResponse(
        status_code=status_code,
        content={
            "detail": detail,
            "status_code": status_code,
            "trace_id": trace_id,
        },
    )
    if trace_id:
        response.headers["X-Trace-ID"] = trace_id
    return response


def create_app(
    settings: Optional[Settings] = None,
    bucket_lister: Optional[BucketLister] = None,
) -> FastAPI:
    """
    Build the service discovery application.

    Args:
        settings: Effective configuration (resolved from the environment when omitted)
        bucket_lister: MinIO bucket lister (built from settings when omitted)
    """
    settings = settings or load_settings()

    service_name = os.getenv("OTEL_SERVICE_NAME")
    configure_logging(
        log_level=settings.log_level,
        service_name=service_name,
        json_output=settings.log_json,
    )
    configure_tracing(service_name=service_name)

    app = FastAPI(
        title="MinIO Prometheus Service Discovery",
        description="Prometheus HTTP service discovery for MinIO v3 bucket and server metrics",
        version="1.0.0",
    )
    app.state.settings = settings
    app.state.bucket_lister = bucket_lister or BucketLister(settings)

    app.add_middleware(TraceIDMiddleware)
    instrument_fastapi(app)

    @app.on_event("startup")
    async def startup_event():
        """Log the effective configuration once, secrets masked."""
        logger.info("app_startup_started")
        logger.info("configuration_loaded", **dict(describe_settings(settings)))
        logger.info("app_startup_completed")

    @app.on_event("shutdown")
    async def shutdown_event():
        logger.info("app_shutdown_started")
        shutdown_tracing()
        logger.info("app_shutdown_completed")

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Handle HTTP exceptions."""
        set_span_status(StatusCode.ERROR if exc.status_code >= 500 else StatusCode.OK, str(exc.detail))
        logger.warning(
            "http_exception",
            status_code=exc.status_code,
            detail=exc.detail,
            path=request.url.path,
            method=request.method,
        )
        return _error_response(exc.status_code, str(exc.detail))

    @app.exception_handler(ListingFailure)
    async def listing_failure_handler(request: Request, exc: ListingFailure):
        """MinIO could not list buckets; never answered with an empty target list."""
        record_exception(exc)
        logger.error(
            "bucket_listing_unavailable",
            error=str(exc),
            cause_type=type(exc.__cause__).__name__ if exc.__cause__ else None,
            path=request.url.path,
            method=request.method,
        )
        return _error_response(500, "Internal server error")

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle general exceptions."""
        record_exception(exc)
        logger.error(
            "unhandled_exception",
            error=str(exc),
            error_type=type(exc).__name__,
            path=request.url.path,
            method=request.method,
            exc_info=True,
        )
        return _error_response(500, "Internal server error")

    app.include_router(sd.router, prefix="/sd", tags=["Service Discovery"])
    app.include_router(scrape_configs.router, prefix="/scrape_configs", tags=["Service Discovery"])
    app.include_router(health.router, prefix="/health", tags=["Health"])
    app.include_router(metrics.router, prefix="/metrics", tags=["Metrics"])
    app.include_router(docs.router, tags=["Documentation"])

    return app
