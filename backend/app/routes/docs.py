"""
Documentation page.

GET /
"""
from html import escape

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse

from app.core.config import Settings
from app.core.dependencies import get_settings

router = APIRouter()

_PAGE = """<!DOCTYPE html>
<html>
<head>
    <title>MinIO Prometheus Service Discovery</title>
    <style>
        body {{ font-family: Arial, sans-serif; margin: 40px; }}
        .endpoint {{ background: #f5f5f5; padding: 10px; margin: 10px 0; border-radius: 5px; }}
        .method {{ color: #0066cc; font-weight: bold; }}
        .url {{ font-family: monospace; }}
    </style>
</head>
<body>
    <h1>MinIO Prometheus Service Discovery</h1>
    <p>This service provides Prometheus HTTP service discovery for MinIO v3 metrics.</p>

    <h2>Available Endpoints:</h2>
    <div class="endpoint">
        <span class="method">GET</span> <span class="url">/sd?job={server_job}</span>
        <p>Service discovery targets for MinIO server metrics</p>
    </div>
    <div class="endpoint">
        <span class="method">GET</span> <span class="url">/sd?job={bucket_job}</span>
        <p>Service discovery targets for MinIO bucket metrics (filtered by bucket patterns)</p>
    </div>
    <div class="endpoint">
        <span class="method">GET</span> <span class="url">/scrape_configs</span>
        <p>All available scrape configurations</p>
    </div>
    <div class="endpoint">
        <span class="method">GET</span> <span class="url">/health</span>
        <p>Health check (JSON status, 503 when MinIO is unreachable)</p>
    </div>
    <div class="endpoint">
        <span class="method">GET</span> <span class="url">/metrics</span>
        <p>Metrics of this service in Prometheus format</p>
    </div>

    <h2>Configuration:</h2>
    <p>Command line flags take precedence over these environment variables:</p>
    <ul>
        <li><strong>MINIO_ENDPOINT</strong>: MinIO server endpoint (default: localhost:9000)</li>
        <li><strong>MINIO_ACCESS_KEY</strong>: MinIO access key (default: minioadmin)</li>
        <li><strong>MINIO_SECRET_KEY</strong>: MinIO secret key (default: minioadmin)</li>
        <li><strong>MINIO_USE_SSL</strong>: Use SSL for MinIO connection (default: false)</li>
        <li><strong>LISTEN_ADDR</strong>: Address to listen on (default: :8080)</li>
        <li><strong>SCRAPE_INTERVAL</strong>: Scrape interval (default: 15s)</li>
        <li><strong>SCRAPE_TIMEOUT</strong>: Scrape timeout (default: 10s)</li>
        <li><strong>METRICS_PATH</strong>: MinIO metrics base path (default: /minio/metrics/v3)</li>
        <li><strong>BUCKET_PATTERN</strong>: Wildcard pattern for bucket inclusion (default: *)</li>
        <li><strong>BUCKET_EXCLUDE_PATTERN</strong>: Wildcard pattern for bucket exclusion (default: empty)</li>
        <li><strong>SERVER_JOB_NAME</strong>, <strong>BUCKET_JOB_NAME</strong>: Job names (default: minio-server, minio-buckets)</li>
        <li><strong>LOG_LEVEL</strong>, <strong>LOG_JSON</strong>: Logging (default: INFO, true)</li>
    </ul>

    <h2>Current filter:</h2>
    <p>Include <code>{include}</code>, exclude <code>{exclude}</code></p>
</body>
</html>
"""


@router.get("/", response_class=HTMLResponse)
async def documentation(settings: Settings = Depends(get_settings)):
    """HTML overview of the endpoints and configuration."""
    return HTMLResponse(
        _PAGE.format(
            server_job=escape(settings.server_job_name),
            bucket_job=escape(settings.bucket_job_name),
            include=escape(settings.bucket_pattern),
            exclude=escape(settings.bucket_exclude_pattern) or "(none)",
        )
    )
