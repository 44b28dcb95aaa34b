"""
Command line entry point.

Usage: minio-prometheus-sd [--minio-endpoint=minio:9000] [--bucket-pattern='prod-*'] ...
Run with --help for all flags.
"""
import sys
from typing import Optional, Sequence

import uvicorn

from app.application import create_app
from app.core.config import ConfigError, load_settings
from app.core.logging import get_logger

logger = get_logger(__name__)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Resolve configuration, build the app and serve it until interrupted."""
    try:
        settings = load_settings(sys.argv[1:] if argv is None else argv)
    except ConfigError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2

    app = create_app(settings)
    logger.info(
        "http_server_starting",
        listen_addr=settings.listen_addr,
        routes=["/sd", "/scrape_configs", "/health", "/metrics", "/"],
    )
    uvicorn.run(
        app,
        host=settings.listen_host,
        port=settings.listen_port,
        log_level=settings.log_level.lower(),
        access_log=False,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
