"""
ASGI entry point: uvicorn app.main:app

Configuration comes from environment variables (and .env); use the
minio-prometheus-sd command for command line flags.
"""
from .application import create_app

app = create_app()
