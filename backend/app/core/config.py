"""
Service configuration.

Settings are resolved once at startup with the priority
command line flag > environment variable (.env included) > default,
and handed around as a single immutable Settings value.
"""
import argparse
import os
import re
from datetime import timedelta
from typing import Mapping, Optional, Sequence, Tuple

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator


DEFAULT_SCRAPE_INTERVAL = timedelta(seconds=15)
DEFAULT_SCRAPE_TIMEOUT = timedelta(seconds=10)

_TRUE_VALUES = {"1", "t", "true", "yes", "y", "on"}
_FALSE_VALUES = {"0", "f", "false", "no", "n", "off"}

_DURATION_UNITS = {
    "ms": 0.001,
    "s": 1,
    "m": 60,
    "h": 3600,
}
_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|h|m|s)")


class ConfigError(Exception):
    """Raised when a configuration value cannot be used."""

    def __init__(self, key: str, message: str):
        super().__init__(f"{key}: {message}")
        self.key = key


class Settings(BaseModel):
    """Effective configuration of the discovery service."""

    model_config = ConfigDict(frozen=True)

    minio_endpoint: str = "localhost:9000"
    minio_access_key: str = "minioadmin"
    minio_secret_key: str = Field("minioadmin", repr=False)
    minio_use_ssl: bool = False
    listen_addr: str = ":8080"
    scrape_interval: timedelta = DEFAULT_SCRAPE_INTERVAL
    scrape_timeout: timedelta = DEFAULT_SCRAPE_TIMEOUT
    metrics_path: str = "/minio/metrics/v3"
    bucket_pattern: str = "*"
    bucket_exclude_pattern: str = ""
    server_job_name: str = "minio-server"
    bucket_job_name: str = "minio-buckets"
    log_level: str = "INFO"
    log_json: bool = True

    @field_validator("listen_addr")
    @classmethod
    def validate_listen_addr(cls, value: str) -> str:
        host, sep, port = value.rpartition(":")
        if not sep or not port.isdigit() or not 0 < int(port) < 65536:
            raise ValueError("listen address must look like 'host:port' or ':port'")
        return value

    @field_validator("metrics_path")
    @classmethod
    def validate_metrics_path(cls, value: str) -> str:
        value = value.rstrip("/")
        if not value.startswith("/"):
            value = "/" + value
        return value

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level {value!r}")
        return level

    @property
    def scheme(self) -> str:
        """Scheme Prometheus should use to reach MinIO."""
        return "https" if self.minio_use_ssl else "http"

    @property
    def listen_host(self) -> str:
        host = self.listen_addr.rpartition(":")[0].strip("[]")
        return host or "0.0.0.0"

    @property
    def listen_port(self) -> int:
        return int(self.listen_addr.rpartition(":")[2])


def parse_bool(value: str) -> bool:
    """Parse a boolean flag value; raises ValueError when unrecognised."""
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise ValueError(f"invalid boolean {value!r}")


def parse_duration(value: str) -> timedelta:
    """
    Parse a Go/Prometheus style duration such as "15s", "500ms" or "1m30s".

    Raises:
        ValueError: if the string is not a valid duration
    """
    text = value.strip()
    if not text:
        raise ValueError("empty duration")

    seconds = 0.0
    position = 0
    for match in _DURATION_PART.finditer(text):
        if match.start() != position:
            raise ValueError(f"invalid duration {value!r}")
        seconds += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        position = match.end()
    if position != len(text):
        raise ValueError(f"invalid duration {value!r}")
    return timedelta(seconds=seconds)


def format_duration(value: timedelta) -> str:
    """Render a timedelta in Prometheus duration notation ("1m30s", "15s")."""
    total_ms = int(round(value.total_seconds() * 1000))
    if total_ms == 0:
        return "0s"

    hours, rest = divmod(total_ms, 3_600_000)
    minutes, rest = divmod(rest, 60_000)
    seconds, millis = divmod(rest, 1000)

    parts = []
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")
    if seconds:
        parts.append(f"{seconds}s")
    if millis:
        parts.append(f"{millis}ms")
    return "".join(parts)


def mask_sensitive(value: str) -> str:
    """Mask a secret for logging, keeping only its first and last two characters."""
    if not value:
        return "(empty)"
    if len(value) <= 4:
        return "***"
    return value[:2] + "***" + value[-2:]


def get_env(environ: Mapping[str, str], key: str, default: str) -> str:
    value = environ.get(key, "")
    return value if value else default


def get_env_bool(environ: Mapping[str, str], key: str, default: bool) -> bool:
    value = environ.get(key, "")
    if not value:
        return default
    try:
        return parse_bool(value)
    except ValueError:
        return default


def get_env_duration(environ: Mapping[str, str], key: str, default: timedelta) -> timedelta:
    value = environ.get(key, "")
    if not value:
        return default
    try:
        return parse_duration(value)
    except ValueError:
        return default


def build_parser() -> argparse.ArgumentParser:
    """Command line interface; every flag defaults to None so the environment can fill it in."""
    parser = argparse.ArgumentParser(
        prog="minio-prometheus-sd",
        description="MinIO Prometheus Service Discovery",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Environment variables (used if flags are not provided):\n"
            "  MINIO_ENDPOINT, MINIO_ACCESS_KEY, MINIO_SECRET_KEY, MINIO_USE_SSL\n"
            "  LISTEN_ADDR, SCRAPE_INTERVAL, SCRAPE_TIMEOUT, METRICS_PATH\n"
            "  BUCKET_PATTERN, BUCKET_EXCLUDE_PATTERN, SERVER_JOB_NAME, BUCKET_JOB_NAME\n"
            "  LOG_LEVEL, LOG_JSON\n"
            "\n"
            "Examples:\n"
            "  minio-prometheus-sd --minio-endpoint=minio:9000 --minio-access-key=mykey\n"
            "  minio-prometheus-sd --listen-addr=:9090 --bucket-pattern='prod-*'\n"
        ),
    )
    parser.add_argument("--minio-endpoint", help="MinIO server endpoint (e.g. localhost:9000)")
    parser.add_argument("--minio-access-key", help="MinIO access key")
    parser.add_argument("--minio-secret-key", help="MinIO secret key")
    parser.add_argument(
        "--minio-use-ssl",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Use SSL for the MinIO connection",
    )
    parser.add_argument("--listen-addr", help="Address to listen on (e.g. :8080)")
    parser.add_argument("--scrape-interval", help="Scrape interval (e.g. 15s)")
    parser.add_argument("--scrape-timeout", help="Scrape timeout (e.g. 10s)")
    parser.add_argument("--metrics-path", help="Metrics path (e.g. /minio/metrics/v3)")
    parser.add_argument("--bucket-pattern", help="Wildcard pattern for bucket inclusion")
    parser.add_argument("--bucket-exclude-pattern", help="Wildcard pattern for bucket exclusion")
    parser.add_argument("--server-job-name", help="Job name for MinIO server metrics")
    parser.add_argument("--bucket-job-name", help="Job name for per-bucket metrics")
    parser.add_argument("--log-level", help="Log level (DEBUG, INFO, WARNING, ERROR)")
    parser.add_argument(
        "--log-json",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Emit JSON logs instead of console output",
    )
    return parser


def _flag_duration(flag_value: Optional[str], key: str, fallback: timedelta) -> timedelta:
    if not flag_value:
        return fallback
    try:
        return parse_duration(flag_value)
    except ValueError as exc:
        raise ConfigError(key, str(exc)) from exc


def load_settings(
    argv: Optional[Sequence[str]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Settings:
    """
    Resolve settings from command line flags and environment variables.

    Args:
        argv: Command line arguments (without program name). None means no flags.
        environ: Environment mapping. None loads .env and uses os.environ.

    Raises:
        ConfigError: if a value is invalid
    """
    if environ is None:
        dotenv_path = find_dotenv(usecwd=True)
        if dotenv_path:
            load_dotenv(dotenv_path, override=False)
        environ = os.environ

    args = build_parser().parse_args(list(argv) if argv is not None else [])

    def value(flag_value: Optional[str], key: str, default: str) -> str:
        if flag_value:
            return flag_value
        return get_env(environ, key, default)

    def flag(flag_value: Optional[bool], key: str, default: bool) -> bool:
        if flag_value is not None:
            return flag_value
        return get_env_bool(environ, key, default)

    try:
        return Settings(
            minio_endpoint=value(args.minio_endpoint, "MINIO_ENDPOINT", "localhost:9000"),
            minio_access_key=value(args.minio_access_key, "MINIO_ACCESS_KEY", "minioadmin"),
            minio_secret_key=value(args.minio_secret_key, "MINIO_SECRET_KEY", "minioadmin"),
            minio_use_ssl=flag(args.minio_use_ssl, "MINIO_USE_SSL", False),
            listen_addr=value(args.listen_addr, "LISTEN_ADDR", ":8080"),
            scrape_interval=_flag_duration(
                args.scrape_interval,
                "scrape_interval",
                get_env_duration(environ, "SCRAPE_INTERVAL", DEFAULT_SCRAPE_INTERVAL),
            ),
            scrape_timeout=_flag_duration(
                args.scrape_timeout,
                "scrape_timeout",
                get_env_duration(environ, "SCRAPE_TIMEOUT", DEFAULT_SCRAPE_TIMEOUT),
            ),
            metrics_path=value(args.metrics_path, "METRICS_PATH", "/minio/metrics/v3"),
            bucket_pattern=value(args.bucket_pattern, "BUCKET_PATTERN", "*"),
            bucket_exclude_pattern=value(args.bucket_exclude_pattern, "BUCKET_EXCLUDE_PATTERN", ""),
            server_job_name=value(args.server_job_name, "SERVER_JOB_NAME", "minio-server"),
            bucket_job_name=value(args.bucket_job_name, "BUCKET_JOB_NAME", "minio-buckets"),
            log_level=value(args.log_level, "LOG_LEVEL", "INFO"),
            log_json=flag(args.log_json, "LOG_JSON", True),
        )
    except ValidationError as exc:
        error = exc.errors()[0]
        key = str(error["loc"][0]) if error.get("loc") else "settings"
        raise ConfigError(key, error["msg"]) from exc


def describe_settings(settings: Settings) -> Tuple[Tuple[str, str], ...]:
    """Key/value pairs of the effective configuration, secrets masked."""
    return (
        ("minio_endpoint", settings.minio_endpoint),
        ("minio_access_key", mask_sensitive(settings.minio_access_key)),
        ("minio_secret_key", mask_sensitive(settings.minio_secret_key)),
        ("minio_use_ssl", str(settings.minio_use_ssl).lower()),
        ("listen_addr", settings.listen_addr),
        ("scrape_interval", format_duration(settings.scrape_interval)),
        ("scrape_timeout", format_duration(settings.scrape_timeout)),
        ("metrics_path", settings.metrics_path),
        ("bucket_pattern", settings.bucket_pattern),
        ("bucket_exclude_pattern", settings.bucket_exclude_pattern),
        ("server_job_name", settings.server_job_name),
        ("bucket_job_name", settings.bucket_job_name),
    )
