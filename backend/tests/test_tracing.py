"""
Unit tests for OpenTelemetry tracing helpers.

Tests verify:
- Tracing can be configured without an exporter
- Spans expose a trace ID through the helpers
- Exceptions are recorded on the active span
"""
import pytest

from app.core.tracing import (
    configure_tracing,
    get_trace_id_from_context,
    get_tracer,
    record_exception,
    set_span_attribute,
    set_span_status,
    shutdown_tracing,
    StatusCode,
)


@pytest.fixture(autouse=True)
def no_otlp_export(monkeypatch):
    monkeypatch.delenv("OTEL_EXPORTER_OTLP_ENDPOINT", raising=False)
    monkeypatch.delenv("OTEL_TRACES_SAMPLER_ARG", raising=False)


def test_configure_tracing_without_exporter():
    configure_tracing(service_name="test-service")

    assert get_tracer() is not None


def test_trace_id_available_inside_span():
    tracer = get_tracer()

    with tracer.start_as_current_span("test-span"):
        trace_id = get_trace_id_from_context()
        set_span_attribute("minio.bucket_count", 3)
        set_span_status(StatusCode.OK)

    assert trace_id is not None
    assert len(trace_id) == 32
    int(trace_id, 16)


def test_no_trace_id_outside_span():
    assert get_trace_id_from_context() is None


def test_record_exception_inside_span():
    tracer = get_tracer()

    with tracer.start_as_current_span("failing-span"):
        record_exception(ConnectionError("connection refused"))


def test_helpers_are_safe_without_active_span():
    set_span_attribute("key", "value")
    record_exception(ValueError("no span"))


def test_shutdown_tracing_does_not_raise():
    configure_tracing(service_name="test-service")
    shutdown_tracing()
