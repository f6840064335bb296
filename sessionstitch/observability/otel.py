"""OpenTelemetry wiring for sessionstitch runs."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any

from sessionstitch import config

logger = logging.getLogger("sessionstitch.observability")


_initialized = False
_enabled = False
_tracer: Any | None = None
_trace_provider: Any | None = None
_meter_provider: Any | None = None

_merge_counter: Any | None = None
_merge_latency_hist: Any | None = None
_records_counter: Any | None = None
_parser_failure_counter: Any | None = None


def _normalize_otlp_endpoint(base_endpoint: str, signal_path: str) -> str:
    endpoint = (base_endpoint or "").strip()
    if not endpoint:
        return ""
    if endpoint.endswith(signal_path):
        return endpoint
    if endpoint.endswith("/"):
        endpoint = endpoint[:-1]
    if endpoint.endswith("/v1"):
        return f"{endpoint}{signal_path[3:]}"
    return f"{endpoint}{signal_path}"


def initialize() -> None:
    global _initialized, _enabled, _tracer, _trace_provider, _meter_provider
    global _merge_counter, _merge_latency_hist, _records_counter, _parser_failure_counter

    if _initialized:
        return
    _initialized = True

    if not config.OTEL_ENABLED:
        logger.debug("OpenTelemetry disabled (SESSIONSTITCH_OTEL_ENABLED=false)")
        return

    from opentelemetry import metrics, trace
    from opentelemetry.exporter.otlp.proto.http.metric_exporter import OTLPMetricExporter
    from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
    from opentelemetry.sdk.metrics import MeterProvider
    from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
    from opentelemetry.sdk.resources import Resource
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import BatchSpanProcessor

    traces_endpoint = _normalize_otlp_endpoint(config.OTEL_ENDPOINT, "/v1/traces")
    metrics_endpoint = _normalize_otlp_endpoint(config.OTEL_ENDPOINT, "/v1/metrics")
    service_name = config.OTEL_SERVICE_NAME or "sessionstitch"

    resource = Resource.create(
        {
            "service.name": service_name,
            "service.namespace": "sessionstitch",
        }
    )

    trace_provider = TracerProvider(resource=resource)
    trace_provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=traces_endpoint or None)))
    trace.set_tracer_provider(trace_provider)

    metric_reader = PeriodicExportingMetricReader(
        OTLPMetricExporter(endpoint=metrics_endpoint or None)
    )
    meter_provider = MeterProvider(resource=resource, metric_readers=[metric_reader])
    metrics.set_meter_provider(meter_provider)
    meter = metrics.get_meter("sessionstitch")

    _merge_counter = meter.create_counter(
        "sessionstitch_merges_total",
        unit="1",
        description="Count of merge runs by outcome",
    )
    _merge_latency_hist = meter.create_histogram(
        "sessionstitch_merge_latency_ms",
        unit="ms",
        description="Wall time of a single merge pipeline run",
    )
    _records_counter = meter.create_counter(
        "sessionstitch_records_written_total",
        unit="1",
        description="Records written to merged session files",
    )
    _parser_failure_counter = meter.create_counter(
        "sessionstitch_parser_failures_total",
        unit="1",
        description="Malformed lines skipped while reading fragments",
    )

    _trace_provider = trace_provider
    _meter_provider = meter_provider
    _tracer = trace.get_tracer("sessionstitch")
    _enabled = True

    logger.info(
        "OpenTelemetry initialized (service=%s endpoint=%s)",
        service_name,
        config.OTEL_ENDPOINT,
    )


def shutdown() -> None:
    global _enabled
    if not _initialized or not _enabled:
        return
    try:
        if _meter_provider is not None:
            _meter_provider.shutdown()
        if _trace_provider is not None:
            _trace_provider.shutdown()
    except Exception as exc:  # noqa: BLE001
        logger.warning("OpenTelemetry shutdown failed: %s", exc)
    _enabled = False


@contextmanager
def start_span(name: str, attributes: dict[str, Any] | None = None):
    if not _enabled or _tracer is None:
        yield None
        return
    with _tracer.start_as_current_span(name) as span:
        if attributes:
            for key, value in attributes.items():
                if value is not None:
                    span.set_attribute(key, value)
        yield span


def record_merge(result: str, duration_ms: float, *, records: int = 0) -> None:
    labels = {"result": result or "unknown"}
    if _enabled and _merge_counter is not None:
        _merge_counter.add(1, labels)
    if _enabled and _merge_latency_hist is not None:
        _merge_latency_hist.record(max(0.0, float(duration_ms)), labels)
    if _enabled and _records_counter is not None and records > 0:
        _records_counter.add(int(records), labels)


def record_parser_failure(parser: str) -> None:
    if _enabled and _parser_failure_counter is not None:
        _parser_failure_counter.add(1, {"parser": parser or "unknown"})
