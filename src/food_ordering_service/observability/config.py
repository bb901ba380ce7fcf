"""OpenTelemetry and structured logging setup for the ordering service."""

import logging
import os
from importlib.metadata import PackageNotFoundError, version
from typing import Any

from opentelemetry import metrics, trace
from opentelemetry.exporter.otlp.proto.http.metric_exporter import OTLPMetricExporter
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.botocore import BotocoreInstrumentor
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from pythonjsonlogger.json import JsonFormatter

logger = logging.getLogger(__name__)

DISTRIBUTION_NAME = "food-ordering-service"
SERVICE_NAMESPACE = "marketplace"
DEFAULT_SERVICE_NAME = "food-ordering-svc"
DEFAULT_OTLP_ENDPOINT = "http://localhost:4318"
METRIC_EXPORT_INTERVAL_MS = 60000

# Health checks would otherwise dominate the trace volume
EXCLUDED_URLS = "health"


def service_version() -> str:
    """Return the installed package version, or "unknown" when running from a checkout."""
    try:
        return version(DISTRIBUTION_NAME)
    except PackageNotFoundError:
        return "unknown"


def get_service_resource() -> Resource:
    """Build the resource describing this service instance.

    Returns:
        Resource with service identity, deployment environment and AWS region
    """
    attributes = {
        "service.name": os.getenv("OTEL_SERVICE_NAME", DEFAULT_SERVICE_NAME),
        "service.namespace": SERVICE_NAMESPACE,
        "service.version": service_version(),
        "deployment.environment": os.getenv("ENVIRONMENT", "development"),
    }
    region = os.getenv("AWS_REGION")
    if region:
        attributes["cloud.provider"] = "aws"
        attributes["cloud.region"] = region

    return Resource.create(attributes)


def _otlp_url(signal: str) -> str:
    endpoint = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT", DEFAULT_OTLP_ENDPOINT).rstrip("/")
    return f"{endpoint}/v1/{signal}"


def _install_providers(resource: Resource, enable_exporters: bool) -> None:
    tracer_provider = TracerProvider(resource=resource)
    metric_readers = []

    if enable_exporters:
        span_exporter = OTLPSpanExporter(endpoint=_otlp_url("traces"))
        tracer_provider.add_span_processor(BatchSpanProcessor(span_exporter))
        metric_readers.append(
            PeriodicExportingMetricReader(
                OTLPMetricExporter(endpoint=_otlp_url("metrics")),
                export_interval_millis=METRIC_EXPORT_INTERVAL_MS,
            )
        )
        logger.info(f"Exporting traces to {_otlp_url('traces')} and metrics to {_otlp_url('metrics')}")

    trace.set_tracer_provider(tracer_provider)
    metrics.set_meter_provider(MeterProvider(resource=resource, metric_readers=metric_readers))


def setup_observability(app: Any = None, enable_exporters: bool = True) -> None:
    """Install tracing and metrics providers and instrument DynamoDB and HTTP.

    Exporters are never enabled when ENVIRONMENT is "test".

    Args:
        app: Optional FastAPI application to instrument
        enable_exporters: Whether to ship telemetry over OTLP
    """
    if os.getenv("ENVIRONMENT", "development") == "test":
        enable_exporters = False

    _install_providers(get_service_resource(), enable_exporters)

    # Store calls go through botocore
    instrumentor = BotocoreInstrumentor()
    if not instrumentor.is_instrumented_by_opentelemetry:
        instrumentor.instrument()

    if app is not None:
        FastAPIInstrumentor.instrument_app(app, excluded_urls=EXCLUDED_URLS)
        logger.info("FastAPI application instrumented")


def configure_logging(log_level: str = "INFO") -> None:
    """Route all logging through a single JSON handler on the root logger.

    Every record carries the service name and environment so that logs from
    the API container and the Lambda function can be told apart.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
            LOG_LEVEL in the environment takes precedence.
    """
    level_name = os.getenv("LOG_LEVEL", log_level).upper()
    level = getattr(logging, level_name, logging.INFO)

    formatter = JsonFormatter(
        "%(asctime)s %(name)s %(levelname)s %(message)s",
        timestamp=True,
        static_fields={
            "service": os.getenv("OTEL_SERVICE_NAME", DEFAULT_SERVICE_NAME),
            "environment": os.getenv("ENVIRONMENT", "development"),
        },
    )

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    # botocore logs request payloads at DEBUG
    logging.getLogger("botocore").setLevel(max(level, logging.INFO))

    logger.info(f"Structured JSON logging configured at {level_name} level")
