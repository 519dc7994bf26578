"""OpenTelemetry configuration for ServerMod."""

import os
import sys

from fastapi import FastAPI
from opentelemetry import metrics, trace
from opentelemetry.exporter.prometheus import PrometheusMetricReader
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from prometheus_client import start_http_server

from .logging_config import get_logger

logger = get_logger(__name__)

_DEFAULT_METRICS_PORT = 8080


def setup_telemetry(app: FastAPI) -> None:
    """Configure OpenTelemetry tracing and metrics for the FastAPI application.

    Off unless ENABLE_TELEMETRY is set, and always off under pytest.
    """
    if not os.getenv("ENABLE_TELEMETRY"):
        return

    if "pytest" in sys.modules or os.getenv("TESTING"):
        logger.info("Skipping OpenTelemetry setup during tests")
        return

    try:
        prometheus_reader = PrometheusMetricReader()
        metrics.set_meter_provider(MeterProvider(metric_readers=[prometheus_reader]))

        metrics_port = int(os.getenv("METRICS_PORT", _DEFAULT_METRICS_PORT))
        start_http_server(metrics_port)
        logger.info("Prometheus metrics server started", port=metrics_port)

        tracer_provider = TracerProvider()
        # Console exporter until an OTLP collector is wired up
        tracer_provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))
        trace.set_tracer_provider(tracer_provider)

        FastAPIInstrumentor.instrument_app(app)
        SQLAlchemyInstrumentor().instrument()

        logger.info("OpenTelemetry tracing and metrics setup completed")

    except Exception as e:
        # Telemetry is optional, the service runs without it
        logger.error("Failed to setup OpenTelemetry", error=str(e))
