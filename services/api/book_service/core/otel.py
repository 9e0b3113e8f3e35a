from __future__ import annotations

import logging

from book_service.core.config import Settings, settings
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

logger = logging.getLogger(__name__)


def init_otel(app, cfg: Settings | None = None) -> bool:
    """Export traces for the app and its outbound source lookups when enabled."""
    cfg = cfg or settings
    if not cfg.otel_enabled:
        return False

    provider = TracerProvider(resource=Resource.create({"service.name": cfg.api_name}))

    # OTEL_EXPORTER_OTLP_* env vars still apply when no endpoint is configured.
    endpoint = cfg.otel_otlp_endpoint
    exporter = OTLPSpanExporter(endpoint=endpoint) if endpoint else OTLPSpanExporter()

    provider.add_span_processor(BatchSpanProcessor(exporter))
    trace.set_tracer_provider(provider)

    FastAPIInstrumentor.instrument_app(app)
    # adapters share one httpx.AsyncClient; every Open Library / Thriftbooks call gets a span
    HTTPXClientInstrumentor().instrument()
    logger.info("OpenTelemetry tracing enabled (exporter endpoint %s)", endpoint or "<env>")
    return True
