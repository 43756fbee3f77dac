import logging
from typing import Sequence

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import ReadableSpan, TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    SpanExporter,
    SpanExportResult,
)
from prometheus_client import Info
from prometheus_fastapi_instrumentator import Instrumentator

from doc_proxy.cors import add_cors_headers
from doc_proxy.utils.exception_logging import log_exception_with_details
from doc_proxy.vars import (
    METRICS_ENABLED,
    OTLP_ENDPOINT,
    OTLP_HEADERS,
    SERVICE_NAME,
    parse_otlp_headers,
)
from .routes import router

logger = logging.getLogger("uvicorn.error")

app = FastAPI(title=SERVICE_NAME)

if METRICS_ENABLED:
    instrumentator = Instrumentator()
    instrumentator.instrument(app).expose(app)


class FilteringSpanExporter(SpanExporter):
    """
    Wrapper exporter that drops the per-message ASGI send spans so a proxied
    request shows up as its handler span plus the upstream calls.
    """

    def __init__(self, exporter: SpanExporter):
        self.exporter = exporter

    def export(self, spans: Sequence[ReadableSpan]) -> SpanExportResult:
        filtered_spans = [
            span
            for span in spans
            if not (
                span.attributes
                and span.attributes.get("asgi.event.type")
                in ("http.response.body", "http.response.start")
            )
        ]
        if filtered_spans:
            return self.exporter.export(filtered_spans)
        return SpanExportResult.SUCCESS

    def shutdown(self):
        return self.exporter.shutdown()

    def force_flush(self, timeout_millis: int = 30000):
        return self.exporter.force_flush(timeout_millis)


trace.set_tracer_provider(
    TracerProvider(resource=Resource.create({"service.name": SERVICE_NAME}))
)
tracer_provider = trace.get_tracer_provider()
if OTLP_ENDPOINT:
    otlp_exporter = OTLPSpanExporter(
        endpoint=OTLP_ENDPOINT,
        headers=parse_otlp_headers(OTLP_HEADERS) or None,
    )
    tracer_provider.add_span_processor(
        BatchSpanProcessor(FilteringSpanExporter(otlp_exporter))
    )

FastAPIInstrumentor.instrument_app(app, excluded_urls="metrics")


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    """Last resort: an escaped exception still gets a CORS-annotated 500."""
    log_exception_with_details(
        logger, f"[Server] Unhandled error for {request.url.path}:", exc
    )
    return add_cors_headers(
        PlainTextResponse("Internal Server Error", status_code=500)
    )


app_info = Info("doc_proxy_app_info", "Application Info")
app_info.info({"app_name": SERVICE_NAME})

app.include_router(router)
