"""
Search observability.
Prometheus request metrics for the API, OpenTelemetry tracing over OTLP,
and the per-search span whose trace id is echoed back as `traceId`.
"""
import uuid
from contextlib import contextmanager
from typing import Iterator

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from prometheus_fastapi_instrumentator import Instrumentator

from media_discovery.config import get_settings
from media_discovery.models.schemas import SearchOutcome

TRACER_NAME = "media_discovery.search"

# Health checks and docs stay out of the request metrics
UNMETERED_HANDLERS = ["/metrics", "/health", "/health/ready", "/docs", "/redoc", "/openapi.json"]


def current_trace_id() -> str:
    """Active OpenTelemetry trace id as hex, or a random id when no span is recording."""
    span_context = trace.get_current_span().get_span_context()
    if span_context.is_valid:
        return format(span_context.trace_id, "032x")
    return uuid.uuid4().hex


@contextmanager
def search_span(query: str) -> Iterator[trace.Span]:
    """Span around one search. Only the query length is recorded, never its text."""
    tracer = trace.get_tracer(TRACER_NAME)
    with tracer.start_as_current_span("search") as span:
        span.set_attribute("search.query_length", len(query))
        yield span


def record_outcome(span: trace.Span, outcome: SearchOutcome) -> None:
    """Attach the terminal pipeline state and result shape to the search span."""
    intent = outcome.intent
    span.set_attribute("search.state", outcome.state.value)
    span.set_attribute("search.result_count", len(outcome.results))
    span.set_attribute("search.intent.titles", len(intent.titles))
    span.set_attribute("search.intent.people", len(intent.people))
    span.set_attribute("search.intent.suggestions", intent.is_requesting_suggestions)


def setup_telemetry(app: FastAPI) -> None:
    """
    Wire observability into the app.

    - Prometheus request metrics on /metrics (search traffic only)
    - OpenTelemetry traces exported over OTLP, tagged with the catalog
      backend and intent extractor in use
    """
    settings = get_settings()

    if settings.ENABLE_PROMETHEUS:
        instrumentator = Instrumentator(
            should_group_status_codes=False,
            should_ignore_untemplated=True,
            should_respect_env_var=True,
            should_instrument_requests_inprogress=True,
            excluded_handlers=UNMETERED_HANDLERS,
            env_var_name="ENABLE_METRICS",
            inprogress_name="search_requests_inprogress",
            inprogress_labels=True,
        )
        instrumentator.instrument(app).expose(app, include_in_schema=False)

    if settings.ENABLE_OTEL:
        resource = Resource.create(attributes={
            "service.name": settings.APP_NAME,
            "service.version": settings.APP_VERSION,
            "deployment.environment": "development" if settings.DEBUG else "production",
            "catalog.backend": settings.CATALOG_BACKEND,
            "intent.extractor": f"llm/{settings.LLM_PROVIDER}" if settings.LLM_API_KEY else "rule-based",
        })

        # OTLP over gRPC, localhost:4317 unless OTEL_EXPORTER_OTLP_ENDPOINT says otherwise
        provider = TracerProvider(resource=resource)
        provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter()))
        trace.set_tracer_provider(provider)

        FastAPIInstrumentor.instrument_app(app, tracer_provider=provider)
