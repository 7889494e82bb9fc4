import logging
import os
from contextlib import contextmanager
from typing import Iterator, Optional

from flask import Flask, request

try:
    from opentelemetry import trace
    from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
    from opentelemetry.instrumentation.flask import FlaskInstrumentor
    from opentelemetry.sdk.resources import Resource
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import BatchSpanProcessor
except Exception:  # pragma: no cover - optional dependency
    trace = None  # type: ignore
    FlaskInstrumentor = None  # type: ignore

logger = logging.getLogger(__name__)


def _tag_request_span() -> None:
    song_id = (request.view_args or {}).get("song_id")
    if song_id is not None:
        trace.get_current_span().set_attribute("songlib.song_id", str(song_id))


def init_tracing(app: Flask) -> bool:
    """Instrument the app when opentelemetry is installed and an endpoint is set.

    Request spans are tagged with the targeted song id; metadata lookups get
    their own child span through :func:`metadata_lookup_span`.
    """
    if FlaskInstrumentor is None:  # pragma: no cover - optional dependency
        return False

    endpoint = app.config.get("OTEL_EXPORTER_OTLP_ENDPOINT") or os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT")
    if not endpoint:
        return False

    resource = Resource.create({"service.name": app.config.get("OTEL_SERVICE_NAME", "song-library")})
    provider = TracerProvider(resource=resource)
    exporter = OTLPSpanExporter(
        endpoint=endpoint,
        headers=app.config.get("OTEL_EXPORTER_OTLP_HEADERS") or os.getenv("OTEL_EXPORTER_OTLP_HEADERS"),
        insecure=app.config.get("OTEL_EXPORTER_OTLP_INSECURE", True),
    )
    provider.add_span_processor(BatchSpanProcessor(exporter))
    trace.set_tracer_provider(provider)

    FlaskInstrumentor().instrument_app(app)
    app.before_request(_tag_request_span)
    logger.info("Tracing enabled; exporting spans to %s", endpoint)
    return True


@contextmanager
def metadata_lookup_span(group: str, song: str) -> Iterator[Optional[object]]:
    """Child span around one ``GET /info`` call; yields ``None`` without opentelemetry.

    Without a configured provider the API hands out non-recording spans, so
    callers can set attributes unconditionally when a span is yielded.
    """
    if trace is None:
        yield None
        return
    tracer = trace.get_tracer("songlib.metadata")
    with tracer.start_as_current_span("metadata.fetch_info") as span:
        span.set_attribute("songlib.group", group)
        span.set_attribute("songlib.song", song)
        yield span


def mark_lookup_outcome(span: Optional[object], outcome: str) -> None:
    if span is not None:
        span.set_attribute("songlib.metadata_outcome", outcome)
