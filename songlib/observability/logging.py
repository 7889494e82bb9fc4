"""
JSON logging for the song library.

Every record carries the request id plus the song being acted on (taken
from the route's ``song_id`` or passed via ``extra``), so one grep on a
song id shows its whole history across the HTTP, service, store and
metadata layers.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from flask import g, has_request_context, request

try:
    from opentelemetry.sdk._logs import LoggerProvider, LoggingHandler
    from opentelemetry.sdk._logs.export import BatchLogRecordProcessor
    from opentelemetry.exporter.otlp.proto.grpc._log_exporter import OTLPLogExporter
    from opentelemetry.sdk.resources import Resource
except Exception:  # pragma: no cover - Opentelemetry optional
    LoggerProvider = None  # type: ignore
    LoggingHandler = None  # type: ignore

# Domain fields callers may attach with ``logger.info(..., extra={...})``
SONG_LOG_FIELDS = (
    "song_id",
    "group",
    "song",
    "store_action",
    "metadata_outcome",
    "metadata_elapsed_ms",
)


def _route_song_id() -> Optional[int]:
    raw = (request.view_args or {}).get("song_id")
    try:
        return int(raw) if raw is not None else None
    except (TypeError, ValueError):
        return None


class RequestContextFilter(logging.Filter):
    """Attach the request id, route and targeted song to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        if has_request_context():
            record.request_id = getattr(g, "request_id", None)
            record.method = request.method
            record.endpoint = request.endpoint
            if getattr(record, "song_id", None) is None:
                record.song_id = _route_song_id()
        else:
            record.request_id = None
            record.method = None
            record.endpoint = None
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per line; domain fields are emitted only when set."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc)
            .isoformat()
            .replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", None),
            "method": getattr(record, "method", None),
            "endpoint": getattr(record, "endpoint", None),
        }
        for field in SONG_LOG_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                payload[field] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def _build_file_handler(log_dir: str) -> logging.Handler:
    """Per-run JSON log file: ``songlib-YYYYmmdd-HHMMSS.log`` inside ``log_dir``."""
    os.makedirs(log_dir, exist_ok=True)
    stamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    handler = logging.FileHandler(os.path.join(log_dir, f"songlib-{stamp}.log"), encoding="utf-8")
    handler.setLevel(logging.INFO)
    return handler


def _build_otlp_handler(app) -> Optional[logging.Handler]:
    if LoggerProvider is None or LoggingHandler is None:
        return None
    endpoint = app.config.get("OTEL_EXPORTER_OTLP_ENDPOINT") or os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT")
    if not endpoint:
        return None

    resource = Resource.create({"service.name": app.config.get("OTEL_SERVICE_NAME", "song-library")})
    provider = LoggerProvider(resource=resource)
    provider.add_log_record_processor(BatchLogRecordProcessor(OTLPLogExporter(endpoint=endpoint)))
    return LoggingHandler(level=logging.INFO, logger_provider=provider)


def _is_ours(handler: logging.Handler) -> bool:
    return isinstance(getattr(handler, "formatter", None), JsonFormatter)


def configure_structured_logging(app) -> None:
    """Route the root logger to JSON stdout, plus a run file and OTLP when enabled.

    Safe to call once per app; handlers installed by an earlier call are
    replaced rather than duplicated.
    """
    root = logging.getLogger()
    level_name = str(app.config.get("LOG_LEVEL", "INFO")).upper()
    root.setLevel(getattr(logging, level_name, logging.INFO))
    root.handlers = [h for h in root.handlers if not _is_ours(h)]

    handlers = [logging.StreamHandler(sys.stdout)]
    if app.config.get("ENABLE_FILE_LOGS"):
        handlers.append(_build_file_handler(app.config["LOG_DIR"]))
    otlp_handler = _build_otlp_handler(app)
    if otlp_handler:
        handlers.append(otlp_handler)

    context_filter = RequestContextFilter()
    formatter = JsonFormatter()
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(context_filter)
        root.addHandler(handler)

    # Werkzeug's access log goes through the same JSON handlers
    werkzeug_logger = logging.getLogger("werkzeug")
    werkzeug_logger.handlers = []
    werkzeug_logger.propagate = True
