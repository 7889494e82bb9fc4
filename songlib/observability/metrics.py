from __future__ import annotations

from typing import Optional

from flask import Blueprint, Response
from prometheus_client import Counter, Histogram, generate_latest

metrics_blueprint = Blueprint("metrics_bp", __name__)

CONTENT_TYPE_LATEST = "text/plain; version=0.0.4; charset=utf-8"

SONGS_CREATED = Counter(
    "songlib_songs_created_total",
    "Total number of songs persisted after enrichment.",
)
SONGS_UPDATED = Counter(
    "songlib_songs_updated_total",
    "Total number of songs updated.",
)
SONGS_DELETED = Counter(
    "songlib_songs_deleted_total",
    "Total number of songs deleted.",
)
METADATA_LOOKUPS = Counter(
    "songlib_metadata_lookups_total",
    "Metadata API lookups by outcome.",
    ["outcome"],
)
METADATA_LOOKUP_LATENCY = Histogram(
    "songlib_metadata_lookup_seconds",
    "Wall time spent waiting on the metadata API.",
    buckets=(0.05, 0.1, 0.25, 0.5, 1, 2, 5, 10, float("inf")),
)


def record_song_created() -> None:
    SONGS_CREATED.inc()


def record_song_updated() -> None:
    SONGS_UPDATED.inc()


def record_song_deleted() -> None:
    SONGS_DELETED.inc()


def record_metadata_lookup(outcome: str, duration_seconds: Optional[float] = None) -> None:
    METADATA_LOOKUPS.labels(outcome=outcome).inc()
    if duration_seconds is not None:
        METADATA_LOOKUP_LATENCY.observe(duration_seconds)


@metrics_blueprint.route("/metrics")
def metrics_endpoint() -> Response:
    return Response(generate_latest(), mimetype=CONTENT_TYPE_LATEST)
