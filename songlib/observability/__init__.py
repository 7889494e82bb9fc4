# noqa: D104 - package initialization
from .logging import configure_structured_logging  # noqa: F401
from .metrics import (  # noqa: F401
    metrics_blueprint,
    record_metadata_lookup,
    record_song_created,
    record_song_deleted,
    record_song_updated,
)
from .tracing import init_tracing, metadata_lookup_span  # noqa: F401
