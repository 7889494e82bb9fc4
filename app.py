import logging
from typing import Any, Mapping, Optional
from uuid import uuid4

# --- Flask specific imports ---
from flask import Flask, request, g
from flask_cors import CORS

# config.py loads the .env file on import
from config import Config
from songlib.database.db_manager import initialize_database
from songlib.domain.catalog import MetadataClient
from songlib.domain.songs import SongService, SqlAlchemySongRepository
from songlib.interfaces.http.routes import health_bp, songs_bp
from songlib.observability import configure_structured_logging, init_tracing, metrics_blueprint
from songlib.settings import load_app_settings


logger = logging.getLogger(__name__)


def create_app(test_config: Optional[Mapping[str, Any]] = None):
    app = Flask(__name__)
    app.config.from_object(Config)
    if test_config:
        app.config.update(test_config)

    configure_structured_logging(app)
    init_tracing(app)

    @app.before_request
    def _assign_request_id():
        g.request_id = request.headers.get('X-Request-ID') or uuid4().hex

    @app.after_request
    def _inject_request_id(response):
        if getattr(g, 'request_id', None):
            response.headers.setdefault('X-Request-ID', g.request_id)
        return response

    allowed_origins = sorted({
        origin.strip()
        for origin in app.config.get('CORS_ALLOWED_ORIGINS') or []
        if origin and origin.strip() and origin.strip() != "*"
    })
    if allowed_origins:
        CORS(app, resources={r"/*": {"origins": allowed_origins}})

    # Settings are resolved once and injected; nothing re-reads the env per request
    settings = load_app_settings(app.config)
    app.extensions['app_settings'] = settings

    initialize_database(app, create_tables=settings.auto_create_tables)

    # Build domain services to keep wiring at the app boundary
    metadata_client = MetadataClient(settings)
    song_service = SongService(
        repository=SqlAlchemySongRepository(),
        metadata_client=metadata_client,
        settings=settings,
    )
    app.extensions['metadata_client'] = metadata_client
    app.extensions['song_service'] = song_service

    # --- Register Blueprints ---
    app.register_blueprint(songs_bp)
    app.register_blueprint(health_bp)
    app.register_blueprint(metrics_blueprint)

    logger.info(
        "Song library ready: metadata_api=%s timeout=%.1fs",
        settings.external_api or "<unset>",
        settings.metadata_timeout_seconds,
    )
    return app


if __name__ == '__main__':
    if not Config.EXTERNAL_API:
        logger.warning("EXTERNAL_API not set; adding songs will fail until it is configured.")

    app = create_app()
    # Route app.logger through root handlers, keep levels consistent
    app.logger.handlers = []
    app.logger.setLevel(logging.INFO)
    app.logger.propagate = True
    logger.info("Starting Flask application on port %s...", Config.APP_PORT)
    app.run(debug=Config.DEBUG, host='0.0.0.0', port=Config.APP_PORT, threaded=True)
