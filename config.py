#!/usr/bin/env python
# config.py
import os
from typing import List
from urllib.parse import quote_plus

from dotenv import load_dotenv

# Load environment variables from .env file before reading them below
load_dotenv()

# This assumes config.py is at the root of your project
basedir = os.path.abspath(os.path.dirname(__file__))


def _get_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _get_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "t", "yes", "y", "on"}


def _get_csv_list(name: str, default: str) -> List[str]:
    raw = os.getenv(name)
    source = raw if raw is not None else default
    return [token.strip() for token in source.split(",") if token and token.strip()]


def build_database_uri() -> str:
    """Compose the PostgreSQL URL from the DB_* variables.

    ``DATABASE_URL`` wins when set so tests and local runs can point at SQLite.
    """
    explicit = os.getenv('DATABASE_URL')
    if explicit:
        return explicit
    user = quote_plus(os.getenv('DB_USER', 'postgres'))
    password = quote_plus(os.getenv('DB_PASSWORD', ''))
    host = os.getenv('DB_HOST', 'localhost')
    port = os.getenv('DB_PORT', '5432')
    name = os.getenv('DB_NAME', 'songs')
    sslmode = os.getenv('SSLMODE', 'disable')
    credentials = f"{user}:{password}" if password else user
    return f"postgresql+psycopg2://{credentials}@{host}:{port}/{name}?sslmode={sslmode}"


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'change-me'

    # Database
    SQLALCHEMY_DATABASE_URI = build_database_uri()
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {'pool_pre_ping': True}
    # Schema is owned by external migrations; create_all is a dev convenience
    AUTO_CREATE_TABLES = _get_bool('AUTO_CREATE_TABLES', True)

    # HTTP listener
    APP_PORT = _get_int('APP_PORT', 8080)

    # External metadata API
    EXTERNAL_API = (os.getenv('EXTERNAL_API') or '').rstrip('/')
    METADATA_API_TIMEOUT_SECONDS = _get_float('METADATA_API_TIMEOUT_SECONDS', 10.0)

    # Listing
    DEFAULT_PAGE_SIZE = max(1, _get_int('DEFAULT_PAGE_SIZE', 10))

    # Runtime behavior
    DEBUG = _get_bool('DEBUG', False)
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
    # File logging is opt-in; structured logs always go to stdout
    ENABLE_FILE_LOGS = _get_bool('ENABLE_FILE_LOGS', False)
    LOG_DIR = os.getenv('LOG_DIR') or os.path.join(basedir, 'log')

    CORS_ALLOWED_ORIGINS = _get_csv_list('CORS_ALLOWED_ORIGINS', '')

    # Tracing (optional)
    OTEL_EXPORTER_OTLP_ENDPOINT = os.getenv('OTEL_EXPORTER_OTLP_ENDPOINT')
    OTEL_EXPORTER_OTLP_HEADERS = os.getenv('OTEL_EXPORTER_OTLP_HEADERS')
    OTEL_EXPORTER_OTLP_INSECURE = _get_bool('OTEL_EXPORTER_OTLP_INSECURE', True)
    OTEL_SERVICE_NAME = os.getenv('OTEL_SERVICE_NAME', 'song-library')
