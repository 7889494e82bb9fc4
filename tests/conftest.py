import os
import sys

import pytest

# Ensure project root is on sys.path so 'app', 'config', and 'songlib' import correctly
_TESTS_DIR = os.path.dirname(__file__)
_ROOT_DIR = os.path.abspath(os.path.join(_TESTS_DIR, os.pardir))
if _ROOT_DIR not in sys.path:
    sys.path.insert(0, _ROOT_DIR)

from tests.support import factories as test_factories
from tests.support.stubs import StubSession

METADATA_BASE_URL = "http://metadata.test"


@pytest.fixture
def app_settings():
    from songlib.settings import AppSettings

    return AppSettings(
        database_uri="sqlite://",
        external_api=METADATA_BASE_URL,
        metadata_timeout_seconds=5,
        default_page_size=10,
    )


@pytest.fixture
def metadata_session():
    """Stub transport for the metadata client; tests reprogram it per case."""
    return StubSession()


@pytest.fixture
def app(tmp_path, metadata_session):
    import app as app_module

    db_path = tmp_path / "songs.sqlite"
    application = app_module.create_app(
        {
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": f"sqlite:///{db_path.as_posix()}",
            "EXTERNAL_API": METADATA_BASE_URL,
            "METADATA_API_TIMEOUT_SECONDS": 5,
            "AUTO_CREATE_TABLES": True,
        }
    )
    application.extensions["metadata_client"].session = metadata_session
    yield application


@pytest.fixture
def app_context(app):
    with app.app_context():
        yield app


@pytest.fixture
def db_session(app_context):
    from songlib.database.db_manager import db

    test_factories.set_session(db.session)
    try:
        yield db.session
    finally:
        try:
            db.session.rollback()
        except Exception:
            pass
        db.session.remove()
        test_factories.reset_session()


@pytest.fixture
def factories(db_session):
    yield test_factories


@pytest.fixture
def song_service(app):
    return app.extensions["song_service"]


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def failing_commit(db_session, monkeypatch):
    """Make every commit on the app session fail like a dropped connection."""
    from sqlalchemy.exc import OperationalError

    def _commit():
        raise OperationalError("COMMIT", {}, Exception("server closed the connection unexpectedly"))

    monkeypatch.setattr(db_session, "commit", _commit)
    return db_session
