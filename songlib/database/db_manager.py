# database/db_manager.py
import logging
import os
from datetime import datetime, timezone

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy.engine import make_url

# Initialize the SQLAlchemy object
db = SQLAlchemy()
logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    """Naive UTC timestamp; columns store UTC without tzinfo."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_utc_iso(value: datetime) -> str:
    """Render a stored naive-UTC timestamp as RFC 3339 with a Z suffix."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.isoformat(timespec="microseconds") + "Z"


class Song(db.Model):
    __tablename__ = 'songs'

    id = db.Column(db.Integer, primary_key=True)
    group_name = db.Column(db.String(255), nullable=False, index=True)
    song_name = db.Column(db.String(255), nullable=False, index=True)
    release_date = db.Column(db.Date, nullable=True)
    lyrics = db.Column(db.Text, nullable=True)
    link = db.Column(db.String(500), nullable=True)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    def __repr__(self):
        return f'<Song {self.id}: {self.song_name} by {self.group_name}>'

    def to_dict(self) -> dict:
        """Converts the Song to the JSON shape used by the API."""
        return {
            'id': self.id,
            'group': self.group_name,
            'song': self.song_name,
            'releaseDate': self.release_date.isoformat() if self.release_date else None,
            'text': self.lyrics,
            'link': self.link,
            'createdAt': to_utc_iso(self.created_at) if self.created_at else None,
            'updatedAt': to_utc_iso(self.updated_at) if self.updated_at else None,
        }


def initialize_database(app, create_tables: bool = True):
    """
    Initializes the SQLAlchemy extension with the Flask app instance and,
    unless disabled, creates the tables that don't exist yet. Production
    schemas are managed by external migrations.
    """
    db.init_app(app)

    # Ensure the directory for a file-based SQLite database exists
    try:
        uri = app.config.get('SQLALCHEMY_DATABASE_URI')
        if uri:
            url = make_url(uri)
            if url.get_backend_name() == 'sqlite' and url.database and url.database != ':memory:':
                db_dir = os.path.dirname(url.database)
                if db_dir and not os.path.exists(db_dir):
                    os.makedirs(db_dir, exist_ok=True)
                    logger.info("Created SQLite DB directory: %s", db_dir)
    except Exception as e:
        # Don't block app startup on path parsing issues; log and continue
        logger.warning("Could not ensure SQLite directory exists: %s", e)

    if not create_tables:
        logger.info("Skipping table creation; schema is managed externally.")
        return

    with app.app_context():
        db.create_all()
        logger.info("Database tables created or already exist.")


__all__ = ['db', 'Song', 'initialize_database', 'utcnow', 'to_utc_iso']
