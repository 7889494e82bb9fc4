from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError

from songlib.database.db_manager import Song, db
from songlib.domain.errors import InvalidFilter, StoreFailure
from songlib.models.dto import parse_release_date


logger = logging.getLogger(__name__)

# Filterable fields: wire names and column names both resolve to a column
FILTERABLE_FIELDS: Dict[str, str] = {
    "id": "id",
    "group": "group_name",
    "group_name": "group_name",
    "song": "song_name",
    "song_name": "song_name",
    "releaseDate": "release_date",
    "release_date": "release_date",
    "text": "lyrics",
    "lyrics": "lyrics",
    "link": "link",
}


def _coerce_filter_value(column: str, value: Any) -> Any:
    if column == "id":
        try:
            return int(value)
        except (TypeError, ValueError) as exc:
            raise InvalidFilter(f"filter 'id' must be an integer, got {value!r}") from exc
    if column == "release_date":
        try:
            return parse_release_date(value)
        except ValueError as exc:
            raise InvalidFilter(str(exc)) from exc
    return value


def build_predicates(filters: Mapping[str, Any]) -> List[Tuple[str, Any]]:
    """Resolve a filter set to (column, value) pairs, rejecting unknown keys."""
    predicates: List[Tuple[str, Any]] = []
    for key, value in filters.items():
        column = FILTERABLE_FIELDS.get(key)
        if column is None:
            raise InvalidFilter(f"unsupported filter field: {key}")
        predicates.append((column, _coerce_filter_value(column, value)))
    return predicates


class SongRepository:
    """Interface for persisting songs."""

    def add(self, song: Song) -> Song:  # pragma: no cover - interface
        raise NotImplementedError

    def get_all(self) -> List[Song]:  # pragma: no cover - interface
        raise NotImplementedError

    def get_by_id(self, song_id: int) -> Optional[Song]:  # pragma: no cover - interface
        raise NotImplementedError

    def get_with_filters_and_pagination(
        self, filters: Mapping[str, Any], page: int, page_size: int
    ) -> List[Song]:  # pragma: no cover - interface
        raise NotImplementedError

    def update(self, song: Song) -> Song:  # pragma: no cover - interface
        raise NotImplementedError

    def delete(self, song_id: int) -> bool:  # pragma: no cover - interface
        raise NotImplementedError

    def get_verses_source(self, song_id: int) -> Optional[str]:  # pragma: no cover - interface
        raise NotImplementedError


class SqlAlchemySongRepository(SongRepository):
    """Flask-SQLAlchemy backed repository; each call is one committed round-trip."""

    @contextmanager
    def _store_operation(self, action: str) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error("%s: database operation failed: %s", action, e, exc_info=True,
                         extra={"store_action": action})
            raise StoreFailure(f"{action} failed") from e

    def add(self, song: Song) -> Song:
        with self._store_operation("add"):
            db.session.add(song)
            db.session.commit()
        logger.info("add: song stored with ID %s", song.id)
        return song

    def get_all(self) -> List[Song]:
        with self._store_operation("get_all"):
            songs = Song.query.order_by(Song.id).all()
        logger.info("get_all: fetched %d songs", len(songs))
        return songs

    def get_by_id(self, song_id: int) -> Optional[Song]:
        with self._store_operation("get_by_id"):
            song = db.session.get(Song, song_id)
        if song is None:
            logger.info("get_by_id: no song with ID %d", song_id)
        return song

    def get_with_filters_and_pagination(
        self, filters: Mapping[str, Any], page: int, page_size: int
    ) -> List[Song]:
        predicates = build_predicates(filters)
        with self._store_operation("get_with_filters_and_pagination"):
            query = Song.query
            for column, value in predicates:
                query = query.filter(getattr(Song, column) == value)
            songs = (
                query.order_by(Song.id)
                .offset((page - 1) * page_size)
                .limit(page_size)
                .all()
            )
        logger.info(
            "get_with_filters_and_pagination: fetched %d songs (filters=%s, page=%d, page_size=%d)",
            len(songs), dict(filters), page, page_size,
        )
        return songs

    def update(self, song: Song) -> Song:
        with self._store_operation("update"):
            db.session.add(song)
            db.session.commit()
        logger.info("update: song with ID %s saved", song.id)
        return song

    def delete(self, song_id: int) -> bool:
        with self._store_operation("delete"):
            deleted = Song.query.filter_by(id=song_id).delete()
            db.session.commit()
        logger.info("delete: removed %d row(s) for song ID %d", deleted, song_id)
        return deleted > 0

    def get_verses_source(self, song_id: int) -> Optional[str]:
        song = self.get_by_id(song_id)
        if song is None:
            return None
        return song.lyrics or ""


__all__ = [
    "FILTERABLE_FIELDS",
    "SongRepository",
    "SqlAlchemySongRepository",
    "build_predicates",
]
