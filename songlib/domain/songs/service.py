"""
Song service: validation, enrichment, persistence and verse pagination.

The service owns the business rules; the repository only talks to the
database and the metadata client only talks HTTP. Every public method
validates its arguments before touching either collaborator.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import ValidationError

from songlib.database.db_manager import Song, utcnow
from songlib.domain.catalog.metadata_client import MetadataClient
from songlib.domain.errors import (
    EmptyParameters,
    InvalidID,
    InvalidPagination,
    InvalidPayload,
    NotFound,
    UpstreamFailure,
)
from songlib.domain.songs.repository import SongRepository
from songlib.domain.songs.verses import page_slice, split_verses
from songlib.models.dto import SongPatch
from songlib.observability.metrics import (
    record_song_created,
    record_song_deleted,
    record_song_updated,
)
from songlib.settings import AppSettings

logger = logging.getLogger(__name__)

PAGINATION_KEYS = ("page", "pageSize")


def _validate_id(song_id: Any) -> int:
    if isinstance(song_id, bool) or not isinstance(song_id, int) or song_id <= 0:
        raise InvalidID()
    return song_id


def _validate_non_empty(*params: Optional[str]) -> None:
    for param in params:
        if param is None or not str(param).strip():
            raise EmptyParameters()


def _validate_pagination(page: Any, page_size: Any) -> None:
    for value in (page, page_size):
        if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
            raise InvalidPagination()


class SongService:
    def __init__(self, repository: SongRepository, metadata_client: MetadataClient,
                 settings: AppSettings):
        self.repository = repository
        self.metadata_client = metadata_client
        self.settings = settings

    def add_song(self, group: str, song: str) -> Song:
        """Enrich a group/song pair from the metadata API and persist it.

        Nothing is written when the lookup fails.
        """
        try:
            _validate_non_empty(group, song)
        except EmptyParameters:
            logger.warning("add_song: group or song is empty")
            raise
        group, song = group.strip(), song.strip()

        logger.info("add_song: creating song %s by %s", song, group)
        try:
            detail = self.metadata_client.fetch_info(group, song)
        except UpstreamFailure as exc:
            logger.error("add_song: failed to fetch song info: %s", exc)
            raise

        record = Song(
            group_name=group,
            song_name=song,
            release_date=detail.release_date,
            lyrics=detail.text,
            link=detail.link,
        )
        stored = self.repository.add(record)
        record_song_created()
        logger.info("add_song: song created with ID %s", stored.id, extra={"song_id": stored.id})
        return stored

    def get_song_by_id(self, song_id: int) -> Song:
        try:
            _validate_id(song_id)
        except InvalidID:
            logger.warning("get_song_by_id: invalid id %r", song_id)
            raise
        song = self.repository.get_by_id(song_id)
        if song is None:
            raise NotFound(f"song {song_id} not found")
        return song

    def get_all_songs(self) -> List[Song]:
        logger.info("get_all_songs: fetching all songs")
        return self.repository.get_all()

    def update_song(self, song_id: int, patch: Union[SongPatch, Mapping[str, Any]]) -> Song:
        """Overwrite every non-empty field of ``patch``; always bump ``updated_at``."""
        try:
            _validate_id(song_id)
        except InvalidID:
            logger.warning("update_song: invalid id %r", song_id)
            raise
        if not isinstance(patch, SongPatch):
            try:
                patch = SongPatch.model_validate(dict(patch or {}))
            except ValidationError as exc:
                raise InvalidPayload(str(exc)) from exc

        song = self.repository.get_by_id(song_id)
        if song is None:
            logger.warning("update_song: song %d not found", song_id, extra={"song_id": song_id})
            raise NotFound(f"song {song_id} not found")

        changes: Dict[str, Any] = patch.changes()
        for column, value in changes.items():
            setattr(song, column, value)

        # Strictly increasing even when two updates land within clock resolution
        now = utcnow()
        if song.updated_at is not None and now <= song.updated_at:
            now = song.updated_at + timedelta(microseconds=1)
        song.updated_at = now

        saved = self.repository.update(song)
        record_song_updated()
        logger.info("update_song: song %d updated (fields=%s)", song_id, sorted(changes),
                    extra={"song_id": song_id})
        return saved

    def delete_song(self, song_id: int) -> None:
        try:
            _validate_id(song_id)
        except InvalidID:
            logger.warning("delete_song: invalid id %r", song_id)
            raise
        if not self.repository.delete(song_id):
            logger.warning("delete_song: song %d not found", song_id, extra={"song_id": song_id})
            raise NotFound(f"song {song_id} not found")
        record_song_deleted()
        logger.info("delete_song: song %d deleted", song_id, extra={"song_id": song_id})

    def get_songs_with_filters_and_pagination(self, filters: Optional[Mapping[str, Any]],
                                              page: int, page_size: int) -> List[Song]:
        try:
            _validate_pagination(page, page_size)
        except InvalidPagination:
            logger.warning("get_songs_with_filters_and_pagination: page=%r page_size=%r", page, page_size)
            raise
        criteria = {k: v for k, v in (filters or {}).items() if k not in PAGINATION_KEYS}
        return self.repository.get_with_filters_and_pagination(criteria, page, page_size)

    def get_song_verses_with_pagination(self, song_id: int, page: int, page_size: int) -> List[str]:
        try:
            _validate_id(song_id)
            _validate_pagination(page, page_size)
        except (InvalidID, InvalidPagination) as exc:
            logger.warning("get_song_verses_with_pagination: %s", exc)
            raise

        lyrics = self.repository.get_verses_source(song_id)
        if lyrics is None:
            raise NotFound(f"song {song_id} not found")
        verses = page_slice(split_verses(lyrics), page, page_size)
        logger.info(
            "get_song_verses_with_pagination: returning %d verses for song %d (page=%d)",
            len(verses), song_id, page,
        )
        return verses


__all__ = ["SongService"]
