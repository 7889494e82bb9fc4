#!/usr/bin/env python
"""
Pydantic DTOs for the metadata API payload and the song request bodies.

Wire names (``group``, ``song``, ``releaseDate``, ``text``, ``link``) are
mapped onto snake_case attributes through aliases.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

RELEASE_DATE_FORMATS = ("%d.%m.%Y", "%Y-%m-%d")


def parse_release_date(value: Any) -> Optional[date]:
    """Accept ``DD.MM.YYYY`` (provider format) or ISO dates; blank means unknown."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    for fmt in RELEASE_DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    raise ValueError(f"unrecognised release date: {text!r}")


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class SongDetail(BaseModel):
    """Enrichment fields returned by ``GET {base}/info``."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    release_date: Optional[date] = Field(default=None, alias="releaseDate")
    text: Optional[str] = None
    link: Optional[str] = None

    @field_validator("release_date", mode="before")
    @classmethod
    def _parse_date(cls, value: Any) -> Optional[date]:
        return parse_release_date(value)

    @field_validator("link", mode="before")
    @classmethod
    def _normalize_link(cls, value: Any) -> Any:
        return _blank_to_none(value)


class AddSongPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    group: str = ""
    song: str = ""

    @field_validator("group", "song", mode="before")
    @classmethod
    def _strip(cls, value: Any) -> str:
        if value is None:
            return ""
        return str(value).strip()


class SongPatch(BaseModel):
    """Partial update; ``None`` means "leave the stored value alone"."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    group_name: Optional[str] = Field(default=None, alias="group")
    song_name: Optional[str] = Field(default=None, alias="song")
    release_date: Optional[date] = Field(default=None, alias="releaseDate")
    lyrics: Optional[str] = Field(default=None, alias="text")
    link: Optional[str] = None

    @field_validator("group_name", "song_name", "link", mode="before")
    @classmethod
    def _normalize_strings(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @field_validator("lyrics", mode="before")
    @classmethod
    def _normalize_lyrics(cls, value: Any) -> Any:
        # Lyrics keep their inner whitespace; only an empty body is ignored
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("release_date", mode="before")
    @classmethod
    def _parse_date(cls, value: Any) -> Optional[date]:
        return parse_release_date(value)

    def changes(self) -> Dict[str, Any]:
        """Column name -> new value for every non-empty field."""
        return {key: value for key, value in self.model_dump().items() if value is not None}


__all__ = ["SongDetail", "AddSongPayload", "SongPatch", "parse_release_date"]
