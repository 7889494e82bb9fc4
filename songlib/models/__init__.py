"""Request/response DTOs."""

from .dto import AddSongPayload, SongDetail, SongPatch, parse_release_date

__all__ = ["AddSongPayload", "SongDetail", "SongPatch", "parse_release_date"]
