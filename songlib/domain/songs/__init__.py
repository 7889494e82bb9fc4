"""Song catalog domain: repository, service and verse helpers."""

from .repository import SongRepository, SqlAlchemySongRepository
from .service import SongService
from .verses import page_slice, split_verses

__all__ = [
    "SongRepository",
    "SqlAlchemySongRepository",
    "SongService",
    "page_slice",
    "split_verses",
]
