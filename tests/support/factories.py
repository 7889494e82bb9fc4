"""Factory Boy factories for database models used in tests."""

import factory
from factory.alchemy import SQLAlchemyModelFactory

from songlib.database.db_manager import Song


class _BaseFactory(SQLAlchemyModelFactory):
    class Meta:
        abstract = True
        sqlalchemy_session = None
        sqlalchemy_session_persistence = "commit"


class SongFactory(_BaseFactory):
    class Meta:
        model = Song

    group_name = factory.Sequence(lambda n: f"Group {n}")
    song_name = factory.Sequence(lambda n: f"Song {n}")
    release_date = None
    lyrics = factory.LazyAttribute(lambda obj: f"{obj.song_name} verse 1\n{obj.song_name} verse 2")
    link = factory.LazyAttribute(lambda obj: f"https://example.com/{obj.song_name.replace(' ', '-').lower()}")


_FACTORIES = [SongFactory]


def set_session(session):
    for factory_cls in _FACTORIES:
        factory_cls._meta.sqlalchemy_session = session


def reset_session():
    for factory_cls in _FACTORIES:
        factory_cls._meta.sqlalchemy_session = None


__all__ = [
    "SongFactory",
    "set_session",
    "reset_session",
]
