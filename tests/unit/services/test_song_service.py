from datetime import date

import pytest
from sqlalchemy.exc import OperationalError

from songlib.domain.errors import (
    EmptyParameters,
    InvalidFilter,
    InvalidID,
    InvalidPagination,
    NotFound,
    StoreFailure,
    UpstreamFailure,
    UpstreamInternalError,
)
from songlib.domain.songs import SongRepository, SongService
from songlib.domain.catalog import MetadataClient
from tests.support.stubs import StubSession, TIMEOUT


class UntouchableRepository(SongRepository):
    """Fails the test if the service reaches the store."""

    def __getattribute__(self, name):
        if name in {"add", "get_all", "get_by_id", "get_with_filters_and_pagination",
                    "update", "delete", "get_verses_source"}:
            raise AssertionError(f"store was touched via {name}")
        return super().__getattribute__(name)


@pytest.fixture
def isolated_service(app_settings):
    session = StubSession()
    client = MetadataClient(app_settings, session=session)
    return SongService(UntouchableRepository(), client, app_settings), session


@pytest.mark.unit
@pytest.mark.parametrize("bad_id", [0, -1, -1000])
def test_id_operations_reject_non_positive_ids_without_store(isolated_service, bad_id):
    service, _ = isolated_service
    with pytest.raises(InvalidID):
        service.get_song_by_id(bad_id)
    with pytest.raises(InvalidID):
        service.update_song(bad_id, {"group": "X"})
    with pytest.raises(InvalidID):
        service.delete_song(bad_id)
    with pytest.raises(InvalidID):
        service.get_song_verses_with_pagination(bad_id, 1, 1)


@pytest.mark.unit
@pytest.mark.parametrize("page,page_size", [(0, 5), (1, 0), (-1, 5), (1, -3)])
def test_pagination_rejects_non_positive_values(isolated_service, page, page_size):
    service, _ = isolated_service
    with pytest.raises(InvalidPagination):
        service.get_songs_with_filters_and_pagination({}, page, page_size)
    with pytest.raises(InvalidPagination):
        service.get_song_verses_with_pagination(1, page, page_size)


@pytest.mark.unit
@pytest.mark.parametrize("group,song", [("", "S"), ("G", ""), ("   ", "S"), (None, "S")])
def test_add_song_rejects_empty_parameters(isolated_service, group, song):
    service, session = isolated_service
    with pytest.raises(EmptyParameters):
        service.add_song(group, song)
    assert session.calls == []


@pytest.mark.unit
def test_add_song_upstream_failure_performs_no_insert(song_service, metadata_session, db_session):
    from songlib.database.db_manager import Song

    metadata_session.respond_with(status_code=500)
    with pytest.raises(UpstreamInternalError):
        song_service.add_song("G", "S")

    metadata_session.fail_with(TIMEOUT)
    with pytest.raises(UpstreamFailure):
        song_service.add_song("G", "S")

    assert Song.query.count() == 0


@pytest.mark.unit
def test_add_then_get_round_trip(song_service, metadata_session, db_session):
    created = song_service.add_song("Muse", "Supermassive Black Hole")

    assert created.id is not None and created.id > 0
    assert metadata_session.calls[0]["params"] == {"group": "Muse", "song": "Supermassive Black Hole"}

    db_session.expire_all()
    fetched = song_service.get_song_by_id(created.id)
    assert fetched.group_name == "Muse"
    assert fetched.song_name == "Supermassive Black Hole"
    assert fetched.release_date == date(2006, 7, 16)
    assert fetched.lyrics == created.lyrics
    assert fetched.link == "https://www.youtube.com/watch?v=Xsp3_a-PMTw"
    assert fetched.updated_at >= fetched.created_at


@pytest.mark.unit
def test_get_song_by_id_missing_raises_not_found(song_service, db_session):
    with pytest.raises(NotFound):
        song_service.get_song_by_id(12345)


@pytest.mark.unit
def test_update_with_empty_patch_only_bumps_timestamp(song_service, factories):
    song = factories.SongFactory(release_date=date(2001, 1, 1))
    before = song.to_dict()
    previous_updated_at = song.updated_at

    updated = song_service.update_song(song.id, {"group": "", "song": "  ", "text": "", "link": None})

    after = updated.to_dict()
    for key in ("id", "group", "song", "releaseDate", "text", "link", "createdAt"):
        assert after[key] == before[key]
    assert updated.updated_at > previous_updated_at


@pytest.mark.unit
def test_repeated_updates_strictly_increase_timestamp(song_service, factories):
    song = factories.SongFactory()
    stamps = []
    for _ in range(5):
        stamps.append(song_service.update_song(song.id, {}).updated_at)
    assert stamps == sorted(stamps)
    assert len(set(stamps)) == len(stamps)


@pytest.mark.unit
def test_update_overwrites_only_non_empty_fields(song_service, factories):
    song = factories.SongFactory(group_name="Old", song_name="Title", link="https://old")

    updated = song_service.update_song(
        song.id, {"group": "New", "releaseDate": "2020-05-01", "text": "a\nb"}
    )

    assert updated.group_name == "New"
    assert updated.song_name == "Title"
    assert updated.release_date == date(2020, 5, 1)
    assert updated.lyrics == "a\nb"
    assert updated.link == "https://old"


@pytest.mark.unit
def test_update_missing_song_raises_not_found(song_service, db_session):
    with pytest.raises(NotFound):
        song_service.update_song(999, {"group": "X"})


@pytest.mark.unit
def test_delete_song_then_delete_again(song_service, factories):
    from songlib.database.db_manager import Song

    song = factories.SongFactory()
    song_id = song.id

    song_service.delete_song(song_id)
    assert Song.query.filter_by(id=song_id).count() == 0

    with pytest.raises(NotFound):
        song_service.delete_song(song_id)


@pytest.mark.unit
def test_get_all_songs_returns_everything(song_service, factories):
    factories.SongFactory.create_batch(3)
    assert len(song_service.get_all_songs()) == 3


@pytest.mark.unit
def test_filters_and_pagination_returns_second_page(song_service, factories):
    matching = [factories.SongFactory(group_name="X") for _ in range(12)]
    factories.SongFactory.create_batch(4, group_name="Y")

    page = song_service.get_songs_with_filters_and_pagination(
        {"group": "X", "page": "2", "pageSize": "5"}, 2, 5
    )

    assert [s.id for s in page] == [s.id for s in matching[5:10]]
    assert all(s.group_name == "X" for s in page)


@pytest.mark.unit
def test_filters_accept_column_names_and_combine(song_service, factories):
    factories.SongFactory(group_name="X", song_name="One")
    target = factories.SongFactory(group_name="X", song_name="Two")
    factories.SongFactory(group_name="Z", song_name="Two")

    rows = song_service.get_songs_with_filters_and_pagination(
        {"group_name": "X", "song": "Two"}, 1, 10
    )
    assert [s.id for s in rows] == [target.id]


@pytest.mark.unit
def test_page_beyond_results_is_empty(song_service, factories):
    factories.SongFactory.create_batch(2)
    assert song_service.get_songs_with_filters_and_pagination({}, 3, 5) == []


@pytest.mark.unit
@pytest.mark.parametrize("filters", [{"password": "x"}, {"group_name; DROP TABLE songs": "x"}, {"id": "abc"}])
def test_unknown_or_malformed_filters_are_rejected(song_service, db_session, filters):
    with pytest.raises(InvalidFilter):
        song_service.get_songs_with_filters_and_pagination(filters, 1, 10)


@pytest.mark.unit
@pytest.mark.parametrize(
    "page,expected",
    [(1, ["a", "b"]), (2, ["c"]), (3, [])],
)
def test_verse_pagination(song_service, factories, page, expected):
    song = factories.SongFactory(lyrics="a\nb\nc")
    assert song_service.get_song_verses_with_pagination(song.id, page, 2) == expected


@pytest.mark.unit
def test_verses_of_song_without_lyrics_are_empty(song_service, factories):
    song = factories.SongFactory(lyrics=None)
    assert song_service.get_song_verses_with_pagination(song.id, 1, 5) == []


@pytest.mark.unit
def test_verses_of_missing_song_raise_not_found(song_service, db_session):
    with pytest.raises(NotFound):
        song_service.get_song_verses_with_pagination(4242, 1, 5)


@pytest.mark.unit
def test_write_operations_raise_store_failure_and_roll_back(song_service, factories, monkeypatch):
    from songlib.database.db_manager import Song, db

    song = factories.SongFactory(group_name="Before")
    song_id = song.id
    real_commit = db.session.commit

    def _commit():
        raise OperationalError("COMMIT", {}, Exception("server closed the connection unexpectedly"))

    monkeypatch.setattr(db.session, "commit", _commit)

    with pytest.raises(StoreFailure) as excinfo:
        song_service.add_song("Muse", "Uprising")
    assert excinfo.value.status_code == 500
    assert excinfo.value.to_dict()["error"] == "store_failure"

    with pytest.raises(StoreFailure):
        song_service.update_song(song_id, {"group": "After"})

    with pytest.raises(StoreFailure):
        song_service.delete_song(song_id)

    monkeypatch.setattr(db.session, "commit", real_commit)

    # Session was rolled back after each failure and still serves queries
    assert db.session.query(Song).count() == 1
    assert db.session.get(Song, song_id).group_name == "Before"
