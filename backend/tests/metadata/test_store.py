from datetime import date, timedelta

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from cineverse.exceptions.movie_exceptions import MovieStoreError
from cineverse.metadata.providers import DurableStoreProvider
from cineverse.metadata.store import SqlMovieStore
from cineverse.models import MovieUpdate
from cineverse.utils import now_utc_naive


@pytest.fixture
def store(session_factory):
    return SqlMovieStore(session_factory)


def test_save_inserts_then_updates_in_place(store, movie_metadata_factory):
    expires = now_utc_naive() + timedelta(hours=48)
    metadata = movie_metadata_factory(external_id="tt0133093", title="The Matrix")

    created = store.save(metadata, expires_at=expires)
    refreshed = store.save(
        metadata.model_copy(update={"title": "The Matrix (Remastered)"}),
        expires_at=expires + timedelta(hours=1),
    )

    assert refreshed.id == created.id
    assert refreshed.created_at == created.created_at
    assert refreshed.title == "The Matrix (Remastered)"
    assert refreshed.cache_expires_at == expires + timedelta(hours=1)
    assert store.count_search("Matrix", include_stale=True) == 1


def test_create_duplicate_external_id_raises_integrity_error(
    store, movie_create_factory
):
    store.create(movie_create_factory(external_id="tt0133093"))

    with pytest.raises(IntegrityError):
        store.create(movie_create_factory(external_id="tt0133093"))


def test_save_retries_lost_insert_race_as_update(
    mocker, store, movie_metadata_factory, movie_create_factory
):
    # Another writer inserts between our existence check and our insert.
    store.create(movie_create_factory(external_id="tt0133093", title="Old"))
    real_update = store.update
    calls = []

    def update_missing_first(external_id, movie_update):
        calls.append(external_id)
        if len(calls) == 1:
            return None
        return real_update(external_id, movie_update)

    mocker.patch.object(store, "update", side_effect=update_missing_first)

    movie = store.save(
        movie_metadata_factory(external_id="tt0133093", title="New"),
        expires_at=now_utc_naive() + timedelta(days=1),
    )

    assert movie.title == "New"
    assert len(calls) == 2


def test_update_missing_returns_none(store):
    assert store.update("tt0000000", MovieUpdate(title="x")) is None


def test_search_excludes_stale_unless_requested(store, movie_factory):
    now = now_utc_naive()
    movie_factory(title="The Matrix", cache_expires_at=now + timedelta(days=1))
    movie_factory(title="The Matrix Reloaded", cache_expires_at=now - timedelta(days=1))

    fresh = store.search("matrix", limit=10, now=now)
    everything = store.search("matrix", limit=10, include_stale=True, now=now)

    assert [m.title for m in fresh] == ["The Matrix"]
    assert {m.title for m in everything} == {"The Matrix", "The Matrix Reloaded"}


def test_delete_expired(store, movie_factory):
    now = now_utc_naive()
    keep = movie_factory(cache_expires_at=now - timedelta(days=1))
    movie_factory(cache_expires_at=now - timedelta(days=40))

    deleted = store.delete_expired(now - timedelta(days=30))

    assert deleted == 1
    assert store.get_by_id(keep.id) is not None


def test_database_errors_are_wrapped(mocker, store):
    mocker.patch(
        "cineverse.crud.get_movie_by_external_id",
        side_effect=OperationalError("SELECT", {}, Exception("db down")),
    )

    with pytest.raises(MovieStoreError):
        store.get_by_external_id("tt0133093")


def test_terminal_title_match_prefers_year(store, movie_factory):
    movie_factory(title="Dune", release_date=date(1984, 12, 14))
    newer = movie_factory(title="Dune", release_date=date(2021, 10, 22))
    provider = DurableStoreProvider(store)

    assert provider.fetch_by_title("Dune", 2021).id == newer.id


def test_terminal_title_match_is_fuzzy(store, movie_factory):
    matrix = movie_factory(title="The Matrix")
    provider = DurableStoreProvider(store, title_match_threshold=80)

    assert provider.fetch_by_title("matrix the").id == matrix.id
    assert provider.match_title("Heat") is None


def test_terminal_title_returns_substring_hit_below_threshold(store, movie_factory):
    matrix = movie_factory(title="The Matrix")
    provider = DurableStoreProvider(store, title_match_threshold=80)

    assert provider.match_title("Matr") is None
    assert provider.fetch_by_title("Matr").id == matrix.id


def test_terminal_title_fallback_prefers_year(store, movie_factory):
    movie_factory(title="Alien", release_date=date(1979, 5, 25))
    resurrection = movie_factory(
        title="Alien Resurrection", release_date=date(1997, 11, 26)
    )
    provider = DurableStoreProvider(store, title_match_threshold=99)

    assert provider.fetch_by_title("Alie", 1997).id == resurrection.id


def test_terminal_search_pages_include_stale(store, movie_factory):
    now = now_utc_naive()
    for n in range(3):
        movie_factory(title=f"Alien {n}", cache_expires_at=now - timedelta(days=1))
    provider = DurableStoreProvider(store, search_page_size=2)

    result = provider.search("alien", 2)

    assert result.page == 2
    assert result.total_pages == 2
    assert [m.title for m in result.movies] == ["Alien 2"]


def test_terminal_catalog_pages_order_by_rating(store, movie_factory):
    now = now_utc_naive()
    movie_factory(
        title="Heat",
        genres=["Crime"],
        vote_average=8.3,
        vote_count=7000,
        cache_expires_at=now - timedelta(days=1),
    )
    movie_factory(title="Ronin", genres=["Crime", "Action"], vote_average=7.2, vote_count=90)
    movie_factory(title="Up", genres=["Animation"], vote_average=8.0, vote_count=20000)
    provider = DurableStoreProvider(store)

    crime = provider.discover("Crime")
    popular = provider.popular()

    assert [m.title for m in crime.movies] == ["Heat", "Ronin"]
    assert crime.total_pages == 1
    assert [m.title for m in popular.movies] == ["Heat", "Up"]
