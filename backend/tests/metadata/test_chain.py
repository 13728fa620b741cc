import pytest

from cineverse.exceptions.provider import (
    ProviderNotFoundError,
    ProviderTransportError,
)
from cineverse.metadata.chain import ProviderChain
from cineverse.metadata.providers import DurableStoreProvider
from cineverse.metadata.providers.base import ProviderSearchResult
from cineverse.metadata.store import SqlMovieStore
from cineverse.models import Movie


def test_first_success_wins_and_later_providers_are_skipped(
    stub_provider_factory, movie_metadata_factory
):
    matrix = movie_metadata_factory(external_id="tt0133093", title="The Matrix")
    first = stub_provider_factory("first", error=ProviderTransportError("first"))
    second = stub_provider_factory("second", movies={"tt0133093": matrix})
    third = stub_provider_factory("third", movies={"tt0133093": matrix})

    chain = ProviderChain([first, second, third])

    assert chain.fetch_by_external_id("tt0133093") is matrix
    assert len(first.calls) == 1
    assert len(second.calls) == 1
    assert third.calls == []


def test_all_failing_raises_last_error(stub_provider_factory):
    last_error = ProviderTransportError("second", "timed out")
    chain = ProviderChain(
        [
            stub_provider_factory("first", error=ProviderNotFoundError("first")),
            stub_provider_factory("second", error=last_error),
        ]
    )

    with pytest.raises(ProviderTransportError) as exc_info:
        chain.fetch_by_external_id("tt0133093")

    assert exc_info.value is last_error


def test_empty_chain_raises_not_found():
    with pytest.raises(ProviderNotFoundError):
        ProviderChain([]).fetch_by_title("The Matrix")


def test_search_treats_empty_page_as_miss(stub_provider_factory, movie_metadata_factory):
    hit = ProviderSearchResult(
        movies=[movie_metadata_factory(title="The Matrix")], page=1, total_pages=1
    )
    empty = stub_provider_factory("empty")
    full = stub_provider_factory("full", search_results=hit)

    result = ProviderChain([empty, full]).search("matrix", 1)

    assert result is hit
    assert empty.calls == [("search", "matrix")]


def test_search_all_empty_raises_not_found(stub_provider_factory):
    chain = ProviderChain([stub_provider_factory("a"), stub_provider_factory("b")])

    with pytest.raises(ProviderNotFoundError):
        chain.search("nothing", 1)


def test_auto_save_persists_result(
    stub_provider_factory, movie_metadata_factory, session_factory
):
    store = SqlMovieStore(session_factory)
    matrix = movie_metadata_factory(external_id="tt0133093", title="The Matrix")
    chain = ProviderChain(
        [stub_provider_factory("omdb", movies={"tt0133093": matrix})],
        store=store,
        auto_save=True,
    )

    movie = chain.fetch_by_external_id("tt0133093")

    assert isinstance(movie, Movie)
    assert store.get_by_external_id("tt0133093").id == movie.id


def test_without_terminal_drops_durable_store(stub_provider_factory, session_factory):
    store = SqlMovieStore(session_factory)
    external = stub_provider_factory("omdb")
    chain = ProviderChain([external, DurableStoreProvider(store)], store=store)

    trimmed = chain.without_terminal()

    assert trimmed.providers == [external]
    assert len(chain.providers) == 2


def test_terminal_returns_stale_record(stub_provider_factory, movie_factory, session_factory):
    from datetime import timedelta

    from cineverse.utils import now_utc_naive

    stale = movie_factory(
        external_id="tt0133093",
        title="The Matrix",
        cache_expires_at=now_utc_naive() - timedelta(days=1),
    )
    chain = ProviderChain(
        [
            stub_provider_factory("omdb", error=ProviderTransportError("omdb")),
            DurableStoreProvider(SqlMovieStore(session_factory)),
        ]
    )

    movie = chain.fetch_by_external_id("tt0133093")

    assert movie.id == stale.id


class SearchOnlyProvider:
    name = "search-only"

    def __init__(self):
        self.calls = []

    def fetch_by_external_id(self, external_id, *, timeout=None):
        raise ProviderNotFoundError(self.name, external_id)

    def fetch_by_title(self, title, year=None, *, timeout=None):
        raise ProviderNotFoundError(self.name, title)

    def search(self, query, page=1, *, timeout=None):
        self.calls.append(query)
        return ProviderSearchResult()


def test_catalog_calls_skip_providers_without_catalog(
    stub_provider_factory, movie_metadata_factory
):
    hits = ProviderSearchResult(
        movies=[movie_metadata_factory(title="Heat")], page=1, total_pages=1
    )
    search_only = SearchOnlyProvider()
    tmdb = stub_provider_factory("TMDB", catalog_results=hits)
    chain = ProviderChain([search_only, tmdb])

    assert chain.popular(1) is hits
    assert chain.discover("Crime", 1) is hits
    assert search_only.calls == []
    assert tmdb.calls == [("popular", 1), ("discover", "Crime")]


def test_catalog_empty_everywhere_raises_not_found(stub_provider_factory):
    chain = ProviderChain([stub_provider_factory("TMDB")])

    with pytest.raises(ProviderNotFoundError):
        chain.popular(1)
