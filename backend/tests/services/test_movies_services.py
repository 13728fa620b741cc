from datetime import timedelta

import pytest
from pytest_mock import MockerFixture

from cineverse.exceptions.movie_exceptions import MovieNotFoundError
from cineverse.metadata.providers.base import ProviderSearchResult
from cineverse.metadata.resolver import MovieResolver
from cineverse.schemas.movie import MovieSearchPage, MovieView
from cineverse.services import movies as movies_services


@pytest.fixture
def resolver(mocker: MockerFixture):
    return mocker.create_autospec(MovieResolver, instance=True)


def test_resolve_movie_success(resolver, movie_factory):
    movie = movie_factory(external_id="tt0133093", title="The Matrix")
    resolver.resolve.return_value = movie

    view = movies_services.resolve_movie(resolver=resolver, identifier="tt0133093")

    resolver.resolve.assert_called_once_with("tt0133093", deadline=None)
    assert isinstance(view, MovieView)
    assert view.id == movie.id
    assert view.title == "The Matrix"


def test_resolve_movie_not_found(resolver):
    resolver.resolve.side_effect = MovieNotFoundError("tt9999999")

    with pytest.raises(MovieNotFoundError):
        movies_services.resolve_movie(resolver=resolver, identifier="tt9999999")


def test_search_movies_returns_page(resolver, movie_metadata_factory):
    hits = [movie_metadata_factory(), movie_metadata_factory()]
    resolver.search.return_value = ProviderSearchResult(
        movies=hits, page=2, total_pages=7
    )

    page = movies_services.search_movies(resolver=resolver, query="alien", page=2)

    resolver.search.assert_called_once_with("alien", 2, deadline=None)
    assert isinstance(page, MovieSearchPage)
    assert page.page == 2
    assert page.total_pages == 7
    assert [m.external_id for m in page.movies] == [h.external_id for h in hits]
    assert all(m.id is None for m in page.movies)


def test_popular_movies_returns_page(resolver, movie_factory):
    movie = movie_factory(title="Heat")
    resolver.popular.return_value = ProviderSearchResult(
        movies=[movie], page=1, total_pages=1
    )

    page = movies_services.popular_movies(resolver=resolver)

    resolver.popular.assert_called_once_with(1, deadline=None)
    assert [m.id for m in page.movies] == [movie.id]


def test_movies_by_genre_returns_page(resolver):
    resolver.by_genre.return_value = ProviderSearchResult(page=3, total_pages=2)

    page = movies_services.movies_by_genre(resolver=resolver, genre="Western", page=3)

    resolver.by_genre.assert_called_once_with("Western", 3, deadline=None)
    assert page.movies == []
    assert page.page == 3


def test_cleanup_expired_movies(resolver):
    resolver.cleanup_expired.return_value = 4

    deleted = movies_services.cleanup_expired_movies(
        resolver=resolver, grace=timedelta(days=30)
    )

    assert deleted == 4
    resolver.cleanup_expired.assert_called_once_with(timedelta(days=30))
