from cineverse.converters import movie as movie_converters
from cineverse.metadata.providers.base import ProviderSearchResult


def test_to_view_from_stored_movie(movie_factory):
    movie = movie_factory(genres=["Action", "Sci-Fi"], adult=True)

    view = movie_converters.to_view(movie)

    assert view.id == movie.id
    assert view.external_id == movie.external_id
    assert view.genres == ["Action", "Sci-Fi"]
    assert view.adult is True
    assert "cache_expires_at" not in view.model_dump()


def test_to_view_from_provider_result(movie_metadata_factory):
    metadata = movie_metadata_factory(runtime=None, vote_average=None)

    view = movie_converters.to_view(metadata)

    assert view.id is None
    assert view.runtime is None
    assert view.vote_average is None


def test_to_search_page(movie_metadata_factory):
    result = ProviderSearchResult(
        movies=[movie_metadata_factory(title="Heat")], page=1, total_pages=1
    )

    page = movie_converters.to_search_page(result)

    assert page.page == 1
    assert page.total_pages == 1
    assert [m.title for m in page.movies] == ["Heat"]
