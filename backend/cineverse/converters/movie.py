from cineverse.metadata.providers.base import ProviderSearchResult
from cineverse.models.movie import Movie, MovieMetadata
from cineverse.schemas.movie import MovieSearchPage, MovieView


def to_view(movie: MovieMetadata) -> MovieView:
    """
    Convert a stored Movie or a provider result to the public MovieView.

    Parameters:
        movie (MovieMetadata): A stored Movie or an unsaved provider result.
    Returns:
        MovieView: The read-only projection.
    """
    return MovieView(
        id=movie.id if isinstance(movie, Movie) else None,
        external_id=movie.external_id,
        title=movie.title,
        overview=movie.overview,
        release_date=movie.release_date,
        poster_url=movie.poster_url,
        backdrop_url=movie.backdrop_url,
        genres=list(movie.genres),
        runtime=movie.runtime,
        vote_average=movie.vote_average,
        vote_count=movie.vote_count,
        adult=movie.adult,
    )


def to_search_page(result: ProviderSearchResult) -> MovieSearchPage:
    return MovieSearchPage(
        movies=[to_view(movie) for movie in result.movies],
        page=result.page,
        total_pages=result.total_pages,
    )
