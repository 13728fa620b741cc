import datetime as dt

from cineverse.converters import movie as movie_converters
from cineverse.metadata.resolver import Deadline, MovieResolver
from cineverse.schemas.movie import MovieSearchPage, MovieView


def resolve_movie(
    *,
    resolver: MovieResolver,
    identifier: str,
    deadline: Deadline | None = None,
) -> MovieView:
    """
    Resolve a movie by internal id or external id.

    Parameters:
        resolver (MovieResolver): The tiered movie resolver.
        identifier (str): Internal UUID or external id (``tt...`` / ``tmdb:<id>``).
        deadline (Deadline | None): Optional budget for the whole resolution.
    Returns:
        MovieView: The resolved movie.
    Raises:
        MovieNotFoundError: If no tier knows the movie.
        MovieResolutionTimeoutError: If the deadline passed before a new record was stored.
    """
    movie = resolver.resolve(identifier, deadline=deadline)
    return movie_converters.to_view(movie)


def search_movies(
    *,
    resolver: MovieResolver,
    query: str,
    page: int = 1,
    deadline: Deadline | None = None,
) -> MovieSearchPage:
    """
    Free-text movie search, paginated.

    Parameters:
        resolver (MovieResolver): The tiered movie resolver.
        query (str): Search text.
        page (int): 1-based page number.
    Returns:
        MovieSearchPage: Matching movies plus the page and total page count.
    """
    result = resolver.search(query, page, deadline=deadline)
    return movie_converters.to_search_page(result)


def popular_movies(
    *,
    resolver: MovieResolver,
    page: int = 1,
    deadline: Deadline | None = None,
) -> MovieSearchPage:
    """
    Popular movies, paginated. Provider hits are stored as they are returned.

    Parameters:
        resolver (MovieResolver): The tiered movie resolver.
        page (int): 1-based page number.
    Returns:
        MovieSearchPage: The page of movies plus the page and total page count.
    """
    result = resolver.popular(page, deadline=deadline)
    return movie_converters.to_search_page(result)


def movies_by_genre(
    *,
    resolver: MovieResolver,
    genre: str,
    page: int = 1,
    deadline: Deadline | None = None,
) -> MovieSearchPage:
    """
    Movies of one genre, paginated.

    Parameters:
        resolver (MovieResolver): The tiered movie resolver.
        genre (str): Genre name, e.g. ``"Science Fiction"``.
        page (int): 1-based page number.
    Returns:
        MovieSearchPage: The page of movies plus the page and total page count.
    Raises:
        InvalidMovieQueryError: If the genre is blank.
    """
    result = resolver.by_genre(genre, page, deadline=deadline)
    return movie_converters.to_search_page(result)


def cleanup_expired_movies(*, resolver: MovieResolver, grace: dt.timedelta) -> int:
    """
    Delete stored movies that expired more than ``grace`` ago.

    Returns:
        int: Number of deleted movies.
    """
    return resolver.cleanup_expired(grace)
