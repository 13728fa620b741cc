import datetime as dt
from uuid import UUID

from sqlalchemy import String, cast, delete, func, select
from sqlmodel import Session, col

from cineverse.models.movie import Movie, MovieCreate, MovieUpdate
from cineverse.utils import now_utc_naive


def get_movie_by_id(*, session: Session, id: UUID) -> Movie | None:
    """
    Retrieve a movie by its internal ID.
    Parameters:
        session (Session): The database session.
        id (UUID): The ID of the movie to retrieve.
    Returns:
        Movie | None: The movie object if found, otherwise None.
    """
    movie = session.get(Movie, id)
    return movie


def get_movie_by_external_id(*, session: Session, external_id: str) -> Movie | None:
    """
    Retrieve a movie by its canonical external ID, regardless of expiry.

    Parameters:
        session (Session): The database session.
        external_id (str): IMDb id (``tt...``) or ``tmdb:<id>``.
    Returns:
        Movie | None: The movie object if found, otherwise None.
    """
    stmt = select(Movie).where(col(Movie.external_id) == external_id)
    result = session.execute(stmt)
    movie: Movie | None = result.scalars().one_or_none()
    return movie


def create_movie(*, session: Session, movie_create: MovieCreate) -> Movie:
    """
    Create a new movie in the database.

    Parameters:
        session (Session): The database session.
        movie_create (MovieCreate): The movie data to create.
    Returns:
        Movie: The created movie object.
    Raises:
        IntegrityError: If a movie with the same external id already exists.
    """
    now = now_utc_naive()
    db_obj = Movie(**movie_create.model_dump(), created_at=now, updated_at=now)
    session.add(db_obj)
    session.flush()  # Check for Unique Violations
    return db_obj


def update_movie(*, db_movie: Movie, movie_update: MovieUpdate) -> Movie:
    """
    Update an existing movie in place. ``id``, ``external_id`` and ``created_at``
    are never touched. Does not flush.

    Parameters:
        db_movie (Movie): The existing movie object to update.
        movie_update (MovieUpdate): The updated movie data.
    Returns:
        Movie: The updated movie object.
    """
    movie_data = movie_update.model_dump(exclude_unset=True)
    db_movie.sqlmodel_update(movie_data)
    db_movie.updated_at = now_utc_naive()
    return db_movie


def _search_filter(
    stmt,
    *,
    query: str,
    include_stale: bool,
    now: dt.datetime,
    genre: str | None = None,
    min_votes: int | None = None,
):
    query = query.strip()
    if query:
        stmt = stmt.where(col(Movie.title).ilike(f"%{query}%"))
    if genre:
        # Genres are a JSON list of strings; match the quoted element in its text form.
        stmt = stmt.where(cast(col(Movie.genres), String).ilike(f'%"{genre}"%'))
    if min_votes is not None:
        stmt = stmt.where(col(Movie.vote_count) > min_votes)
    if not include_stale:
        stmt = stmt.where(col(Movie.cache_expires_at) > now)
    return stmt


def search_movies(
    *,
    session: Session,
    query: str,
    limit: int,
    offset: int,
    include_stale: bool = False,
    now: dt.datetime | None = None,
    genre: str | None = None,
    min_votes: int | None = None,
    order_by_rating: bool = False,
) -> list[Movie]:
    """
    Retrieve movies whose title contains the query (case-insensitive).

    Parameters:
        session (Session): The database session.
        query (str): Substring to match against the title. Empty matches every title.
        limit (int): The maximum number of movies to retrieve.
        offset (int): The offset for pagination.
        include_stale (bool): Also return rows whose expiry has passed.
        now (datetime | None): Reference time for the expiry check.
        genre (str | None): Only movies listing this genre.
        min_votes (int | None): Only movies with more votes than this.
        order_by_rating (bool): Best rated first instead of by title.
    Returns:
        list[Movie]: Matching movies, ordered by title then release date, or by
        rating then vote count.
    """
    stmt = _search_filter(
        select(Movie),
        query=query,
        include_stale=include_stale,
        now=now or now_utc_naive(),
        genre=genre,
        min_votes=min_votes,
    )
    if order_by_rating:
        stmt = stmt.order_by(
            col(Movie.vote_average).desc().nulls_last(),
            col(Movie.vote_count).desc().nulls_last(),
            col(Movie.external_id),
        )
    else:
        stmt = stmt.order_by(
            col(Movie.title),
            col(Movie.release_date).desc(),
            col(Movie.external_id),
        )
    stmt = stmt.limit(limit).offset(offset)
    result = session.execute(stmt)
    movies: list[Movie] = list(result.scalars().all())
    return movies


def count_search_movies(
    *,
    session: Session,
    query: str,
    include_stale: bool = False,
    now: dt.datetime | None = None,
    genre: str | None = None,
    min_votes: int | None = None,
) -> int:
    """
    Count the rows ``search_movies`` would page through.
    """
    stmt = _search_filter(
        select(func.count()).select_from(Movie),
        query=query,
        include_stale=include_stale,
        now=now or now_utc_naive(),
        genre=genre,
        min_votes=min_votes,
    )
    return int(session.execute(stmt).scalar_one())


def delete_expired_movies(*, session: Session, expired_before: dt.datetime) -> int:
    """
    Delete movies whose expiry is older than the given moment. Does not commit.

    Parameters:
        session (Session): The database session.
        expired_before (datetime): Rows with ``cache_expires_at`` before this are removed.
    Returns:
        int: Number of deleted rows.
    """
    stmt = delete(Movie).where(col(Movie.cache_expires_at) < expired_before)
    result = session.execute(stmt)
    return int(result.rowcount or 0)
