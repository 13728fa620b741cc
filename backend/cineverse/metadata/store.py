import datetime as dt
from collections.abc import Callable
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session

from cineverse import crud
from cineverse.core.db import new_session
from cineverse.exceptions.movie_exceptions import MovieStoreError
from cineverse.metadata.logger import logger
from cineverse.models import Movie, MovieCreate, MovieMetadata, MovieUpdate

_METADATA_FIELDS = set(MovieMetadata.model_fields)


class SqlMovieStore:
    """Durable movie records backed by the ``movie`` table.

    Every method runs in its own short session and commits before returning.
    Database failures surface as ``MovieStoreError`` and are not retried.
    """

    def __init__(self, session_factory: Callable[[], Session] = new_session):
        self._session_factory = session_factory

    def get_by_external_id(self, external_id: str) -> Movie | None:
        try:
            with self._session_factory() as session:
                return crud.get_movie_by_external_id(
                    session=session, external_id=external_id
                )
        except SQLAlchemyError as e:
            raise self._store_error("get_by_external_id", e) from e

    def get_by_id(self, id: UUID) -> Movie | None:
        try:
            with self._session_factory() as session:
                return crud.get_movie_by_id(session=session, id=id)
        except SQLAlchemyError as e:
            raise self._store_error("get_by_id", e) from e

    def create(self, movie_create: MovieCreate) -> Movie:
        """
        Insert a new record.

        Raises:
            IntegrityError: If the external id is already stored.
            MovieStoreError: On any other database failure.
        """
        try:
            with self._session_factory() as session:
                movie = crud.create_movie(session=session, movie_create=movie_create)
                session.commit()
                return movie
        except IntegrityError:
            raise
        except SQLAlchemyError as e:
            raise self._store_error("create", e) from e

    def update(self, external_id: str, movie_update: MovieUpdate) -> Movie | None:
        try:
            with self._session_factory() as session:
                db_movie = crud.get_movie_by_external_id(
                    session=session, external_id=external_id
                )
                if db_movie is None:
                    return None
                crud.update_movie(db_movie=db_movie, movie_update=movie_update)
                session.commit()
                return db_movie
        except SQLAlchemyError as e:
            raise self._store_error("update", e) from e

    def save(self, metadata: MovieMetadata, *, expires_at: dt.datetime) -> Movie:
        """
        Upsert by external id. An existing row keeps its ``id`` and
        ``created_at``; everything else is replaced and the expiry is set to
        ``expires_at``. A concurrent insert that wins the race is applied as
        an update.
        """
        fields = metadata.model_dump(include=_METADATA_FIELDS)
        fields.pop("external_id")
        movie_update = MovieUpdate(**fields, cache_expires_at=expires_at)

        existing = self.update(metadata.external_id, movie_update)
        if existing is not None:
            return existing

        movie_create = MovieCreate(
            **metadata.model_dump(include=_METADATA_FIELDS), cache_expires_at=expires_at
        )
        try:
            return self.create(movie_create)
        except IntegrityError:
            logger.debug(
                "Concurrent insert for %s; applying as update.",
                metadata.external_id,
            )
        updated = self.update(metadata.external_id, movie_update)
        if updated is None:
            raise MovieStoreError("save")
        return updated

    def search(
        self,
        query: str,
        *,
        limit: int,
        offset: int = 0,
        include_stale: bool = False,
        now: dt.datetime | None = None,
        genre: str | None = None,
        min_votes: int | None = None,
        order_by_rating: bool = False,
    ) -> list[Movie]:
        try:
            with self._session_factory() as session:
                return crud.search_movies(
                    session=session,
                    query=query,
                    limit=limit,
                    offset=offset,
                    include_stale=include_stale,
                    now=now,
                    genre=genre,
                    min_votes=min_votes,
                    order_by_rating=order_by_rating,
                )
        except SQLAlchemyError as e:
            raise self._store_error("search", e) from e

    def count_search(
        self,
        query: str,
        *,
        include_stale: bool = False,
        now: dt.datetime | None = None,
        genre: str | None = None,
        min_votes: int | None = None,
    ) -> int:
        try:
            with self._session_factory() as session:
                return crud.count_search_movies(
                    session=session,
                    query=query,
                    include_stale=include_stale,
                    now=now,
                    genre=genre,
                    min_votes=min_votes,
                )
        except SQLAlchemyError as e:
            raise self._store_error("count_search", e) from e

    def delete_expired(self, expired_before: dt.datetime) -> int:
        try:
            with self._session_factory() as session:
                deleted = crud.delete_expired_movies(
                    session=session, expired_before=expired_before
                )
                session.commit()
                return deleted
        except SQLAlchemyError as e:
            raise self._store_error("delete_expired", e) from e

    @staticmethod
    def _store_error(operation: str, error: SQLAlchemyError) -> MovieStoreError:
        logger.error("Movie store %s failed: %s", operation, error)
        return MovieStoreError(operation)
