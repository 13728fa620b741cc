"""Tiered movie resolution: volatile cache, durable store, provider chain."""

import datetime as dt
import time
import uuid
from collections.abc import Callable

from cineverse.exceptions.movie_exceptions import (
    InvalidMovieQueryError,
    MovieNotFoundError,
    MovieResolutionTimeoutError,
)
from cineverse.exceptions.provider import ProviderError
from cineverse.metadata.cache import MovieCache, deserialize_movie, serialize_movie
from cineverse.metadata.chain import ProviderChain
from cineverse.metadata.config import (
    POPULAR_LOCAL_MINIMUM,
    POPULAR_MIN_VOTES,
    cache_key,
)
from cineverse.metadata.logger import logger
from cineverse.metadata.providers.base import ProviderSearchResult
from cineverse.metadata.providers.database import DurableStoreProvider
from cineverse.metadata.singleflight import SingleFlight
from cineverse.metadata.store import SqlMovieStore
from cineverse.models import Movie, MovieMetadata
from cineverse.utils import now_utc_naive


class Deadline:
    """Wall-clock budget for one resolution, measured on a monotonic clock."""

    def __init__(self, seconds: float, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._expires_at = clock() + seconds

    def remaining(self) -> float:
        return max(0.0, self._expires_at - self._clock())

    def expired(self) -> bool:
        return self.remaining() <= 0.0


class MovieResolver:
    def __init__(
        self,
        store: SqlMovieStore,
        cache: MovieCache,
        chain: ProviderChain,
        *,
        cache_ttl: int,
        record_ttl: dt.timedelta,
        singleflight: SingleFlight | None = None,
        clock: Callable[[], dt.datetime] = now_utc_naive,
        title_match_threshold: float = 80.0,
        search_page_size: int = 20,
    ):
        self.store = store
        self.cache = cache
        self.chain = chain
        self.cache_ttl = cache_ttl
        self.record_ttl = record_ttl
        self.singleflight = singleflight
        self.clock = clock
        self.search_page_size = search_page_size
        self._local = DurableStoreProvider(
            store,
            title_match_threshold=title_match_threshold,
            search_page_size=search_page_size,
        )

    # Tier helpers

    def _from_cache(self, external_id: str) -> Movie | None:
        hit, raw = self.cache.get(cache_key(external_id))
        if not hit or raw is None:
            return None
        return deserialize_movie(raw)

    def _cache_movie(self, movie: Movie, *, alias: str | None = None) -> None:
        """Write a fresh record to the cache; TTL never outlives the record's expiry."""
        now = self.clock()
        if not movie.is_fresh(now):
            return
        remaining = int((movie.cache_expires_at - now).total_seconds())
        ttl = max(1, min(self.cache_ttl, remaining))
        value = serialize_movie(movie)
        self.cache.set(cache_key(movie.external_id), value, ttl)
        if alias and alias != movie.external_id:
            self.cache.set(cache_key(alias), value, ttl)

    def _persist(self, metadata: MovieMetadata) -> Movie:
        if isinstance(metadata, Movie):
            return metadata
        return self.store.save(metadata, expires_at=self.clock() + self.record_ttl)

    @staticmethod
    def _timeout(deadline: Deadline | None) -> float | None:
        if deadline is None:
            return None
        return deadline.remaining()

    @staticmethod
    def _check_deadline(deadline: Deadline | None, identifier: str) -> None:
        if deadline is not None and deadline.expired():
            logger.warning("Resolution of %s exceeded its deadline.", identifier)
            raise MovieResolutionTimeoutError(identifier)

    # Resolution by external id

    def resolve_by_external_id(
        self, external_id: str, *, deadline: Deadline | None = None
    ) -> Movie:
        """
        Return the canonical movie for an external id.

        Order: cache hit, fresh stored record, refresh of a stale record
        (falling back to the stale record when every provider fails), then the
        full provider chain for an unseen id.

        Raises:
            MovieNotFoundError: No record exists and no provider knows the id.
            MovieResolutionTimeoutError: The deadline passed before a new record was stored.
        """
        external_id = external_id.strip()
        while True:
            cached = self._from_cache(external_id)
            if cached is not None:
                logger.debug("Cache hit for %s.", external_id)
                return cached

            stored = self.store.get_by_external_id(external_id)
            if stored is not None and stored.is_fresh(self.clock()):
                logger.debug("Fresh stored record for %s.", external_id)
                self._cache_movie(stored)
                return stored

            if self.singleflight is None:
                return self._resolve_uncached(external_id, stored, deadline)

            is_owner, flight = self.singleflight.begin(external_id)
            if is_owner:
                break

            logger.debug("Single-flight wait for %s.", external_id)
            wait_timeout = None if deadline is None else deadline.remaining()
            if wait_timeout is not None:
                wait_timeout = min(wait_timeout, self.singleflight.wait_timeout)
            if not self.singleflight.wait(flight, wait_timeout):
                self._check_deadline(deadline, external_id)
                logger.warning(
                    "Single-flight wait for %s timed out after %.1fs; still waiting on the owner.",
                    external_id,
                    self.singleflight.wait_timeout,
                )
                continue

            if isinstance(flight.error, MovieNotFoundError):
                raise MovieNotFoundError(external_id) from flight.error
            if flight.result is not None:
                return flight.result
            if flight.error is not None:
                logger.warning(
                    "Single-flight owner for %s failed (%s); retrying lookup ownership.",
                    external_id,
                    flight.error,
                )

            # Woken without an outcome: re-read whatever the owner left behind.
            shared = self._from_cache(external_id) or self.store.get_by_external_id(
                external_id
            )
            if shared is not None:
                return shared

        movie: Movie | None = None
        error: Exception | None = None
        try:
            # Another owner may have finished between our store read and begin().
            stored = self.store.get_by_external_id(external_id)
            if stored is not None and stored.is_fresh(self.clock()):
                self._cache_movie(stored)
                movie = stored
            else:
                movie = self._resolve_uncached(external_id, stored, deadline)
            return movie
        except Exception as e:
            error = e
            raise
        finally:
            self.singleflight.finish(external_id, flight, result=movie, error=error)

    def _resolve_uncached(
        self, external_id: str, stored: Movie | None, deadline: Deadline | None
    ) -> Movie:
        if stored is not None:
            return self._refresh_stale(stored, deadline)

        try:
            metadata = self.chain.fetch_by_external_id(
                external_id, timeout=self._timeout(deadline)
            )
        except ProviderError as e:
            self._check_deadline(deadline, external_id)
            logger.info("No provider knows %s: %s", external_id, e)
            raise MovieNotFoundError(external_id) from e

        self._check_deadline(deadline, external_id)
        movie = self._persist(metadata)
        self._cache_movie(movie, alias=external_id)
        logger.info(
            "Stored %s (%s) from %s.", movie.external_id, movie.title, movie.provider
        )
        return movie

    def _refresh_stale(self, stored: Movie, deadline: Deadline | None) -> Movie:
        try:
            metadata = self.chain.without_terminal().fetch_by_external_id(
                stored.external_id, timeout=self._timeout(deadline)
            )
        except ProviderError as e:
            logger.warning(
                "Refresh of stale movie %s failed, serving stale record: %s",
                stored.external_id,
                e,
            )
            return stored

        if deadline is not None and deadline.expired():
            logger.warning(
                "Refresh of stale movie %s finished after the deadline, serving stale record.",
                stored.external_id,
            )
            return stored

        if metadata.external_id != stored.external_id:
            metadata = MovieMetadata.model_validate(
                {
                    **metadata.model_dump(include=set(MovieMetadata.model_fields)),
                    "external_id": stored.external_id,
                }
            )
        movie = self._persist(metadata)
        self._cache_movie(movie)
        logger.info("Refreshed stale movie %s.", movie.external_id)
        return movie

    def refresh_movie(
        self, external_id: str, *, deadline: Deadline | None = None
    ) -> Movie:
        """
        Force a provider refresh regardless of freshness.

        Falls back to the stored record when every provider fails.

        Raises:
            MovieNotFoundError: No provider answered and nothing is stored.
        """
        external_id = external_id.strip()
        stored = self.store.get_by_external_id(external_id)
        if stored is not None:
            return self._refresh_stale(stored, deadline)
        return self._resolve_uncached(external_id, None, deadline)

    def resolve(self, identifier: str, *, deadline: Deadline | None = None) -> Movie:
        """Resolve an internal UUID or an external id."""
        identifier = identifier.strip()
        if not identifier:
            raise InvalidMovieQueryError("identifier must not be empty")
        try:
            movie_id = uuid.UUID(identifier)
        except ValueError:
            return self.resolve_by_external_id(identifier, deadline=deadline)

        movie = self.store.get_by_id(movie_id)
        if movie is None:
            raise MovieNotFoundError(identifier)
        if movie.is_fresh(self.clock()):
            return movie
        return self.resolve_by_external_id(movie.external_id, deadline=deadline)

    # Title and search

    def resolve_by_title(
        self,
        title: str,
        year: int | None = None,
        *,
        deadline: Deadline | None = None,
    ) -> Movie:
        title = title.strip()
        if not title:
            raise InvalidMovieQueryError("title must not be empty")
        local = self._local.match_title(
            title, year, include_stale=False, now=self.clock()
        )
        if local is not None:
            return local

        try:
            metadata = self.chain.fetch_by_title(
                title, year, timeout=self._timeout(deadline)
            )
        except ProviderError as e:
            self._check_deadline(deadline, title)
            raise MovieNotFoundError(title) from e

        self._check_deadline(deadline, title)
        movie = self._persist(metadata)
        self._cache_movie(movie)
        return movie

    def search(
        self, query: str, page: int = 1, *, deadline: Deadline | None = None
    ) -> ProviderSearchResult:
        """
        Paginated free-text search. Fresh stored rows answer first; otherwise
        the provider chain. Provider hits are returned without being stored.
        No match anywhere yields an empty page, not an error.

        Each page comes from exactly one source and carries that source's
        ``total_pages``. A page past the last fresh local page goes to the
        providers, so its total is the provider's count, not the local one.
        """
        query = query.strip()
        if not query:
            raise InvalidMovieQueryError("query must not be empty")
        page = max(page, 1)

        now = self.clock()
        total = self.store.count_search(query, include_stale=False, now=now)
        if total > (page - 1) * self.search_page_size:
            movies = self.store.search(
                query,
                limit=self.search_page_size,
                offset=(page - 1) * self.search_page_size,
                include_stale=False,
                now=now,
            )
            total_pages = -(-total // self.search_page_size)
            return ProviderSearchResult(movies=movies, page=page, total_pages=total_pages)

        try:
            return self.chain.search(query, page, timeout=self._timeout(deadline))
        except ProviderError as e:
            logger.info("No search results for '%s' page %d: %s", query, page, e)
            return ProviderSearchResult(movies=[], page=page, total_pages=0)

    def popular(
        self, page: int = 1, *, deadline: Deadline | None = None
    ) -> ProviderSearchResult:
        """
        Popular movies. A page of well-voted fresh stored rows answers locally
        when it is full enough; otherwise the catalog providers are asked and
        every hit is upserted.
        """
        return self._browse(
            f"popular page {page}",
            page,
            deadline,
            minimum=POPULAR_LOCAL_MINIMUM,
            fetch=lambda timeout: self.chain.popular(page, timeout=timeout),
            min_votes=POPULAR_MIN_VOTES,
        )

    def by_genre(
        self, genre: str, page: int = 1, *, deadline: Deadline | None = None
    ) -> ProviderSearchResult:
        """Movies of one genre; fresh stored rows first, then the catalog providers."""
        genre = genre.strip()
        if not genre:
            raise InvalidMovieQueryError("genre must not be empty")
        return self._browse(
            genre,
            page,
            deadline,
            minimum=1,
            fetch=lambda timeout: self.chain.discover(genre, page, timeout=timeout),
            genre=genre,
        )

    def _browse(
        self,
        description: str,
        page: int,
        deadline: Deadline | None,
        *,
        minimum: int,
        fetch: Callable[[float | None], ProviderSearchResult],
        **filters,
    ) -> ProviderSearchResult:
        page = max(page, 1)
        now = self.clock()
        local = self.store.search(
            "",
            limit=self.search_page_size,
            offset=(page - 1) * self.search_page_size,
            include_stale=False,
            now=now,
            order_by_rating=True,
            **filters,
        )
        if local and len(local) >= min(minimum, self.search_page_size):
            total = self.store.count_search("", include_stale=False, now=now, **filters)
            total_pages = -(-total // self.search_page_size)
            return ProviderSearchResult(movies=local, page=page, total_pages=total_pages)

        try:
            result = fetch(self._timeout(deadline))
        except ProviderError as e:
            logger.info("No movies for '%s': %s", description, e)
            return ProviderSearchResult(movies=[], page=page, total_pages=0)

        movies = [self._persist(metadata) for metadata in result.movies]
        logger.info("Listed %d movies for '%s'.", len(movies), description)
        return ProviderSearchResult(
            movies=movies, page=result.page, total_pages=result.total_pages
        )

    # Maintenance

    def cleanup_expired(self, grace: dt.timedelta) -> int:
        """Delete records whose expiry is older than ``grace``."""
        cutoff = self.clock() - grace
        deleted = self.store.delete_expired(cutoff)
        logger.info("Deleted %d movies expired before %s.", deleted, cutoff.isoformat())
        return deleted
