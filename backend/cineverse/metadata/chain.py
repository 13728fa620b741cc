import datetime as dt
from collections.abc import Callable, Sequence
from typing import TypeVar

from cineverse.exceptions.provider import ProviderError, ProviderNotFoundError
from cineverse.metadata.logger import logger
from cineverse.metadata.providers.base import (
    CatalogProvider,
    MovieProvider,
    ProviderSearchResult,
)
from cineverse.metadata.providers.database import DurableStoreProvider
from cineverse.metadata.store import SqlMovieStore
from cineverse.models import Movie, MovieMetadata
from cineverse.utils import now_utc_naive

T = TypeVar("T")

CHAIN_NAME = "chain"


class ProviderChain:
    """Ordered fallback over several ``MovieProvider``s.

    The chain is itself a ``MovieProvider``: each call tries the providers in
    order and returns the first success. A ``ProviderError`` is logged and the
    next provider is tried; when all of them fail the last error is raised.
    """

    name = CHAIN_NAME

    def __init__(
        self,
        providers: Sequence[MovieProvider],
        *,
        store: SqlMovieStore | None = None,
        auto_save: bool = False,
        record_ttl: dt.timedelta = dt.timedelta(hours=48),
        clock: Callable[[], dt.datetime] = now_utc_naive,
    ):
        self.providers = list(providers)
        self.store = store
        self.auto_save = auto_save
        self.record_ttl = record_ttl
        self.clock = clock

    def without_terminal(self) -> "ProviderChain":
        """The same chain minus durable-store links, used to refresh stale records."""
        return ProviderChain(
            [p for p in self.providers if not isinstance(p, DurableStoreProvider)],
            store=self.store,
            auto_save=self.auto_save,
            record_ttl=self.record_ttl,
            clock=self.clock,
        )

    def _run(
        self,
        operation: str,
        description: str,
        call: Callable[[MovieProvider], T],
        is_miss: Callable[[T], bool] | None = None,
        providers: Sequence[MovieProvider] | None = None,
    ) -> T:
        last_error: ProviderError = ProviderNotFoundError(self.name, description)
        for provider in self.providers if providers is None else providers:
            try:
                result = call(provider)
            except ProviderError as e:
                logger.info(
                    "Provider %s failed %s for '%s': %s; trying next provider.",
                    provider.name,
                    operation,
                    description,
                    e.message,
                )
                last_error = e
                continue
            if is_miss is not None and is_miss(result):
                logger.info(
                    "Provider %s returned no results for '%s'; trying next provider.",
                    provider.name,
                    description,
                )
                last_error = ProviderNotFoundError(provider.name, description)
                continue
            logger.debug(
                "Provider %s answered %s for '%s'.", provider.name, operation, description
            )
            return result
        raise last_error

    def _maybe_save(self, movie: MovieMetadata) -> MovieMetadata:
        if not self.auto_save or self.store is None or isinstance(movie, Movie):
            return movie
        return self.store.save(movie, expires_at=self.clock() + self.record_ttl)

    def fetch_by_external_id(
        self, external_id: str, *, timeout: float | None = None
    ) -> MovieMetadata:
        movie = self._run(
            "fetch_by_external_id",
            external_id,
            lambda p: p.fetch_by_external_id(external_id, timeout=timeout),
        )
        return self._maybe_save(movie)

    def fetch_by_title(
        self, title: str, year: int | None = None, *, timeout: float | None = None
    ) -> MovieMetadata:
        movie = self._run(
            "fetch_by_title",
            title if year is None else f"{title} ({year})",
            lambda p: p.fetch_by_title(title, year, timeout=timeout),
        )
        return self._maybe_save(movie)

    def search(
        self, query: str, page: int = 1, *, timeout: float | None = None
    ) -> ProviderSearchResult:
        return self._run(
            "search",
            query,
            lambda p: p.search(query, page, timeout=timeout),
            is_miss=lambda result: not result.movies,
        )

    def _catalog_run(
        self,
        operation: str,
        description: str,
        call: Callable[[CatalogProvider], ProviderSearchResult],
    ) -> ProviderSearchResult:
        return self._run(
            operation,
            description,
            call,
            is_miss=lambda result: not result.movies,
            providers=[p for p in self.providers if isinstance(p, CatalogProvider)],
        )

    def popular(
        self, page: int = 1, *, timeout: float | None = None
    ) -> ProviderSearchResult:
        return self._catalog_run(
            "popular", f"popular page {page}", lambda p: p.popular(page, timeout=timeout)
        )

    def discover(
        self, genre: str, page: int = 1, *, timeout: float | None = None
    ) -> ProviderSearchResult:
        return self._catalog_run(
            "discover", genre, lambda p: p.discover(genre, page, timeout=timeout)
        )
