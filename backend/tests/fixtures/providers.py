from collections.abc import Callable
from typing import Any

import pytest

from cineverse.exceptions.provider import ProviderNotFoundError
from cineverse.metadata.providers.base import ProviderSearchResult
from cineverse.models import MovieMetadata

__all__ = ["stub_provider_factory", "StubProvider"]


class StubProvider:
    """Provider double with scripted answers and a call log."""

    def __init__(
        self,
        name: str,
        *,
        movies: dict[str, MovieMetadata] | None = None,
        titles: dict[str, MovieMetadata] | None = None,
        search_results: ProviderSearchResult | None = None,
        catalog_results: ProviderSearchResult | None = None,
        error: Exception | None = None,
        on_call: Callable[[], Any] | None = None,
    ):
        self.name = name
        self.movies = movies or {}
        self.titles = titles or {}
        self.search_results = search_results
        self.catalog_results = catalog_results
        self.error = error
        self.on_call = on_call
        self.calls: list[tuple[str, Any]] = []

    def _enter(self, operation: str, argument: Any) -> None:
        self.calls.append((operation, argument))
        if self.on_call is not None:
            self.on_call()
        if self.error is not None:
            raise self.error

    def fetch_by_external_id(self, external_id, *, timeout=None):
        self._enter("fetch_by_external_id", external_id)
        if external_id not in self.movies:
            raise ProviderNotFoundError(self.name, external_id)
        return self.movies[external_id]

    def fetch_by_title(self, title, year=None, *, timeout=None):
        self._enter("fetch_by_title", title)
        if title not in self.titles:
            raise ProviderNotFoundError(self.name, title)
        return self.titles[title]

    def search(self, query, page=1, *, timeout=None):
        self._enter("search", query)
        if self.search_results is None:
            return ProviderSearchResult(movies=[], page=page, total_pages=0)
        return self.search_results

    def _catalog(self, page):
        if self.catalog_results is None:
            return ProviderSearchResult(movies=[], page=page, total_pages=0)
        return self.catalog_results

    def popular(self, page=1, *, timeout=None):
        self._enter("popular", page)
        return self._catalog(page)

    def discover(self, genre, page=1, *, timeout=None):
        self._enter("discover", genre)
        return self._catalog(page)


@pytest.fixture
def stub_provider_factory():
    return StubProvider
