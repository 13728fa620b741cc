from typing import Any

import requests

from cineverse.exceptions.provider import ProviderNotFoundError, ProviderPayloadError
from cineverse.metadata.config import (
    TMDB_IMAGE_BASE_URL,
    TMDB_MAX_PAGE,
    TMDB_PROVIDER_NAME,
    is_imdb_id,
    parse_tmdb_external_id,
    tmdb_genre_id,
)
from cineverse.metadata.normalization import (
    parse_tmdb_movie,
    parse_tmdb_search_item,
)
from cineverse.metadata.providers.base import (
    ProviderSearchResult,
    get_json,
    resolve_timeout,
)
from cineverse.models import MovieMetadata


class TmdbProvider:
    """Adapter for the TMDB v3 API.

    ``/movie/{id}`` accepts both numeric TMDB ids and IMDb ids, so external ids
    of either form (``tt0133093`` or ``tmdb:603``) are fetched with one request.
    """

    name = TMDB_PROVIDER_NAME

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = "https://api.themoviedb.org/3",
        image_base_url: str = TMDB_IMAGE_BASE_URL,
        timeout: float = 12.0,
        session: requests.Session | None = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.image_base_url = image_base_url
        self.timeout = timeout
        self.session = session

    def _get(
        self, path: str, params: dict[str, Any], timeout: float | None
    ) -> dict[str, Any]:
        return get_json(
            provider=self.name,
            url=f"{self.base_url}{path}",
            params={"api_key": self.api_key, **params},
            timeout=resolve_timeout(timeout, self.timeout),
            session=self.session,
        )

    def _search_payload(
        self, params: dict[str, Any], timeout: float | None
    ) -> tuple[list[Any], dict[str, Any]]:
        payload = self._get("/search/movie", {"include_adult": "false", **params}, timeout)
        results = payload.get("results")
        if not isinstance(results, list):
            raise ProviderPayloadError(self.name, "Search payload has no result list.")
        return results, payload

    def fetch_by_external_id(
        self, external_id: str, *, timeout: float | None = None
    ) -> MovieMetadata:
        tmdb_id = parse_tmdb_external_id(external_id)
        if tmdb_id is not None:
            lookup_id = str(tmdb_id)
        elif is_imdb_id(external_id):
            lookup_id = external_id
        else:
            raise ProviderNotFoundError(self.name, external_id)
        payload = self._get(f"/movie/{lookup_id}", {}, timeout)
        return parse_tmdb_movie(payload, image_base_url=self.image_base_url)

    def fetch_by_title(
        self, title: str, year: int | None = None, *, timeout: float | None = None
    ) -> MovieMetadata:
        params: dict[str, Any] = {"query": title}
        if year is not None:
            params["year"] = year
        results, _ = self._search_payload(params, timeout)
        if not results:
            raise ProviderNotFoundError(self.name, title)
        return parse_tmdb_search_item(results[0], image_base_url=self.image_base_url)

    def _list_page(
        self,
        path: str,
        params: dict[str, Any],
        page: int,
        timeout: float | None,
    ) -> ProviderSearchResult:
        page = min(max(page, 1), TMDB_MAX_PAGE)
        payload = self._get(path, {**params, "page": page}, timeout)
        results = payload.get("results")
        if not isinstance(results, list):
            raise ProviderPayloadError(self.name, f"{path} payload has no result list.")
        movies = [
            parse_tmdb_search_item(item, image_base_url=self.image_base_url)
            for item in results
        ]
        total_pages = payload.get("total_pages")
        if not isinstance(total_pages, int) or isinstance(total_pages, bool):
            total_pages = page if movies else 0
        return ProviderSearchResult(
            movies=movies, page=page, total_pages=min(total_pages, TMDB_MAX_PAGE)
        )

    def search(
        self, query: str, page: int = 1, *, timeout: float | None = None
    ) -> ProviderSearchResult:
        return self._list_page(
            "/search/movie", {"include_adult": "false", "query": query}, page, timeout
        )

    def popular(
        self, page: int = 1, *, timeout: float | None = None
    ) -> ProviderSearchResult:
        return self._list_page("/movie/popular", {}, page, timeout)

    def discover(
        self, genre: str, page: int = 1, *, timeout: float | None = None
    ) -> ProviderSearchResult:
        """Movies of one genre, by TMDB popularity. Unknown genre names are a miss."""
        genre_id = tmdb_genre_id(genre)
        if genre_id is None:
            raise ProviderNotFoundError(self.name, genre)
        return self._list_page(
            "/discover/movie",
            {
                "include_adult": "false",
                "with_genres": genre_id,
                "sort_by": "popularity.desc",
            },
            page,
            timeout,
        )
