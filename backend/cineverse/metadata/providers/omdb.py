import math
from typing import Any

import requests

from cineverse.exceptions.provider import (
    ProviderNotFoundError,
    ProviderPayloadError,
    ProviderTransportError,
)
from cineverse.metadata.config import (
    OMDB_MAX_PAGE,
    OMDB_PROVIDER_NAME,
    OMDB_RESULTS_PER_PAGE,
    is_imdb_id,
)
from cineverse.metadata.normalization import (
    parse_omdb_movie,
    parse_omdb_search_item,
)
from cineverse.metadata.providers.base import (
    ProviderSearchResult,
    get_json,
    resolve_timeout,
)
from cineverse.models import MovieMetadata


class OmdbProvider:
    """Adapter for the OMDb API (http://www.omdbapi.com/)."""

    name = OMDB_PROVIDER_NAME

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = "http://www.omdbapi.com/",
        timeout: float = 12.0,
        session: requests.Session | None = None,
    ):
        self.api_key = api_key
        self.base_url = base_url
        self.timeout = timeout
        self.session = session

    def _get(self, params: dict[str, Any], timeout: float | None) -> dict[str, Any]:
        payload = get_json(
            provider=self.name,
            url=self.base_url,
            params={"apikey": self.api_key, "r": "json", **params},
            timeout=resolve_timeout(timeout, self.timeout),
            session=self.session,
        )
        if payload.get("Response") == "False":
            message = str(payload.get("Error") or "")
            if "not found" in message.lower():
                raise ProviderNotFoundError(self.name, message or None)
            raise ProviderTransportError(
                self.name, f"Provider reported an error: {message or 'unknown'}"
            )
        return payload

    def fetch_by_external_id(
        self, external_id: str, *, timeout: float | None = None
    ) -> MovieMetadata:
        # OMDb only knows IMDb ids; anything else is a miss without a request.
        if not is_imdb_id(external_id):
            raise ProviderNotFoundError(self.name, external_id)
        payload = self._get({"i": external_id, "plot": "full"}, timeout)
        return parse_omdb_movie(payload)

    def fetch_by_title(
        self, title: str, year: int | None = None, *, timeout: float | None = None
    ) -> MovieMetadata:
        params: dict[str, Any] = {"t": title, "plot": "full"}
        if year is not None:
            params["y"] = year
        payload = self._get(params, timeout)
        return parse_omdb_movie(payload)

    def search(
        self, query: str, page: int = 1, *, timeout: float | None = None
    ) -> ProviderSearchResult:
        page = min(max(page, 1), OMDB_MAX_PAGE)
        payload = self._get({"s": query, "page": page}, timeout)

        items = payload.get("Search")
        if not isinstance(items, list):
            raise ProviderPayloadError(self.name, "Search payload has no result list.")
        movies = [parse_omdb_search_item(item) for item in items]

        try:
            total_results = int(payload.get("totalResults") or 0)
        except (TypeError, ValueError):
            total_results = len(movies)
        total_pages = min(
            math.ceil(total_results / OMDB_RESULTS_PER_PAGE), OMDB_MAX_PAGE
        )
        return ProviderSearchResult(movies=movies, page=page, total_pages=total_pages)
