from dataclasses import dataclass, field
from threading import local
from typing import Any, Protocol, runtime_checkable

import requests
from requests.adapters import HTTPAdapter

from cineverse.exceptions.provider import (
    ProviderNotFoundError,
    ProviderPayloadError,
    ProviderTransportError,
)
from cineverse.metadata.logger import logger
from cineverse.models import MovieMetadata

_thread_local = local()


@dataclass
class ProviderSearchResult:
    movies: list[MovieMetadata] = field(default_factory=list)
    page: int = 1
    total_pages: int = 0


@runtime_checkable
class MovieProvider(Protocol):
    """One source of movie metadata. Each call makes at most one outbound request."""

    name: str

    def fetch_by_external_id(
        self, external_id: str, *, timeout: float | None = None
    ) -> MovieMetadata: ...

    def fetch_by_title(
        self, title: str, year: int | None = None, *, timeout: float | None = None
    ) -> MovieMetadata: ...

    def search(
        self, query: str, page: int = 1, *, timeout: float | None = None
    ) -> ProviderSearchResult: ...


@runtime_checkable
class CatalogProvider(Protocol):
    """A source that can also list movies without a query: popular titles and
    titles of one genre. Optional; the chain skips providers without it.
    """

    name: str

    def popular(
        self, page: int = 1, *, timeout: float | None = None
    ) -> ProviderSearchResult: ...

    def discover(
        self, genre: str, page: int = 1, *, timeout: float | None = None
    ) -> ProviderSearchResult: ...


def get_http_session() -> requests.Session:
    """Return the thread-local requests session shared by the provider adapters.

    No retry adapter is mounted: a failed request falls through to the next
    provider in the chain instead of being repeated here.
    """
    session = getattr(_thread_local, "session", None)
    if session is None:
        session = requests.Session()
        adapter = HTTPAdapter(max_retries=0)
        session.mount("https://", adapter)
        session.mount("http://", adapter)
        _thread_local.session = session
    return session


def get_json(
    *,
    provider: str,
    url: str,
    params: dict[str, Any],
    timeout: float,
    session: requests.Session | None = None,
) -> dict[str, Any]:
    """Perform one GET and return the decoded JSON object.

    Raises
    ------
    ProviderTransportError
        Connection failure, timeout or a non-2xx status other than 404.
    ProviderNotFoundError
        The provider answered with HTTP 404.
    ProviderPayloadError
        The body is not a JSON object.
    """
    http = session or get_http_session()
    try:
        response = http.get(url, params=params, timeout=timeout)
    except requests.RequestException as e:
        logger.info("%s request to %s failed: %s", provider, url, e)
        raise ProviderTransportError(provider, f"Request failed: {e}") from e

    if response.status_code == 404:
        raise ProviderNotFoundError(provider)
    if not 200 <= response.status_code < 300:
        raise ProviderTransportError(
            provider, f"Provider returned status code {response.status_code}."
        )

    try:
        payload = response.json()
    except ValueError as e:
        raise ProviderPayloadError(provider, "Response body is not JSON.") from e
    if not isinstance(payload, dict):
        raise ProviderPayloadError(provider, "Response body is not a JSON object.")
    return payload


def resolve_timeout(timeout: float | None, default: float) -> float:
    if timeout is None:
        return default
    return max(0.001, min(timeout, default))
