import datetime as dt

from rapidfuzz import fuzz

from cineverse.exceptions.provider import ProviderNotFoundError
from cineverse.metadata.config import DATABASE_PROVIDER_NAME, POPULAR_MIN_VOTES
from cineverse.metadata.logger import logger
from cineverse.metadata.providers.base import ProviderSearchResult
from cineverse.metadata.store import SqlMovieStore
from cineverse.models import Movie

_TITLE_CANDIDATE_LIMIT = 50


class DurableStoreProvider:
    """Terminal link of the chain: answers from stored records only.

    Expiry is ignored here; a stale record beats no record once every external
    provider has failed.
    """

    name = DATABASE_PROVIDER_NAME

    def __init__(
        self,
        store: SqlMovieStore,
        *,
        title_match_threshold: float = 80.0,
        search_page_size: int = 20,
    ):
        self.store = store
        self.title_match_threshold = title_match_threshold
        self.search_page_size = search_page_size

    def fetch_by_external_id(
        self, external_id: str, *, timeout: float | None = None
    ) -> Movie:
        movie = self.store.get_by_external_id(external_id)
        if movie is None:
            raise ProviderNotFoundError(self.name, external_id)
        return movie

    def _title_candidates(
        self, title: str, *, include_stale: bool, now: dt.datetime | None
    ) -> list[Movie]:
        candidates = self.store.search(
            title, limit=_TITLE_CANDIDATE_LIMIT, include_stale=include_stale, now=now
        )
        if candidates:
            return candidates
        # Fall back to the longest word so reordered or punctuated titles still match.
        words = sorted(title.split(), key=len, reverse=True)
        if not words or words[0] == title.strip():
            return []
        return self.store.search(
            words[0], limit=_TITLE_CANDIDATE_LIMIT, include_stale=include_stale, now=now
        )

    def match_title(
        self,
        title: str,
        year: int | None = None,
        *,
        include_stale: bool = True,
        now: dt.datetime | None = None,
    ) -> Movie | None:
        """Best fuzzy title match at or above the threshold, preferring the given year."""
        scored: list[tuple[float, Movie]] = []
        candidates = self._title_candidates(title, include_stale=include_stale, now=now)
        for movie in candidates:
            score = fuzz.token_set_ratio(title.lower(), movie.title.lower())
            if score >= self.title_match_threshold:
                scored.append((score, movie))
        if not scored:
            return None

        if year is not None:
            same_year = [
                item
                for item in scored
                if item[1].release_date is not None
                and item[1].release_date.year == year
            ]
            if same_year:
                scored = same_year

        score, best = max(scored, key=lambda item: item[0])
        logger.debug(
            "Stored title match for '%s' -> %s (score=%.1f)",
            title,
            best.external_id,
            score,
        )
        return best

    def fetch_by_title(
        self, title: str, year: int | None = None, *, timeout: float | None = None
    ) -> Movie:
        """
        Best fuzzy match when one clears the threshold, otherwise the first stored
        title hit, preferring the requested year. Fails only when nothing matches.
        """
        movie = self.match_title(title, year)
        if movie is not None:
            return movie
        candidates = self._title_candidates(title, include_stale=True, now=None)
        if not candidates:
            raise ProviderNotFoundError(self.name, title)
        if year is not None:
            for candidate in candidates:
                if (
                    candidate.release_date is not None
                    and candidate.release_date.year == year
                ):
                    return candidate
        return candidates[0]

    def search(
        self, query: str, page: int = 1, *, timeout: float | None = None
    ) -> ProviderSearchResult:
        page = max(page, 1)
        total = self.store.count_search(query, include_stale=True)
        movies = self.store.search(
            query,
            limit=self.search_page_size,
            offset=(page - 1) * self.search_page_size,
            include_stale=True,
        )
        total_pages = -(-total // self.search_page_size)
        return ProviderSearchResult(movies=list(movies), page=page, total_pages=total_pages)

    def _stored_page(self, page: int, **filters) -> ProviderSearchResult:
        page = max(page, 1)
        total = self.store.count_search("", include_stale=True, **filters)
        movies = self.store.search(
            "",
            limit=self.search_page_size,
            offset=(page - 1) * self.search_page_size,
            include_stale=True,
            order_by_rating=True,
            **filters,
        )
        total_pages = -(-total // self.search_page_size)
        return ProviderSearchResult(movies=list(movies), page=page, total_pages=total_pages)

    def popular(
        self, page: int = 1, *, timeout: float | None = None
    ) -> ProviderSearchResult:
        return self._stored_page(page, min_votes=POPULAR_MIN_VOTES)

    def discover(
        self, genre: str, page: int = 1, *, timeout: float | None = None
    ) -> ProviderSearchResult:
        return self._stored_page(page, genre=genre)
