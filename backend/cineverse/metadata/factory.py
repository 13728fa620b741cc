import datetime as dt
from collections.abc import Callable
from functools import lru_cache

from sqlmodel import Session

from cineverse.core.config import Settings, settings
from cineverse.core.db import new_session
from cineverse.metadata.cache import InMemoryMovieCache, MovieCache, RedisMovieCache
from cineverse.metadata.chain import ProviderChain
from cineverse.metadata.logger import logger
from cineverse.metadata.providers import (
    DurableStoreProvider,
    MovieProvider,
    OmdbProvider,
    TmdbProvider,
)
from cineverse.metadata.resolver import Deadline, MovieResolver
from cineverse.metadata.singleflight import SingleFlight
from cineverse.metadata.store import SqlMovieStore


def build_providers(config: Settings, store: SqlMovieStore) -> list[MovieProvider]:
    """External providers in priority order, then the durable-store terminal."""
    providers: list[MovieProvider] = []
    if config.OMDB_API_KEY:
        providers.append(
            OmdbProvider(
                config.OMDB_API_KEY,
                base_url=config.OMDB_BASE_URL,
                timeout=config.PROVIDER_TIMEOUT_SECONDS,
            )
        )
    else:
        logger.warning("OMDB_API_KEY is not set; OMDb is left out of the provider chain.")
    if config.TMDB_KEY:
        providers.append(
            TmdbProvider(
                config.TMDB_KEY,
                base_url=config.TMDB_BASE_URL,
                image_base_url=config.TMDB_IMAGE_BASE_URL,
                timeout=config.PROVIDER_TIMEOUT_SECONDS,
            )
        )
    else:
        logger.warning("TMDB_KEY is not set; TMDB is left out of the provider chain.")
    providers.append(
        DurableStoreProvider(
            store,
            title_match_threshold=config.TITLE_MATCH_THRESHOLD,
            search_page_size=config.SEARCH_PAGE_SIZE,
        )
    )
    return providers


def build_cache(config: Settings) -> MovieCache:
    if config.movie_cache_enabled:
        return RedisMovieCache(
            redis_url=config.REDIS_URL,
            socket_timeout=config.REDIS_SOCKET_TIMEOUT_SECONDS,
        )
    logger.info("REDIS_URL is not set; using the in-process movie cache.")
    return InMemoryMovieCache()


def build_resolver(
    config: Settings = settings,
    *,
    session_factory: Callable[[], Session] = new_session,
    cache: MovieCache | None = None,
    providers: list[MovieProvider] | None = None,
) -> MovieResolver:
    store = SqlMovieStore(session_factory)
    record_ttl = dt.timedelta(hours=config.MOVIE_RECORD_TTL_HOURS)
    chain = ProviderChain(
        providers if providers is not None else build_providers(config, store),
        store=store,
        record_ttl=record_ttl,
    )
    singleflight = (
        SingleFlight(wait_timeout=config.SINGLEFLIGHT_WAIT_TIMEOUT_SECONDS)
        if config.RESOLVER_SINGLEFLIGHT
        else None
    )
    return MovieResolver(
        store,
        cache if cache is not None else build_cache(config),
        chain,
        cache_ttl=config.MOVIE_CACHE_TTL_SECONDS,
        record_ttl=record_ttl,
        singleflight=singleflight,
        title_match_threshold=config.TITLE_MATCH_THRESHOLD,
        search_page_size=config.SEARCH_PAGE_SIZE,
    )


@lru_cache(maxsize=1)
def get_default_resolver() -> MovieResolver:
    return build_resolver(settings)


def new_deadline(config: Settings = settings) -> Deadline | None:
    if not config.RESOLVE_DEADLINE_SECONDS:
        return None
    return Deadline(config.RESOLVE_DEADLINE_SECONDS)
