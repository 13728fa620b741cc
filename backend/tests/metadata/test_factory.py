from cineverse.core.config import Settings
from cineverse.metadata.cache import InMemoryMovieCache, RedisMovieCache
from cineverse.metadata.factory import build_resolver, new_deadline
from cineverse.metadata.providers import (
    DurableStoreProvider,
    OmdbProvider,
    TmdbProvider,
)


def _settings(**overrides) -> Settings:
    base = {"OMDB_API_KEY": None, "TMDB_KEY": None, "REDIS_URL": None}
    return Settings(**{**base, **overrides})


def test_keyless_providers_are_left_out(session_factory):
    resolver = build_resolver(_settings(), session_factory=session_factory)

    assert [type(p) for p in resolver.chain.providers] == [DurableStoreProvider]
    assert isinstance(resolver.cache, InMemoryMovieCache)


def test_chain_order_and_configuration(session_factory):
    config = _settings(
        OMDB_API_KEY="omdb-key",
        TMDB_KEY="tmdb-key",
        PROVIDER_TIMEOUT_SECONDS=3.0,
        RESOLVER_SINGLEFLIGHT=False,
    )

    resolver = build_resolver(config, session_factory=session_factory)

    omdb, tmdb, terminal = resolver.chain.providers
    assert isinstance(omdb, OmdbProvider) and omdb.timeout == 3.0
    assert isinstance(tmdb, TmdbProvider) and tmdb.api_key == "tmdb-key"
    assert isinstance(terminal, DurableStoreProvider)
    assert resolver.singleflight is None
    assert resolver.cache_ttl == config.MOVIE_CACHE_TTL_SECONDS


def test_redis_cache_selected_when_url_set(session_factory):
    resolver = build_resolver(
        _settings(REDIS_URL="redis://localhost:6379/0"),
        session_factory=session_factory,
    )

    assert isinstance(resolver.cache, RedisMovieCache)


def test_new_deadline():
    assert new_deadline(_settings(RESOLVE_DEADLINE_SECONDS=None)) is None
    deadline = new_deadline(_settings(RESOLVE_DEADLINE_SECONDS=10.0))
    assert 0 < deadline.remaining() <= 10.0
