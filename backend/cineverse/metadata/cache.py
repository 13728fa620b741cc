import json
import time
from collections.abc import Callable
from threading import Lock
from typing import Protocol

import redis
from pydantic import ValidationError

from cineverse.metadata.logger import logger
from cineverse.models import Movie


class MovieCache(Protocol):
    """Volatile key/value tier in front of the durable store.

    ``get`` returns ``(hit, value)``; a miss is never an error.
    """

    def get(self, key: str) -> tuple[bool, bytes | None]: ...

    def set(self, key: str, value: bytes, ttl: int) -> None: ...

    def delete(self, key: str) -> None: ...


def serialize_movie(movie: Movie) -> bytes:
    return json.dumps(movie.model_dump(mode="json")).encode("utf-8")


def deserialize_movie(raw: bytes) -> Movie | None:
    """Decode a cached movie. Corrupt entries decode to None."""
    try:
        return Movie.model_validate(json.loads(raw))
    except (ValueError, ValidationError) as e:
        logger.warning("Discarding undecodable cache entry: %s", e)
        return None


class RedisMovieCache:
    """Redis-backed cache; connection problems degrade to a miss."""

    def __init__(
        self,
        *,
        redis_url: str | None = None,
        client: redis.Redis | None = None,
        socket_timeout: float = 2.0,
    ):
        if client is None:
            if not redis_url:
                raise ValueError("RedisMovieCache needs a redis_url or a client.")
            client = redis.from_url(
                redis_url,
                socket_connect_timeout=socket_timeout,
                socket_timeout=socket_timeout,
            )
        self._client = client

    def get(self, key: str) -> tuple[bool, bytes | None]:
        try:
            raw = self._client.get(key)
        except redis.RedisError as e:
            logger.warning("Redis GET %s failed, treating as miss: %s", key, e)
            return False, None
        if raw is None:
            return False, None
        if isinstance(raw, str):
            raw = raw.encode("utf-8")
        return True, raw

    def set(self, key: str, value: bytes, ttl: int) -> None:
        try:
            self._client.setex(key, max(int(ttl), 1), value)
        except redis.RedisError as e:
            logger.warning("Redis SETEX %s failed, skipping cache write: %s", key, e)

    def delete(self, key: str) -> None:
        try:
            self._client.delete(key)
        except redis.RedisError as e:
            logger.warning("Redis DEL %s failed: %s", key, e)


class InMemoryMovieCache:
    """Process-local cache with the same contract, for local runs and tests."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._lock = Lock()
        self._entries: dict[str, tuple[float, bytes]] = {}

    def get(self, key: str) -> tuple[bool, bytes | None]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return False, None
            expires_at, value = entry
            if expires_at <= self._clock():
                del self._entries[key]
                return False, None
            return True, value

    def set(self, key: str, value: bytes, ttl: int) -> None:
        with self._lock:
            self._entries[key] = (self._clock() + max(int(ttl), 1), value)

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
