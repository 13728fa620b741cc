from typing import Literal

from pydantic import computed_field
from pydantic_core import MultiHostUrl
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
    )
    PROJECT_NAME: str = "Cineverse"
    API_V1_STR: str = "/api/v1"
    ENVIRONMENT: Literal["local", "staging", "production"] = "local"
    DEBUG: bool = False
    LOG_DIR: str = "logs"

    POSTGRES_SERVER: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "cineverse"
    POSTGRES_PASSWORD: str = "cineverse"
    POSTGRES_DB: str = "cineverse"
    DATABASE_URL: str | None = None
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 15
    DB_CONN_MAX_LIFETIME_SECONDS: int = 300

    # Empty means the in-process cache is used instead of Redis.
    REDIS_URL: str | None = None
    REDIS_SOCKET_TIMEOUT_SECONDS: float = 2.0

    OMDB_API_KEY: str | None = None
    OMDB_BASE_URL: str = "http://www.omdbapi.com/"
    TMDB_KEY: str | None = None
    TMDB_BASE_URL: str = "https://api.themoviedb.org/3"
    TMDB_IMAGE_BASE_URL: str = "https://image.tmdb.org/t/p"
    PROVIDER_TIMEOUT_SECONDS: float = 12.0

    MOVIE_RECORD_TTL_HOURS: int = 48
    MOVIE_CACHE_TTL_SECONDS: int = 6 * 60 * 60
    MOVIE_CLEANUP_GRACE_DAYS: int = 30
    RESOLVER_SINGLEFLIGHT: bool = True
    SINGLEFLIGHT_WAIT_TIMEOUT_SECONDS: float = 30.0
    RESOLVE_DEADLINE_SECONDS: float | None = 25.0
    TITLE_MATCH_THRESHOLD: float = 80.0
    SEARCH_PAGE_SIZE: int = 20

    @computed_field  # type: ignore[prop-decorator]
    @property
    def SQLALCHEMY_DATABASE_URI(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return str(
            MultiHostUrl.build(
                scheme="postgresql+psycopg",
                username=self.POSTGRES_USER,
                password=self.POSTGRES_PASSWORD,
                host=self.POSTGRES_SERVER,
                port=self.POSTGRES_PORT,
                path=self.POSTGRES_DB,
            )
        )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def movie_cache_enabled(self) -> bool:
        return bool(self.REDIS_URL)


settings = Settings()  # type: ignore
