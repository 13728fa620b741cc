import datetime as dt
import uuid

from sqlalchemy import JSON, DateTime
from sqlmodel import Column, Field, SQLModel

from cineverse.utils import now_utc_naive

__all__ = [
    "MovieMetadata",
    "MovieCreate",
    "MovieUpdate",
    "Movie",
]


# Shared properties, also the normalized output of a single provider
class MovieMetadata(SQLModel):
    external_id: str = Field(max_length=64)
    title: str
    overview: str | None = None
    release_date: dt.date | None = None
    poster_url: str | None = None
    backdrop_url: str | None = None
    genres: list[str] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
    )
    runtime: int | None = Field(default=None, gt=0)
    vote_average: float | None = Field(default=None, ge=0, le=10)
    vote_count: int | None = Field(default=None, ge=0)
    adult: bool = False
    provider: str | None = None


# Properties to receive on movie creation
class MovieCreate(MovieMetadata):
    cache_expires_at: dt.datetime


# Properties to receive on movie update. external_id is the upsert key and never changes.
class MovieUpdate(SQLModel):
    title: str | None = None
    overview: str | None = None
    release_date: dt.date | None = None
    poster_url: str | None = None
    backdrop_url: str | None = None
    genres: list[str] | None = None
    runtime: int | None = None
    vote_average: float | None = None
    vote_count: int | None = None
    adult: bool | None = None
    provider: str | None = None
    cache_expires_at: dt.datetime | None = None


# Database model, database table inferred from class name
class Movie(MovieMetadata, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    external_id: str = Field(max_length=64, unique=True, index=True)
    # Naive UTC timestamps
    cache_expires_at: dt.datetime = Field(sa_type=DateTime(timezone=False), index=True)
    created_at: dt.datetime = Field(
        default_factory=now_utc_naive, sa_type=DateTime(timezone=False)
    )
    updated_at: dt.datetime = Field(
        default_factory=now_utc_naive, sa_type=DateTime(timezone=False)
    )

    def is_fresh(self, now: dt.datetime) -> bool:
        return self.cache_expires_at > now
