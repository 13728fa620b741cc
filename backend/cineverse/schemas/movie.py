import datetime as dt
from uuid import UUID

from sqlmodel import SQLModel

__all__ = [
    "MovieView",
    "MovieSearchPage",
]


class MovieView(SQLModel):
    # None for search hits that came straight from a provider and were not stored
    id: UUID | None = None
    external_id: str
    title: str
    overview: str | None = None
    release_date: dt.date | None = None
    poster_url: str | None = None
    backdrop_url: str | None = None
    genres: list[str] = []
    runtime: int | None = None
    vote_average: float | None = None
    vote_count: int | None = None
    adult: bool = False


class MovieSearchPage(SQLModel):
    movies: list[MovieView]
    page: int
    total_pages: int
