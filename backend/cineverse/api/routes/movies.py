from fastapi import APIRouter, Query

from cineverse.api.deps import DeadlineDep, ResolverDep
from cineverse.schemas.movie import MovieSearchPage, MovieView
from cineverse.services import movies as movies_service

router = APIRouter(prefix="/movies", tags=["movies"])


@router.get("/", response_model=MovieSearchPage)
def search_movies(
    resolver: ResolverDep,
    deadline: DeadlineDep,
    query: str = Query(..., min_length=1, max_length=200),
    page: int = Query(1, ge=1, le=500),
) -> MovieSearchPage:
    return movies_service.search_movies(
        resolver=resolver,
        query=query,
        page=page,
        deadline=deadline,
    )


@router.get("/popular", response_model=MovieSearchPage)
def read_popular_movies(
    resolver: ResolverDep,
    deadline: DeadlineDep,
    page: int = Query(1, ge=1, le=500),
) -> MovieSearchPage:
    return movies_service.popular_movies(
        resolver=resolver,
        page=page,
        deadline=deadline,
    )


@router.get("/genre/{genre}", response_model=MovieSearchPage)
def read_movies_by_genre(
    *,
    resolver: ResolverDep,
    deadline: DeadlineDep,
    genre: str,
    page: int = Query(1, ge=1, le=500),
) -> MovieSearchPage:
    return movies_service.movies_by_genre(
        resolver=resolver,
        genre=genre,
        page=page,
        deadline=deadline,
    )


# KEEP AT THE BOTTOM
@router.get("/{identifier}", response_model=MovieView)
def read_movie(
    *,
    resolver: ResolverDep,
    deadline: DeadlineDep,
    identifier: str,
) -> MovieView:
    return movies_service.resolve_movie(
        resolver=resolver,
        identifier=identifier,
        deadline=deadline,
    )
