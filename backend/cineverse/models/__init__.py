from .movie import Movie, MovieCreate, MovieMetadata, MovieUpdate

__all__ = [
    "Movie",
    "MovieCreate",
    "MovieMetadata",
    "MovieUpdate",
]
