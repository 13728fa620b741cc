from .movie import MovieSearchPage, MovieView
