from .movie import (
    count_search_movies,
    create_movie,
    delete_expired_movies,
    get_movie_by_external_id,
    get_movie_by_id,
    search_movies,
    update_movie,
)
