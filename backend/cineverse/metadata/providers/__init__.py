from .base import MovieProvider, ProviderSearchResult, get_http_session
from .database import DurableStoreProvider
from .omdb import OmdbProvider
from .tmdb import TmdbProvider

__all__ = [
    "MovieProvider",
    "ProviderSearchResult",
    "get_http_session",
    "DurableStoreProvider",
    "OmdbProvider",
    "TmdbProvider",
]
