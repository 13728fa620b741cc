"""Provider-level constants shared by the adapters and the normalizer."""

import re

OMDB_PROVIDER_NAME = "OMDb"
TMDB_PROVIDER_NAME = "TMDB"
DATABASE_PROVIDER_NAME = "database"

# OMDb reports unknown values with this literal instead of omitting the field.
OMDB_UNKNOWN = "N/A"
OMDB_RESULTS_PER_PAGE = 10
OMDB_MAX_PAGE = 100
OMDB_ADULT_RATINGS = frozenset({"R", "NC-17"})
OMDB_DATE_FORMATS = ("%d %b %Y", "%Y-%m-%d")

TMDB_MAX_PAGE = 500
TMDB_IMAGE_BASE_URL = "https://image.tmdb.org/t/p"
TMDB_POSTER_SIZE = "w500"
TMDB_BACKDROP_SIZE = "w1280"
TMDB_EXTERNAL_ID_PREFIX = "tmdb:"

IMDB_ID_RE = re.compile(r"^tt\d{5,10}$")
TMDB_ID_RE = re.compile(r"^tmdb:(\d+)$")
YEAR_RE = re.compile(r"(\d{4})")

CACHE_KEY_PREFIX = "movie:"

# Stored rows count as popular above this many votes; a local popular page needs
# at least POPULAR_LOCAL_MINIMUM of them before the catalog providers are skipped.
POPULAR_MIN_VOTES = 100
POPULAR_LOCAL_MINIMUM = 10

# Static TMDB genre list, so search hits resolve genre names without an extra request.
TMDB_GENRES: dict[int, str] = {
    28: "Action",
    12: "Adventure",
    16: "Animation",
    35: "Comedy",
    80: "Crime",
    99: "Documentary",
    18: "Drama",
    10751: "Family",
    14: "Fantasy",
    36: "History",
    27: "Horror",
    10402: "Music",
    9648: "Mystery",
    10749: "Romance",
    878: "Science Fiction",
    10770: "TV Movie",
    53: "Thriller",
    10752: "War",
    37: "Western",
}


def is_imdb_id(value: str) -> bool:
    return bool(IMDB_ID_RE.match(value))


def tmdb_external_id(tmdb_id: int) -> str:
    return f"{TMDB_EXTERNAL_ID_PREFIX}{tmdb_id}"


def parse_tmdb_external_id(value: str) -> int | None:
    match = TMDB_ID_RE.match(value)
    if match is None:
        return None
    return int(match.group(1))


def cache_key(external_id: str) -> str:
    return f"{CACHE_KEY_PREFIX}{external_id}"


def tmdb_genre_id(name: str) -> int | None:
    """Case-insensitive reverse lookup in ``TMDB_GENRES``."""
    wanted = name.strip().casefold()
    for genre_id, genre_name in TMDB_GENRES.items():
        if genre_name.casefold() == wanted:
            return genre_id
    return None
