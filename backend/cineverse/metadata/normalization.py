"""Turn raw OMDb and TMDB payloads into ``MovieMetadata``.

Every helper here is total on "unknown" input: the provider sentinels
(``"N/A"``, empty strings, ``0`` for TMDB numbers, missing keys) become ``None``
and never a parsed zero. Only a structurally broken payload raises
``ProviderPayloadError``.
"""

import datetime as dt
import re
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import ValidationError

from cineverse.exceptions.provider import ProviderPayloadError
from cineverse.metadata.config import (
    OMDB_ADULT_RATINGS,
    OMDB_DATE_FORMATS,
    OMDB_PROVIDER_NAME,
    OMDB_UNKNOWN,
    TMDB_BACKDROP_SIZE,
    TMDB_GENRES,
    TMDB_IMAGE_BASE_URL,
    TMDB_POSTER_SIZE,
    TMDB_PROVIDER_NAME,
    YEAR_RE,
    is_imdb_id,
    tmdb_external_id,
)
from cineverse.models import MovieMetadata

_RUNTIME_RE = re.compile(r"(\d+)")
_NON_DIGIT_RE = re.compile(r"[^\d]")


def _clean_text(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    if not stripped or stripped == OMDB_UNKNOWN:
        return None
    return stripped


def parse_runtime(value: Any) -> int | None:
    """Parse ``"148 min"`` (OMDb) or ``148`` (TMDB) into minutes."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    text = _clean_text(value)
    if text is None:
        return None
    match = _RUNTIME_RE.search(text)
    if match is None:
        return None
    minutes = int(match.group(1))
    return minutes if minutes > 0 else None


def parse_vote_count(value: Any) -> int | None:
    """Parse ``"1,234,567"`` into ``1234567``. An integer 0 is TMDB's "no votes yet"."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    text = _clean_text(value)
    if text is None:
        return None
    digits = _NON_DIGIT_RE.sub("", text)
    if not digits:
        return None
    return int(digits)


def parse_rating(value: Any) -> float | None:
    """Parse a 0-10 rating. Zero is TMDB's "no votes yet" and maps to None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        rating = float(value)
    else:
        text = _clean_text(value)
        if text is None:
            return None
        try:
            rating = float(text.split("/")[0])
        except ValueError:
            return None
    if rating <= 0 or rating > 10:
        return None
    return round(rating, 1)


def parse_release_date(value: Any) -> dt.date | None:
    """Accepts ``"31 Mar 1999"``, ``"1999-03-31"`` and a bare year (mapped to Jan 1)."""
    text = _clean_text(value)
    if text is None:
        return None
    for date_format in OMDB_DATE_FORMATS:
        try:
            return dt.datetime.strptime(text, date_format).date()
        except ValueError:
            continue
    match = YEAR_RE.match(text)
    if match is None:
        return None
    return dt.date(int(match.group(1)), 1, 1)


def split_genres(value: str | Iterable[Any] | None) -> list[str]:
    """Trim, drop empties and dedupe (first occurrence wins, case kept)."""
    if value is None:
        return []
    if isinstance(value, str):
        if value.strip() == OMDB_UNKNOWN:
            return []
        parts: Iterable[Any] = value.split(",")
    else:
        parts = value
    genres: list[str] = []
    for part in parts:
        if not isinstance(part, str):
            continue
        genre = part.strip()
        if genre and genre != OMDB_UNKNOWN:
            genres.append(genre)
    return list(dict.fromkeys(genres))


def _require_mapping(payload: Any, provider: str) -> Mapping[str, Any]:
    if not isinstance(payload, Mapping):
        raise ProviderPayloadError(provider, "Payload is not a JSON object.")
    return payload


def _require_text(payload: Mapping[str, Any], key: str, provider: str) -> str:
    value = _clean_text(payload.get(key))
    if value is None:
        raise ProviderPayloadError(provider, f"Payload is missing '{key}'.")
    return value


def _build(provider: str, **fields: Any) -> MovieMetadata:
    try:
        return MovieMetadata(provider=provider, **fields)
    except ValidationError as e:
        raise ProviderPayloadError(provider, f"Payload failed validation: {e}") from e


def _tmdb_image_url(path: Any, size: str, image_base_url: str) -> str | None:
    path_text = _clean_text(path)
    if path_text is None:
        return None
    return f"{image_base_url.rstrip('/')}/{size}/{path_text.lstrip('/')}"


def _tmdb_external_id(payload: Mapping[str, Any]) -> str:
    imdb_id = _clean_text(payload.get("imdb_id"))
    if imdb_id is not None and is_imdb_id(imdb_id):
        return imdb_id
    raw_id = payload.get("id")
    if isinstance(raw_id, bool):
        raise ProviderPayloadError(TMDB_PROVIDER_NAME, "Payload has an invalid 'id'.")
    try:
        tmdb_id = int(raw_id)
    except (TypeError, ValueError) as e:
        raise ProviderPayloadError(
            TMDB_PROVIDER_NAME, "Payload is missing 'id'."
        ) from e
    return tmdb_external_id(tmdb_id)


def parse_omdb_movie(payload: Any) -> MovieMetadata:
    data = _require_mapping(payload, OMDB_PROVIDER_NAME)
    release_date = parse_release_date(data.get("Released")) or parse_release_date(
        data.get("Year")
    )
    rated = _clean_text(data.get("Rated"))
    return _build(
        OMDB_PROVIDER_NAME,
        external_id=_require_text(data, "imdbID", OMDB_PROVIDER_NAME),
        title=_require_text(data, "Title", OMDB_PROVIDER_NAME),
        overview=_clean_text(data.get("Plot")),
        release_date=release_date,
        poster_url=_clean_text(data.get("Poster")),
        genres=split_genres(data.get("Genre")),
        runtime=parse_runtime(data.get("Runtime")),
        vote_average=parse_rating(data.get("imdbRating")),
        vote_count=parse_vote_count(data.get("imdbVotes")),
        adult=rated in OMDB_ADULT_RATINGS,
    )


def parse_omdb_search_item(payload: Any) -> MovieMetadata:
    data = _require_mapping(payload, OMDB_PROVIDER_NAME)
    return _build(
        OMDB_PROVIDER_NAME,
        external_id=_require_text(data, "imdbID", OMDB_PROVIDER_NAME),
        title=_require_text(data, "Title", OMDB_PROVIDER_NAME),
        release_date=parse_release_date(data.get("Year")),
        poster_url=_clean_text(data.get("Poster")),
    )


def parse_tmdb_movie(
    payload: Any, *, image_base_url: str = TMDB_IMAGE_BASE_URL
) -> MovieMetadata:
    data = _require_mapping(payload, TMDB_PROVIDER_NAME)
    raw_genres = data.get("genres")
    genre_names = (
        [genre.get("name") for genre in raw_genres if isinstance(genre, Mapping)]
        if isinstance(raw_genres, list)
        else []
    )
    return _build(
        TMDB_PROVIDER_NAME,
        external_id=_tmdb_external_id(data),
        title=_require_text(data, "title", TMDB_PROVIDER_NAME),
        overview=_clean_text(data.get("overview")),
        release_date=parse_release_date(data.get("release_date")),
        poster_url=_tmdb_image_url(
            data.get("poster_path"), TMDB_POSTER_SIZE, image_base_url
        ),
        backdrop_url=_tmdb_image_url(
            data.get("backdrop_path"), TMDB_BACKDROP_SIZE, image_base_url
        ),
        genres=split_genres(genre_names),
        runtime=parse_runtime(data.get("runtime")),
        vote_average=parse_rating(data.get("vote_average")),
        vote_count=parse_vote_count(data.get("vote_count")),
        adult=data.get("adult") is True,
    )


def parse_tmdb_search_item(
    payload: Any, *, image_base_url: str = TMDB_IMAGE_BASE_URL
) -> MovieMetadata:
    data = _require_mapping(payload, TMDB_PROVIDER_NAME)
    raw_genre_ids = data.get("genre_ids")
    genre_names = (
        [TMDB_GENRES.get(genre_id) for genre_id in raw_genre_ids]
        if isinstance(raw_genre_ids, list)
        else []
    )
    return _build(
        TMDB_PROVIDER_NAME,
        external_id=_tmdb_external_id(data),
        title=_require_text(data, "title", TMDB_PROVIDER_NAME),
        overview=_clean_text(data.get("overview")),
        release_date=parse_release_date(data.get("release_date")),
        poster_url=_tmdb_image_url(
            data.get("poster_path"), TMDB_POSTER_SIZE, image_base_url
        ),
        backdrop_url=_tmdb_image_url(
            data.get("backdrop_path"), TMDB_BACKDROP_SIZE, image_base_url
        ),
        genres=split_genres(genre_names),
        vote_average=parse_rating(data.get("vote_average")),
        vote_count=parse_vote_count(data.get("vote_count")),
        adult=data.get("adult") is True,
    )
