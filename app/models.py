"""Pydantic models describing normalised upstream payloads."""

from __future__ import annotations

import logging
import math
from typing import Any, Literal, Mapping

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

ContentType = Literal["movie", "series"]
MediaKind = Literal["movie", "tv"]

ID_PREFIX = "cineby"

POSTER_BASE_URL = "https://image.tmdb.org/t/p/w500"
BACKDROP_BASE_URL = "https://image.tmdb.org/t/p/w780"
STILL_BASE_URL = "https://image.tmdb.org/t/p/w300"


def media_kind_for(content_type: str) -> MediaKind:
    """Translate a Stremio content type into the upstream media kind."""

    return "tv" if content_type == "series" else "movie"


def content_type_for(media_kind: str | None) -> ContentType:
    return "series" if media_kind == "tv" else "movie"


def build_meta_id(upstream_id: str) -> str:
    return f"{ID_PREFIX}:{upstream_id}"


def build_image_url(path: object, base_url: str) -> str:
    """Expand relative TMDB image paths into absolute URLs."""

    if not isinstance(path, str) or not path:
        return ""
    if path.startswith("http"):
        return path
    if path.startswith("/"):
        return f"{base_url}{path}"
    return path


def _first(data: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = data.get(key)
        if value not in (None, "", [], {}):
            return value
    return None


def _normalise_kind(value: object) -> MediaKind | None:
    if not isinstance(value, str):
        return None
    lowered = value.strip().lower()
    if lowered == "movie":
        return "movie"
    if lowered in {"tv", "series", "show"}:
        return "tv"
    return None


def _genre_ids(data: Mapping[str, Any]) -> list[int]:
    raw_ids = _first(data, "genre_ids", "genreIds")
    if raw_ids is None:
        genres = data.get("genres")
        if isinstance(genres, list):
            raw_ids = [entry.get("id") for entry in genres if isinstance(entry, dict)]
    ids: list[int] = []
    for value in raw_ids or []:
        try:
            ids.append(int(value))
        except (TypeError, ValueError):
            continue
    return ids


def _text(value: object) -> str:
    if value is None or isinstance(value, (dict, list)):
        return ""
    return str(value)


def _float_or_none(value: object) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        logger.debug("Ignoring non-numeric rating %r", value)
        return None
    return number if math.isfinite(number) else None


def _runtime(data: Mapping[str, Any]) -> int | None:
    value = data.get("runtime")
    if value in (None, ""):
        episode_runtimes = data.get("episode_run_time")
        if isinstance(episode_runtimes, list) and episode_runtimes:
            value = episode_runtimes[0]
    try:
        return int(value) if value not in (None, "") else None
    except (TypeError, ValueError):
        return None


class MediaItem(BaseModel):
    """Single upstream title, normalised across listing, search and detail payloads."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    media_kind: MediaKind | None = None
    title: str = ""
    poster: str = ""
    background: str = ""
    description: str = ""
    release_date: str = ""
    genre_ids: list[int] = Field(default_factory=list)
    rating: float | None = None
    original_language: str | None = None
    runtime: int | None = None
    seasons: list[dict[str, Any]] = Field(default_factory=list)

    @property
    def meta_id(self) -> str:
        return build_meta_id(self.id)

    @property
    def content_type(self) -> ContentType:
        return content_type_for(self.media_kind)

    @classmethod
    def _from_payload(
        cls, data: object, *, media_kind: MediaKind | None = None
    ) -> "MediaItem | None":
        if not isinstance(data, Mapping):
            return None
        raw_id = data.get("id")
        if raw_id in (None, ""):
            return None

        kind = _normalise_kind(_first(data, "mediaType", "media_type")) or media_kind
        seasons = data.get("seasons")
        payload = {
            "id": str(raw_id),
            "media_kind": kind,
            "title": _text(_first(data, "title", "name", "original_title", "original_name")),
            "poster": build_image_url(
                _first(data, "poster", "poster_path", "image"), POSTER_BASE_URL
            ),
            "background": build_image_url(
                _first(data, "image", "backdrop", "backdrop_path"), BACKDROP_BASE_URL
            ),
            "description": _text(_first(data, "description", "overview")),
            "release_date": _text(
                _first(data, "release_date", "releaseDate", "first_air_date", "firstAirDate")
            ),
            "genre_ids": _genre_ids(data),
            "rating": _float_or_none(_first(data, "rating", "vote_average")),
            "original_language": _text(_first(data, "original_language", "originalLanguage"))
            or None,
            "runtime": _runtime(data),
            "seasons": [
                season for season in seasons if isinstance(season, dict)
            ]
            if isinstance(seasons, list)
            else [],
        }
        return cls.model_validate(payload)

    @classmethod
    def from_listing(cls, data: object, *, media_kind: MediaKind) -> "MediaItem | None":
        """Adapt an entry from the movie/tv listing pages.

        Listing pages are already scoped to one media kind, so entries often
        omit ``mediaType`` entirely.
        """

        return cls._from_payload(data, media_kind=media_kind)

    @classmethod
    def from_trending(cls, data: object) -> "MediaItem | None":
        """Adapt a homepage trending entry, which always carries ``mediaType``."""

        return cls._from_payload(data)

    @classmethod
    def from_search(cls, data: object) -> "MediaItem | None":
        return cls._from_payload(data)

    @classmethod
    def from_detail(cls, data: object, *, media_kind: MediaKind) -> "MediaItem | None":
        """Adapt a detail page payload.

        The route already tells us the media kind; detail payloads are trusted
        to describe the requested title even when they report their own kind.
        """

        item = cls._from_payload(data, media_kind=media_kind)
        if item is not None and item.media_kind != media_kind:
            item = item.model_copy(update={"media_kind": media_kind})
        return item


class StreamSource(BaseModel):
    """Playable source reported by the stream endpoint."""

    url: str
    quality: str | None = None
    container: str | None = None

    @classmethod
    def from_payload(cls, data: object) -> "StreamSource | None":
        if not isinstance(data, Mapping):
            return None
        url = _first(data, "url", "file")
        if not isinstance(url, str) or not url.strip():
            return None
        quality = data.get("quality")
        container = data.get("type")
        return cls(
            url=url.strip(),
            quality=str(quality) if quality not in (None, "") else None,
            container=str(container).lower() if container not in (None, "") else None,
        )
