"""Projection of normalised upstream data into Stremio response objects."""

from __future__ import annotations

from typing import Any, Iterable, Mapping

from .genres import project_genres
from .models import STILL_BASE_URL, MediaItem, StreamSource, build_image_url

QUALITY_RANK: dict[str, int] = {"1080p": 4, "720p": 3, "480p": 2, "Auto": 1}
DEFAULT_QUALITY = "Auto"


def quality_rank(label: str | None) -> int:
    return QUALITY_RANK.get(label or DEFAULT_QUALITY, 0)


def _format_rating(value: float | None) -> str | None:
    if not value:
        return None
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def project_meta(item: MediaItem | None) -> dict[str, Any] | None:
    """Return the catalog meta for ``item`` or ``None`` when it has no id."""

    if item is None or not item.id:
        return None

    meta: dict[str, Any] = {
        "id": item.meta_id,
        "type": item.content_type,
        "name": item.title,
        "poster": item.poster,
        "background": item.background,
        "description": item.description,
        "releaseInfo": item.release_date,
        "genres": project_genres(item.genre_ids),
    }
    rating = _format_rating(item.rating)
    if rating is not None:
        meta["imdbRating"] = rating
    if item.original_language:
        meta["language"] = item.original_language
    return meta


def project_detail_meta(item: MediaItem, meta_id: str) -> dict[str, Any]:
    """Build the full meta for the meta resource, including series episodes."""

    meta = project_meta(item) or {}
    meta["id"] = meta_id
    if item.runtime:
        meta["runtime"] = f"{item.runtime} min"
    if item.content_type == "series":
        meta["videos"] = project_episode_videos(meta_id, item.seasons)
    return meta


def _as_int(value: object) -> int | None:
    if isinstance(value, bool):
        return None
    try:
        return int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None


def project_episode_videos(
    meta_id: str, seasons: Iterable[Mapping[str, Any]]
) -> list[dict[str, Any]]:
    """Flatten seasons into Stremio video entries.

    Episodes without a number or a name are skipped.
    """

    videos: list[dict[str, Any]] = []
    for season in seasons:
        if not isinstance(season, Mapping):
            continue
        season_number = _as_int(season.get("season_number", season.get("season")))
        if season_number is None:
            continue
        for episode in season.get("episodes") or []:
            if not isinstance(episode, Mapping):
                continue
            episode_number = _as_int(
                episode.get("episode_number", episode.get("episode"))
            )
            name = episode.get("name")
            if episode_number is None or not name:
                continue
            video: dict[str, Any] = {
                "id": f"{meta_id}:{season_number}:{episode_number}",
                "title": f"S{season_number:02d}E{episode_number:02d} - {name}",
                "season": season_number,
                "episode": episode_number,
            }
            if episode.get("overview"):
                video["overview"] = episode["overview"]
            thumbnail = build_image_url(episode.get("still_path"), STILL_BASE_URL)
            if thumbnail:
                video["thumbnail"] = thumbnail
            if episode.get("air_date"):
                video["released"] = episode["air_date"]
            videos.append(video)
    return videos


def project_streams(
    sources: Iterable[object], *, addon_name: str = "Cineby"
) -> list[dict[str, Any]]:
    """Map upstream sources to Stremio streams, best quality first."""

    parsed = [
        source
        for source in (
            entry if isinstance(entry, StreamSource) else StreamSource.from_payload(entry)
            for entry in sources
        )
        if source is not None
    ]
    # Server numbers follow upstream order, not the sorted order.
    servers = {id(source): index for index, source in enumerate(parsed, start=1)}
    streams: list[dict[str, Any]] = []
    for source in sort_by_quality(parsed):
        quality = source.quality or DEFAULT_QUALITY
        streams.append(
            {
                "name": addon_name,
                "title": f"{quality} - Server {servers[id(source)]}",
                "url": source.url,
                "behaviorHints": {"notWebReady": source.container != "mp4"},
            }
        )
    return streams


def sort_by_quality(sources: Iterable[StreamSource]) -> list[StreamSource]:
    """Order sources best quality first; equal ranks keep their input order."""

    return sorted(sources, key=lambda source: quality_rank(source.quality), reverse=True)
