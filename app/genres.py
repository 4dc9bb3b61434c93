"""Static genre lookup shared by movie and TV listings."""

from __future__ import annotations

from typing import Iterable


GENRE_LABELS: dict[int, str] = {
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
    10759: "Action & Adventure",
    10762: "Kids",
    10763: "News",
    10764: "Reality",
    10765: "Sci-Fi & Fantasy",
    10766: "Soap",
    10767: "Talk",
    10768: "War & Politics",
}

MOVIE_GENRE_IDS: tuple[int, ...] = (
    28, 12, 16, 35, 80, 99, 18, 10751, 14, 36,
    27, 10402, 9648, 10749, 878, 10770, 53, 10752, 37,
)
TV_GENRE_IDS: tuple[int, ...] = (
    10759, 16, 35, 80, 99, 18, 10751, 10762, 9648, 10763,
    10764, 10765, 10766, 10767, 10768, 37,
)

_IDS_BY_LABEL = {label.casefold(): genre_id for genre_id, label in GENRE_LABELS.items()}


def project_genres(genre_ids: Iterable[object]) -> list[str]:
    """Map upstream genre ids to labels, dropping ids we do not know."""

    labels: list[str] = []
    for raw in genre_ids:
        try:
            genre_id = int(raw)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            continue
        label = GENRE_LABELS.get(genre_id)
        if label:
            labels.append(label)
    return labels


def genre_options(media_kind: str) -> list[str]:
    """Labels advertised in the manifest genre filter."""

    ids = MOVIE_GENRE_IDS if media_kind == "movie" else TV_GENRE_IDS
    return [GENRE_LABELS[genre_id] for genre_id in ids]


def resolve_genre_id(value: str | None) -> int | None:
    """Accept either a numeric genre id or a display label."""

    if value is None:
        return None
    cleaned = value.strip()
    if not cleaned:
        return None
    if cleaned.isdigit():
        return int(cleaned)
    return _IDS_BY_LABEL.get(cleaned.casefold())
