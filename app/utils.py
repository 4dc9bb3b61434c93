"""Utility helpers for parsing Stremio request parameters."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping
from urllib.parse import quote, unquote

from .models import ID_PREFIX


@dataclass(frozen=True, slots=True)
class ContentRef:
    """Parsed ``cineby:<id>[:<season>:<episode>]`` identifier."""

    content_id: str
    season: int | None = None
    episode: int | None = None


def strip_json_suffix(value: str) -> str:
    if value.endswith(".json"):
        return value[: -len(".json")]
    return value


def page_from_skip(skip: int, page_size: int = 20) -> int:
    """Translate a Stremio ``skip`` offset into a 1-based upstream page."""

    return max(skip, 0) // page_size + 1


def parse_skip(value: object) -> int:
    try:
        skip = int(str(value))
    except (TypeError, ValueError):
        return 0
    return max(skip, 0)


def parse_extra(segment: str | None) -> dict[str, str]:
    """Parse a still percent-encoded ``search=foo&skip=20`` path segment.

    Values are unquoted exactly once; ``+`` stays literal since this is a
    path segment, not a form body.
    """

    if not segment:
        return {}
    extras: dict[str, str] = {}
    for pair in strip_json_suffix(segment).split("&"):
        key, _, value = pair.partition("=")
        key = unquote(key)
        value = unquote(value)
        if key and value:
            extras[key] = value
    return extras


def raw_path_segment(scope: Mapping[str, Any], decoded: str | None) -> str | None:
    """Return the last path segment before percent-decoding.

    Falls back to re-quoting ``decoded`` when the server does not provide
    ``raw_path``.
    """

    raw_path = scope.get("raw_path")
    if isinstance(raw_path, (bytes, bytearray)) and raw_path:
        path = bytes(raw_path).decode("latin-1").split("?", 1)[0]
        return path.rstrip("/").rsplit("/", 1)[-1]
    if decoded is None:
        return None
    return quote(decoded, safe="=&")


def merge_extras(
    path_extra: Mapping[str, str], query: Mapping[str, str]
) -> dict[str, str]:
    """Combine query-string extras with path extras, the path taking precedence."""

    merged = {key: value for key, value in query.items() if value}
    merged.update(path_extra)
    return merged


def parse_content_ref(raw_id: str) -> ContentRef:
    """Split a namespaced meta/stream id, raising ``ValueError`` when malformed."""

    parts = unquote(strip_json_suffix(raw_id)).split(":")
    if len(parts) < 2 or parts[0] != ID_PREFIX or not parts[1]:
        raise ValueError(f"Expected an id of the form {ID_PREFIX}:<id>")
    content_id = parts[1]
    if len(parts) == 2:
        return ContentRef(content_id=content_id)
    if len(parts) != 4:
        raise ValueError("Episode ids must look like cineby:<id>:<season>:<episode>")
    try:
        season = int(parts[2])
        episode = int(parts[3])
    except ValueError as exc:
        raise ValueError("Season and episode must be integers") from exc
    return ContentRef(content_id=content_id, season=season, episode=episode)
