"""Stremio resource handlers built on top of the Cineby client."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from ..catalogs import CATALOGS, CatalogDefinition, find_catalog
from ..config import Settings
from ..genres import resolve_genre_id
from ..models import ID_PREFIX, MediaItem, build_meta_id, media_kind_for
from ..projection import project_detail_meta, project_meta, project_streams
from ..utils import page_from_skip, parse_content_ref, parse_skip
from .cineby import CinebyClient

logger = logging.getLogger(__name__)

SUPPORTED_TYPES = frozenset({"movie", "series"})
MANIFEST_ID = "org.cineby.addon"
MANIFEST_VERSION = "1.0.0"


def _ensure_supported(content_type: str) -> None:
    if content_type not in SUPPORTED_TYPES:
        raise ValueError("Unsupported content type")


class AddonService:
    """Resolve catalog, meta and stream requests into Stremio payloads.

    Upstream failures never escape: they degrade to empty payloads. Invalid
    inbound parameters raise ``ValueError`` (bad input) or ``KeyError``
    (unknown catalog) for the HTTP layer to translate.
    """

    def __init__(self, settings: Settings, client: CinebyClient) -> None:
        self._settings = settings
        self._client = client

    @property
    def client(self) -> CinebyClient:
        return self._client

    def manifest(self) -> dict[str, Any]:
        return {
            "id": MANIFEST_ID,
            "version": MANIFEST_VERSION,
            "name": f"{self._settings.app_name} Addon",
            "description": "Access Cineby movies and TV shows through Stremio",
            "logo": f"{self._settings.base_url}/icon-192x192.png",
            "resources": ["catalog", "meta", "stream"],
            "types": sorted(SUPPORTED_TYPES),
            "catalogs": [definition.to_manifest_entry() for definition in CATALOGS],
            "idPrefixes": [f"{ID_PREFIX}:"],
        }

    async def get_catalog_payload(
        self,
        content_type: str,
        catalog_id: str,
        extras: Mapping[str, str] | None = None,
    ) -> dict[str, Any]:
        _ensure_supported(content_type)
        definition = find_catalog(content_type, catalog_id)
        if definition is None:
            raise KeyError(f"Unknown catalog {content_type}/{catalog_id}")

        extras = extras or {}
        try:
            items = await self._catalog_items(definition, extras)
        except Exception:  # pragma: no cover - defensive logging branch
            logger.exception("Catalog %s failed", catalog_id)
            items = []

        metas = [meta for meta in map(project_meta, items) if meta]
        return {"metas": metas}

    async def _catalog_items(
        self, definition: CatalogDefinition, extras: Mapping[str, str]
    ) -> list[MediaItem]:
        page_size = self._settings.catalog_page_size
        skip = parse_skip(extras.get("skip"))
        page = page_from_skip(skip, page_size)
        media_kind = media_kind_for(definition.content_type)

        query = (extras.get("search") or "").strip()
        if query:
            results = await self._client.search(query, page)
            return [item for item in results if item.media_kind == media_kind]

        if definition.source == "trending":
            trending = await self._client.get_trending()
            seen: set[str] = set()
            unique: list[MediaItem] = []
            for item in trending:
                if item.media_kind != media_kind or item.id in seen:
                    continue
                seen.add(item.id)
                unique.append(item)
            return unique[skip : skip + page_size]

        raw_genre = extras.get("genre")
        genre = resolve_genre_id(raw_genre)
        if raw_genre and genre is None:
            logger.info("Ignoring catalog request for unknown genre %r", raw_genre)
            return []
        if media_kind == "movie":
            return await self._client.get_movies(page, genre)
        return await self._client.get_tv_shows(page, genre)

    async def get_meta_payload(self, content_type: str, raw_id: str) -> dict[str, Any]:
        _ensure_supported(content_type)
        ref = parse_content_ref(raw_id)
        media_kind = media_kind_for(content_type)

        try:
            item = await self._client.get_details(ref.content_id, media_kind)
        except Exception:  # pragma: no cover - defensive logging branch
            logger.exception("Meta lookup failed for %s", raw_id)
            item = None
        if item is None:
            return {"meta": {}}
        return {"meta": project_detail_meta(item, build_meta_id(ref.content_id))}

    async def get_stream_payload(self, content_type: str, raw_id: str) -> dict[str, Any]:
        _ensure_supported(content_type)
        ref = parse_content_ref(raw_id)
        media_kind = media_kind_for(content_type)

        try:
            sources = await self._client.get_stream_sources(
                ref.content_id, media_kind, ref.season, ref.episode
            )
        except Exception:  # pragma: no cover - defensive logging branch
            logger.exception("Stream lookup failed for %s", raw_id)
            sources = []
        return {"streams": project_streams(sources, addon_name=self._settings.app_name)}
