"""Catalog definitions advertised in the addon manifest."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from .genres import genre_options
from .models import ContentType, media_kind_for

CatalogSource = Literal["trending", "listing"]


@dataclass(frozen=True)
class CatalogDefinition:
    """Describes one catalog row shown in Stremio."""

    key: str
    title: str
    content_type: ContentType
    source: CatalogSource

    @property
    def supports_genre(self) -> bool:
        return self.source == "listing"

    def to_manifest_entry(self) -> dict[str, object]:
        extra: list[dict[str, object]] = [
            {"name": "search", "isRequired": False},
            {"name": "skip", "isRequired": False},
        ]
        if self.supports_genre:
            extra.append(
                {
                    "name": "genre",
                    "isRequired": False,
                    "options": genre_options(media_kind_for(self.content_type)),
                }
            )
        return {
            "type": self.content_type,
            "id": self.key,
            "name": self.title,
            "extra": extra,
        }


CATALOGS: tuple[CatalogDefinition, ...] = (
    CatalogDefinition(
        key="cineby-trending-movies",
        title="Cineby Trending Movies",
        content_type="movie",
        source="trending",
    ),
    CatalogDefinition(
        key="cineby-trending-series",
        title="Cineby Trending TV Shows",
        content_type="series",
        source="trending",
    ),
    CatalogDefinition(
        key="cineby-movies",
        title="Cineby Movies",
        content_type="movie",
        source="listing",
    ),
    CatalogDefinition(
        key="cineby-series",
        title="Cineby Series",
        content_type="series",
        source="listing",
    ),
)


def find_catalog(content_type: str, catalog_id: str) -> CatalogDefinition | None:
    for definition in CATALOGS:
        if definition.key == catalog_id and definition.content_type == content_type:
            return definition
    return None
