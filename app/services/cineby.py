"""Client for the Cineby website's internal data endpoints."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Mapping

import httpx

from ..models import MediaItem, MediaKind, StreamSource
from .build_id import BuildIdSession

logger = logging.getLogger(__name__)

STALE_BUILD_ID_STATUSES = frozenset({404, 500})


@dataclass(slots=True)
class UpstreamResponse:
    """Outcome of a single upstream GET.

    ``status_code`` is ``None`` when no HTTP response was received at all
    (timeouts, connection failures).
    """

    status_code: int | None
    payload: Any = None

    @property
    def ok(self) -> bool:
        return self.status_code is not None and 200 <= self.status_code < 300


class RetryPhase(str, Enum):
    COLD = "cold"
    WARM = "warm"
    RETRYING = "retrying"
    FAILED = "failed"
    SUCCEEDED = "succeeded"


@dataclass(slots=True)
class RetryOutcome:
    """Final state of a build-id scoped operation."""

    phase: RetryPhase
    attempts: int = 0
    refreshed: bool = False
    status_code: int | None = None
    payload: Any = None

    @property
    def succeeded(self) -> bool:
        return self.phase is RetryPhase.SUCCEEDED


Operation = Callable[[str], Awaitable[UpstreamResponse]]


def _page_props(payload: Any) -> dict[str, Any]:
    if not isinstance(payload, dict):
        return {}
    props = payload.get("pageProps")
    if props is None and isinstance(payload.get("props"), dict):
        props = payload["props"].get("pageProps")
    return props if isinstance(props, dict) else {}


def _listing(props: Mapping[str, Any], key: str) -> list[Any]:
    """Return a listing that may be a bare list or wrapped in ``results``."""

    value = props.get(key)
    if isinstance(value, dict):
        value = value.get("results")
    if not isinstance(value, list):
        if value is not None:
            logger.warning("Unexpected %s payload shape: %s", key, type(value).__name__)
        return []
    return value


class CinebyClient:
    """Thin wrapper around the Cineby site's Next.js data and stream APIs."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        session: BuildIdSession,
        *,
        headers: Mapping[str, str] | None = None,
        locale: str = "en",
    ) -> None:
        self._client = http_client
        self._session = session
        self._headers = dict(headers or {})
        self._locale = locale

    @property
    def session(self) -> BuildIdSession:
        return self._session

    async def fetch(
        self, path: str, params: Mapping[str, Any] | None = None
    ) -> UpstreamResponse:
        """Issue a GET and report its status without raising."""

        query = {key: value for key, value in (params or {}).items() if value is not None}
        try:
            response = await self._client.get(path, params=query, headers=self._headers)
        except httpx.HTTPError as exc:
            logger.warning("Cineby request to %s failed: %s", path, exc)
            return UpstreamResponse(status_code=None)

        if response.status_code >= 500:
            logger.warning(
                "Cineby request to %s returned %s", path, response.status_code
            )
            return UpstreamResponse(status_code=response.status_code)
        if response.status_code >= 400:
            logger.info("Cineby request to %s returned %s", path, response.status_code)
            return UpstreamResponse(status_code=response.status_code)

        try:
            payload = response.json()
        except ValueError:
            logger.warning("Unexpected non-JSON Cineby response for %s", path)
            payload = None
        return UpstreamResponse(status_code=response.status_code, payload=payload)

    async def request(
        self, path: str, params: Mapping[str, Any] | None = None
    ) -> Any | None:
        """Return the parsed body of a successful GET, otherwise ``None``."""

        response = await self.fetch(path, params)
        if not response.ok:
            return None
        return response.payload

    async def run_with_build_id(self, operation: Operation) -> RetryOutcome:
        """Run ``operation`` with the current build id, refreshing it once if stale."""

        outcome = RetryOutcome(phase=RetryPhase.COLD)
        build_id = await self._session.get_build_id(False)

        while True:
            if outcome.phase is RetryPhase.COLD:
                if build_id is None:
                    logger.warning("No build id available; skipping data request")
                    outcome.phase = RetryPhase.FAILED
                    continue
                outcome.phase = RetryPhase.WARM
            elif outcome.phase in (RetryPhase.WARM, RetryPhase.RETRYING):
                # COLD and the refresh step only move here with a build id in hand.
                assert build_id is not None
                response = await operation(build_id)
                outcome.attempts += 1
                outcome.status_code = response.status_code
                if response.ok:
                    outcome.payload = response.payload
                    outcome.phase = RetryPhase.SUCCEEDED
                elif (
                    outcome.phase is RetryPhase.WARM
                    and response.status_code in STALE_BUILD_ID_STATUSES
                ):
                    logger.info(
                        "Build id %s looks stale (status %s), refreshing",
                        build_id,
                        response.status_code,
                    )
                    build_id = await self._session.get_build_id(True)
                    outcome.refreshed = True
                    outcome.phase = (
                        RetryPhase.RETRYING if build_id is not None else RetryPhase.FAILED
                    )
                else:
                    if outcome.phase is RetryPhase.RETRYING:
                        logger.warning(
                            "Retry after build id refresh failed with status %s",
                            response.status_code,
                        )
                    else:
                        logger.warning(
                            "Cineby data request failed with status %s",
                            response.status_code,
                        )
                    outcome.phase = RetryPhase.FAILED
            else:
                return outcome

    async def with_build_id(self, operation: Operation) -> Any | None:
        outcome = await self.run_with_build_id(operation)
        return outcome.payload if outcome.succeeded else None

    def _data_path(self, build_id: str, page: str) -> str:
        suffix = f"/{page}" if page else ""
        return f"/_next/data/{build_id}/{self._locale}{suffix}.json"

    async def _page_props_for(
        self, page: str, params: Mapping[str, Any] | None = None
    ) -> dict[str, Any] | None:
        async def operation(build_id: str) -> UpstreamResponse:
            return await self.fetch(self._data_path(build_id, page), params)

        payload = await self.with_build_id(operation)
        if payload is None:
            return None
        return _page_props(payload)

    async def get_trending(self) -> list[MediaItem]:
        props = await self._page_props_for("")
        entries = _listing(props or {}, "trending")
        return [item for item in map(MediaItem.from_trending, entries) if item]

    async def search(self, query: str, page: int = 1) -> list[MediaItem]:
        props = await self._page_props_for("search", {"q": query, "page": page})
        entries = _listing(props or {}, "results")
        return [item for item in map(MediaItem.from_search, entries) if item]

    async def get_movies(self, page: int = 1, genre: int | None = None) -> list[MediaItem]:
        props = await self._page_props_for("movie", {"page": page, "genre": genre})
        return [
            item
            for item in (
                MediaItem.from_listing(entry, media_kind="movie")
                for entry in _listing(props or {}, "movies")
            )
            if item
        ]

    async def get_tv_shows(
        self, page: int = 1, genre: int | None = None
    ) -> list[MediaItem]:
        props = await self._page_props_for("tv", {"page": page, "genre": genre})
        return [
            item
            for item in (
                MediaItem.from_listing(entry, media_kind="tv")
                for entry in _listing(props or {}, "shows")
            )
            if item
        ]

    async def get_details(self, content_id: str, media_kind: MediaKind) -> MediaItem | None:
        props = await self._page_props_for(f"{media_kind}/{content_id}")
        if not props:
            return None
        details = props.get("details")
        if not isinstance(details, dict):
            details = props
        item = MediaItem.from_detail(details, media_kind=media_kind)
        if item is None:
            logger.warning("Detail payload for %s %s had no usable item", media_kind, content_id)
        return item

    async def get_stream_sources(
        self,
        content_id: str,
        media_kind: MediaKind,
        season: int | None = None,
        episode: int | None = None,
    ) -> list[StreamSource]:
        """Fetch playable sources; this endpoint is not build-id scoped."""

        path = f"/api/v2/{media_kind}/{content_id}"
        if media_kind == "tv" and season is not None and episode is not None:
            path = f"{path}/{season}/{episode}"

        payload = await self.request(path)
        if not isinstance(payload, dict):
            return []
        raw_sources = payload.get("sources") or payload.get("streams") or []
        if not isinstance(raw_sources, list):
            logger.warning("Unexpected stream sources shape for %s", path)
            return []
        return [
            source
            for source in map(StreamSource.from_payload, raw_sources)
            if source is not None
        ]
