"""Cache for the upstream Next.js build identifier."""

from __future__ import annotations

import logging
import re
import time
from typing import Callable, Mapping

import httpx

logger = logging.getLogger(__name__)

BUILD_ID_RE = re.compile(r'"buildId"\s*:\s*"([^"]+)"')


def extract_build_id(document: str) -> str | None:
    """Return the build identifier embedded in the homepage, if any."""

    match = BUILD_ID_RE.search(document or "")
    if not match:
        return None
    return match.group(1)


class BuildIdSession:
    """Owns the build identifier used to reach ``/_next/data`` endpoints.

    The upstream embeds a per-deployment identifier in every page and rejects
    data requests carrying an outdated one. The identifier is reused for
    ``ttl_seconds`` and refetched from the homepage afterwards, or earlier when
    a caller forces a refresh. A failed refresh keeps the previous value.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        *,
        homepage_url: str = "/",
        ttl_seconds: float = 3_600,
        headers: Mapping[str, str] | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._client = http_client
        self._homepage_url = homepage_url
        self._ttl_seconds = ttl_seconds
        self._headers = dict(headers or {})
        self._clock = clock
        self._build_id: str | None = None
        self._fetched_at: float | None = None

    @property
    def build_id(self) -> str | None:
        return self._build_id

    @property
    def fetched_at(self) -> float | None:
        return self._fetched_at

    @property
    def ttl_seconds(self) -> float:
        return self._ttl_seconds

    def is_fresh(self) -> bool:
        if self._build_id is None or self._fetched_at is None:
            return False
        return self._clock() - self._fetched_at < self._ttl_seconds

    def invalidate(self) -> None:
        """Expire the cached identifier without forgetting it."""

        self._fetched_at = None

    async def get_build_id(self, force_refresh: bool = False) -> str | None:
        """Return the current build identifier, refreshing it when stale."""

        if not force_refresh and self.is_fresh():
            return self._build_id

        try:
            response = await self._client.get(self._homepage_url, headers=self._headers)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning(
                "Could not fetch build id, keeping previous value %s: %s",
                self._build_id,
                exc,
            )
            return self._build_id

        build_id = extract_build_id(response.text)
        if build_id is None:
            logger.warning(
                "Homepage did not contain a build id, keeping previous value %s",
                self._build_id,
            )
            return self._build_id

        if build_id != self._build_id:
            logger.info("Fetched build id %s", build_id)
        self._build_id = build_id
        self._fetched_at = self._clock()
        return self._build_id

    async def prime(self) -> None:
        """Warm the cache, typically from a background task at startup."""

        build_id = await self.get_build_id()
        if build_id is None:
            logger.warning("Starting without a build id; data requests will retry it")
