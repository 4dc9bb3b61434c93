"""Tests for the build identifier cache."""

from __future__ import annotations

import httpx
import pytest

from app.services.build_id import BuildIdSession, extract_build_id


@pytest.fixture
def anyio_backend() -> str:
    """Force AnyIO tests to run on asyncio without requiring trio."""

    return "asyncio"


class FakeClock:
    def __init__(self, now: float = 1_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def homepage(build_id: str) -> str:
    return (
        '<html><script id="__NEXT_DATA__" type="application/json">'
        f'{{"props":{{"pageProps":{{}}}},"page":"/","buildId":"{build_id}"}}'
        "</script></html>"
    )


def test_extract_build_id_reads_next_data_blob() -> None:
    assert extract_build_id(homepage("Xy_12-ab")) == "Xy_12-ab"
    assert extract_build_id("<html>nothing here</html>") is None
    assert extract_build_id("") is None


@pytest.mark.anyio("asyncio")
async def test_cached_build_id_is_reused_within_ttl() -> None:
    """A second lookup inside the TTL window must not touch the network."""

    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, text=homepage(f"build-{len(requests)}"))

    clock = FakeClock()
    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport, base_url="https://cineby.test") as http_client:
        session = BuildIdSession(http_client, ttl_seconds=3_600, clock=clock)
        first = await session.get_build_id(False)
        clock.now += 3_599
        second = await session.get_build_id(False)

    assert first == "build-1"
    assert second == "build-1"
    assert len(requests) == 1
    assert requests[0].url.path == "/"


@pytest.mark.anyio("asyncio")
async def test_build_id_is_refetched_after_ttl_expires() -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, text=homepage(f"build-{len(requests)}"))

    clock = FakeClock()
    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport, base_url="https://cineby.test") as http_client:
        session = BuildIdSession(http_client, ttl_seconds=3_600, clock=clock)
        await session.get_build_id()
        clock.now += 3_600
        refreshed = await session.get_build_id()

    assert refreshed == "build-2"
    assert len(requests) == 2
    assert session.fetched_at == clock.now


@pytest.mark.anyio("asyncio")
async def test_forced_refresh_failure_keeps_previous_value() -> None:
    """Forced refreshes always hit the network but never discard a good id."""

    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if len(requests) == 1:
            return httpx.Response(200, text=homepage("stable"))
        return httpx.Response(503, text="maintenance")

    clock = FakeClock()
    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport, base_url="https://cineby.test") as http_client:
        session = BuildIdSession(http_client, clock=clock)
        await session.get_build_id()
        fetched_at = session.fetched_at
        clock.now += 10
        forced = await session.get_build_id(True)

    assert forced == "stable"
    assert len(requests) == 2
    assert session.fetched_at == fetched_at


@pytest.mark.anyio("asyncio")
async def test_network_failure_without_prior_value_returns_none() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport, base_url="https://cineby.test") as http_client:
        session = BuildIdSession(http_client)
        assert await session.get_build_id() is None
        assert session.fetched_at is None


@pytest.mark.anyio("asyncio")
async def test_homepage_without_build_id_is_ignored() -> None:
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html><body>Just a moment...</body></html>")

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport, base_url="https://cineby.test") as http_client:
        session = BuildIdSession(http_client)
        assert await session.get_build_id(True) is None


@pytest.mark.anyio("asyncio")
async def test_invalidate_forces_refetch_but_keeps_value() -> None:
    responses = iter([homepage("first"), homepage("second")])

    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text=next(responses))

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport, base_url="https://cineby.test") as http_client:
        session = BuildIdSession(http_client, clock=FakeClock())
        await session.get_build_id()
        session.invalidate()
        assert session.build_id == "first"
        assert session.is_fresh() is False
        assert await session.get_build_id() == "second"


@pytest.mark.anyio("asyncio")
async def test_session_sends_configured_headers() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, text=homepage("abc"))

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport, base_url="https://cineby.test") as http_client:
        session = BuildIdSession(
            http_client, headers={"User-Agent": "Mozilla/5.0 test", "Referer": "https://cineby.test/"}
        )
        await session.prime()

    assert seen[0].headers["user-agent"] == "Mozilla/5.0 test"
    assert seen[0].headers["referer"] == "https://cineby.test/"
