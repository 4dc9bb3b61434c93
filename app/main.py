"""Entry point for the FastAPI-powered Stremio addon."""

from __future__ import annotations

import asyncio
import logging
from contextlib import AsyncExitStack, asynccontextmanager, suppress
from datetime import datetime, timezone
from typing import Any

import httpx
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import settings
from .services.addon import AddonService
from .services.build_id import BuildIdSession
from .services.cineby import CinebyClient
from .utils import merge_extras, parse_extra, raw_path_segment, strip_json_suffix

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

app: FastAPI


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI):
    exit_stack = AsyncExitStack()
    headers = settings.upstream_headers()
    http_client = await exit_stack.enter_async_context(
        httpx.AsyncClient(
            base_url=settings.base_url,
            timeout=httpx.Timeout(settings.request_timeout_seconds, connect=5.0),
            follow_redirects=True,
        )
    )
    session = BuildIdSession(
        http_client,
        ttl_seconds=settings.build_id_ttl_seconds,
        headers=headers,
    )
    client = CinebyClient(http_client, session, headers=headers)
    fastapi_app.state.addon_service = AddonService(settings, client)

    # Priming runs in the background so startup never waits on the upstream.
    prime_task = asyncio.create_task(session.prime())

    try:
        yield
    finally:  # pragma: no cover - teardown path exercised at runtime
        prime_task.cancel()
        with suppress(asyncio.CancelledError):
            await prime_task
        await exit_stack.aclose()


def create_app() -> FastAPI:
    fastapi_app = FastAPI(
        title=settings.app_name,
        description="Cineby movies and TV shows for Stremio",
        version="1.0.0",
        lifespan=lifespan,
    )

    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    register_routes(fastapi_app)
    return fastapi_app


def get_addon_service(app: FastAPI) -> AddonService:
    service = getattr(app.state, "addon_service", None)
    if not isinstance(service, AddonService):
        raise RuntimeError("Addon service not initialised")
    return service


def register_routes(fastapi_app: FastAPI) -> None:
    async def _catalog_endpoint(
        request: Request,
        content_type: str,
        catalog_id: str,
        extra: str | None = None,
    ) -> JSONResponse:
        service = get_addon_service(fastapi_app)
        if extra is not None:
            extra = raw_path_segment(request.scope, extra)
        extras = merge_extras(parse_extra(extra), request.query_params)
        try:
            payload = await service.get_catalog_payload(
                content_type, strip_json_suffix(catalog_id), extras
            )
        except KeyError as exc:
            raise HTTPException(status_code=404, detail=str(exc.args[0])) from exc
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return JSONResponse(payload)

    @fastapi_app.get("/health")
    async def healthcheck() -> dict[str, Any]:
        service = getattr(fastapi_app.state, "addon_service", None)
        has_build_id = bool(
            isinstance(service, AddonService) and service.client.session.build_id
        )
        return {
            "status": "ok",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "buildId": has_build_id,
        }

    @fastapi_app.get("/manifest.json")
    async def manifest() -> dict[str, Any]:
        return get_addon_service(fastapi_app).manifest()

    @fastapi_app.get("/catalog/{content_type}/{catalog_id}")
    async def catalog(
        request: Request, content_type: str, catalog_id: str
    ) -> JSONResponse:
        return await _catalog_endpoint(request, content_type, catalog_id)

    @fastapi_app.get("/catalog/{content_type}/{catalog_id}/{extra}")
    async def catalog_with_extra(
        request: Request, content_type: str, catalog_id: str, extra: str
    ) -> JSONResponse:
        return await _catalog_endpoint(request, content_type, catalog_id, extra)

    @fastapi_app.get("/meta/{content_type}/{meta_id}")
    async def meta(content_type: str, meta_id: str) -> JSONResponse:
        service = get_addon_service(fastapi_app)
        try:
            payload = await service.get_meta_payload(content_type, meta_id)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return JSONResponse(payload)

    @fastapi_app.get("/stream/{content_type}/{stream_id}")
    async def stream(content_type: str, stream_id: str) -> JSONResponse:
        service = get_addon_service(fastapi_app)
        try:
            payload = await service.get_stream_payload(content_type, stream_id)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return JSONResponse(payload)


app = create_app()


if __name__ == "__main__":  # pragma: no cover - manual execution
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.server_host,
        port=settings.server_port,
        reload=settings.environment == "development",
    )
