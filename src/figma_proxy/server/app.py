"""ASGI application — the proxied MCP path plus ``/health``."""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from fastapi import Depends, FastAPI, Request, Response

from figma_proxy import __version__
from figma_proxy.core.config import ProxySettings, load_settings
from figma_proxy.proxy.forwarder import ReverseProxy
from figma_proxy.proxy.interceptor import RequestInterceptor
from figma_proxy.proxy.rewriter import ResponseRewriter
from figma_proxy.runtime.coordinator import DesignOpenCoordinator
from figma_proxy.runtime.launcher.os_launcher import OSLauncher
from figma_proxy.server.auth import require_bearer

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable, Callable

    import httpx

    from figma_proxy.runtime.launcher.launcher import Launcher

logger = logging.getLogger(__name__)

PROXY_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD"]


def build_coordinator(settings: ProxySettings, launcher: Launcher | None = None) -> DesignOpenCoordinator:
    """Coordinator wired to an :class:`OSLauncher` (or *launcher*) per *settings*."""
    return DesignOpenCoordinator(
        launcher or OSLauncher(settle_delay=settings.settle_delay),
        lock_timeout=settings.open_lock_timeout,
        scheme=settings.uri_scheme,
    )


def create_app(
    settings: ProxySettings | None = None,
    *,
    client: httpx.AsyncClient | None = None,
    coordinator: DesignOpenCoordinator | None = None,
) -> FastAPI:
    """Assemble the proxy application.

    *client* and *coordinator* are injectable so tests can stand in for the
    upstream server and the desktop launcher.
    """
    settings = settings or load_settings()
    coordinator = coordinator or build_coordinator(settings)
    interceptor = RequestInterceptor(coordinator, open_mode=settings.open_mode)
    proxy = ReverseProxy(
        settings.target_url,
        client=client,
        timeout=settings.upstream_timeout,
        external_url=settings.external_dns_name,
        modify_response=ResponseRewriter(),
    )

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        logger.info("Proxying %s to %s", settings.proxy_path, settings.target_url)
        logger.info("API key authentication %s", "enabled" if settings.auth_enabled else "disabled")
        yield
        await interceptor.drain()
        await proxy.aclose()

    app = FastAPI(
        title="Figma MCP Proxy",
        version=__version__,
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.settings = settings
    app.state.proxy = proxy
    app.state.interceptor = interceptor

    @app.middleware("http")
    async def assign_request_id(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        request_id = str(uuid4())
        request.state.request_id = request_id
        client_host = request.client.host if request.client else "unknown"
        logger.info("[%s] %s %s from %s", request_id, request.method, request.url.path, client_host)
        started = time.perf_counter()
        response = await call_next(request)
        logger.info(
            "[%s] Completed %d in %.3fs",
            request_id,
            response.status_code,
            time.perf_counter() - started,
        )
        return response

    @app.get("/health")
    async def health() -> dict[str, Any]:
        return {"status": "OK", "targetURL": settings.target_url}

    @app.api_route(
        settings.proxy_path,
        methods=PROXY_METHODS,
        dependencies=[Depends(require_bearer(settings.api_key))],
        include_in_schema=False,
    )
    async def forward(request: Request) -> Response:
        request_id: str = request.state.request_id
        body = await request.body()
        context = await interceptor.intercept(body, request_id=request_id)
        return await proxy.serve(request, body=context.body, context=context, request_id=request_id)

    return app
