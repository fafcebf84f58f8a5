"""ReverseProxy — single-host forwarding core built on ``httpx``.

The proxy exposes the three hook roles a reverse proxy usually has:

- **director** — mutates the :class:`OutboundRequest` before it is sent;
- **modify_response** — inspects or replaces the :class:`UpstreamResponse`
  before it is relayed;
- **error_handler** — turns transport and rewrite failures into a response
  (``502 Proxy error: ...`` by default).

Each request carries its own ``context`` object from the director through to
``modify_response``, so per-request state never lives in shared structures.
Responses whose body nobody read are streamed through untouched, which keeps
long-lived SSE streams live.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

import httpx
from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response, StreamingResponse

from figma_proxy.protocols.errors import ProxyError, UpstreamError

logger = logging.getLogger(__name__)

HOP_BY_HOP_HEADERS = frozenset(
    {
        "connection",
        "keep-alive",
        "proxy-authenticate",
        "proxy-authorization",
        "proxy-connection",
        "te",
        "trailer",
        "transfer-encoding",
        "upgrade",
    }
)
_BODY_FRAMING_HEADERS = ("content-length", "content-encoding")


@dataclass
class OutboundRequest:
    """A request on its way to the upstream server."""

    method: str
    url: httpx.URL
    headers: httpx.Headers
    body: bytes = b""
    request_id: str = ""
    context: Any = None


@dataclass
class UpstreamResponse:
    """A response from the upstream server, not yet relayed to the client."""

    status_code: int
    headers: httpx.Headers
    request: OutboundRequest
    stream: httpx.Response = field(repr=False)
    _content: bytes | None = field(default=None, repr=False)

    @property
    def buffered(self) -> bool:
        return self._content is not None

    async def read(self) -> bytes:
        """Read (and decode) the full body, switching the relay to buffered mode."""
        if self._content is None:
            self._content = await self.stream.aread()
            _drop_framing(self.headers)
        return self._content

    def replace_body(self, content: bytes) -> None:
        self._content = content
        _drop_framing(self.headers)


Director = Callable[[OutboundRequest], Awaitable[None]]
ResponseModifier = Callable[[UpstreamResponse], Awaitable[None]]
ErrorHandler = Callable[[OutboundRequest, Exception], Response]


def default_error_handler(request: OutboundRequest, exc: Exception) -> Response:
    """Report *exc* to the client as ``502 Bad Gateway``."""
    logger.error(
        "[%s] Proxy error for %s %s (session %s): %s",
        request.request_id,
        request.method,
        request.url,
        request.headers.get("mcp-session-id", "-"),
        exc,
    )
    return PlainTextResponse(f"Proxy error: {exc}", status_code=502)


class ReverseProxy:
    """Forwards requests to a single upstream *target*.

    Usage::

        async with ReverseProxy("http://localhost:3845") as proxy:
            response = await proxy.serve(request, body=await request.body())
    """

    def __init__(
        self,
        target: str,
        *,
        client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
        external_url: str | None = None,
        director: Director | None = None,
        modify_response: ResponseModifier | None = None,
        error_handler: ErrorHandler | None = None,
    ) -> None:
        self._target = httpx.URL(target)
        self._external = httpx.URL(external_url) if external_url else None
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=httpx.Timeout(timeout, read=None))
        self._director = director
        self._modify_response = modify_response
        self._error_handler = error_handler or default_error_handler

    async def __aenter__(self) -> ReverseProxy:
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.aclose()

    @property
    def target(self) -> httpx.URL:
        return self._target

    async def aclose(self) -> None:
        """Close the HTTP client if this proxy created it."""
        if self._owns_client:
            await self._client.aclose()

    async def serve(
        self,
        request: Request,
        *,
        body: bytes,
        context: Any = None,
        request_id: str = "",
    ) -> Response:
        """Forward *request* (whose *body* was already read) and relay the reply."""
        outbound = self.build_outbound(request, body=body, context=context, request_id=request_id)
        if self._director is not None:
            await self._director(outbound)

        logger.debug("[%s] Forwarding %s %s", request_id, outbound.method, outbound.url)
        try:
            upstream = await self._send(outbound)
        except UpstreamError as exc:
            return self._error_handler(outbound, exc)

        response = UpstreamResponse(
            status_code=upstream.status_code,
            headers=_strip_hop_by_hop(upstream.headers),
            request=outbound,
            stream=upstream,
        )
        try:
            if self._modify_response is not None:
                await self._modify_response(response)
            return await self._relay(response)
        except (ProxyError, httpx.HTTPError) as exc:
            await upstream.aclose()
            return self._error_handler(outbound, exc)
        except BaseException:
            await upstream.aclose()
            raise

    def build_outbound(
        self,
        request: Request,
        *,
        body: bytes,
        context: Any = None,
        request_id: str = "",
    ) -> OutboundRequest:
        """Point *request* at the target and clean its headers.

        The target always receives the request.  With an external URL set,
        the upstream ``Host`` is the client's ``X-Forwarded-Host``.
        """
        url = _join_url(self._target, request.url.path, request.url.query)
        headers = _strip_hop_by_hop(httpx.Headers(request.headers.raw))
        headers.pop("host", None)
        headers.pop("content-length", None)

        client_host = request.client.host if request.client else None
        if client_host:
            prior = headers.get("x-forwarded-for")
            headers["x-forwarded-for"] = f"{prior}, {client_host}" if prior else client_host

        if self._external is not None:
            forwarded_host = request.headers.get("x-forwarded-host")
            if forwarded_host:
                headers["host"] = forwarded_host
            logger.debug(
                "[%s] External name %s, upstream host header %s",
                request_id,
                self._external.host,
                forwarded_host,
            )

        return OutboundRequest(
            method=request.method,
            url=url,
            headers=headers,
            body=body,
            request_id=request_id,
            context=context,
        )

    async def _send(self, outbound: OutboundRequest) -> httpx.Response:
        upstream_request = self._client.build_request(
            outbound.method,
            outbound.url,
            headers=outbound.headers,
            content=outbound.body or None,
        )
        try:
            return await self._client.send(upstream_request, stream=True)
        except httpx.HTTPError as exc:
            raise UpstreamError(str(exc) or type(exc).__name__) from exc

    @staticmethod
    async def _relay(response: UpstreamResponse) -> Response:
        headers = response.headers
        if response.buffered:
            content = await response.read()
            relayed = Response(content=content, status_code=response.status_code)
            await response.stream.aclose()
            relayed.raw_headers = _raw_headers(headers) + [
                (b"content-length", str(len(content)).encode("latin-1"))
            ]
            return relayed

        streamed = StreamingResponse(_iter_raw(response.stream), status_code=response.status_code)
        streamed.raw_headers = _raw_headers(headers)
        return streamed


async def _iter_raw(upstream: httpx.Response) -> AsyncIterator[bytes]:
    try:
        async for chunk in upstream.aiter_raw():
            yield chunk
    finally:
        await upstream.aclose()


def _join_url(base: httpx.URL, path: str, query: str) -> httpx.URL:
    joined = _single_joining_slash(base.path, path)
    suffix = f"?{query}" if query else ""
    return httpx.URL(f"{base.scheme}://{base.netloc.decode('ascii')}{joined}{suffix}")


def _single_joining_slash(a: str, b: str) -> str:
    a_slash = a.endswith("/")
    b_slash = b.startswith("/")
    if a_slash and b_slash:
        return a + b[1:]
    if not a_slash and not b_slash:
        return f"{a}/{b}"
    return a + b


def _strip_hop_by_hop(headers: httpx.Headers) -> httpx.Headers:
    named = {
        token.strip().lower()
        for value in headers.get_list("connection")
        for token in value.split(",")
        if token.strip()
    }
    return httpx.Headers(
        [
            (key, value)
            for key, value in headers.multi_items()
            if key.lower() not in HOP_BY_HOP_HEADERS and key.lower() not in named
        ]
    )


def _drop_framing(headers: httpx.Headers) -> None:
    for name in _BODY_FRAMING_HEADERS:
        headers.pop(name, None)


def _raw_headers(headers: httpx.Headers) -> list[tuple[bytes, bytes]]:
    return [(key.encode("latin-1"), value.encode("latin-1")) for key, value in headers.multi_items()]
