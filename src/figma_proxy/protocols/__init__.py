"""Protocol layer — MCP envelopes, SSE framing and proxy errors."""

from figma_proxy.protocols.errors import ProxyError, ResponseRewriteError, UpstreamError

__all__ = [
    "ProxyError",
    "ResponseRewriteError",
    "UpstreamError",
]
