"""Shared error types for the protocol layer."""


class ProxyError(Exception):
    """Base error for failures that abort a proxied exchange."""


class UpstreamError(ProxyError):
    """The upstream MCP server could not be reached or misbehaved."""


class ResponseRewriteError(ProxyError):
    """A ``tools/list`` response could not be decoded or re-encoded."""

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__("Failed to rewrite tools/list response" + (f": {detail}" if detail else ""))
