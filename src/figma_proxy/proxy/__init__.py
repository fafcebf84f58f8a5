"""Proxy pipeline — request interception, forwarding and response rewriting."""

from figma_proxy.proxy.forwarder import OutboundRequest, ReverseProxy, UpstreamResponse
from figma_proxy.proxy.interceptor import InterceptedRequest, RequestInterceptor
from figma_proxy.proxy.rewriter import ResponseRewriter, augment_tool, rewrite_tools_list

__all__ = [
    "InterceptedRequest",
    "OutboundRequest",
    "RequestInterceptor",
    "ResponseRewriter",
    "ReverseProxy",
    "UpstreamResponse",
    "augment_tool",
    "rewrite_tools_list",
]
