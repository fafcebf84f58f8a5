"""MCP protocol — envelope sniffing, tool definitions and SSE framing."""

from figma_proxy.protocols.mcp.models import (
    TOOLS_CALL,
    TOOLS_LIST,
    DesignTarget,
    JsonRpcRequest,
    MCPToolDef,
    ShapeIssue,
    ShapeMismatch,
    escape_node_id,
    extract_design_target,
    lookup,
)
from figma_proxy.protocols.mcp.sse import extract_data, frame_message

__all__ = [
    "TOOLS_CALL",
    "TOOLS_LIST",
    "DesignTarget",
    "JsonRpcRequest",
    "MCPToolDef",
    "ShapeIssue",
    "ShapeMismatch",
    "escape_node_id",
    "extract_data",
    "extract_design_target",
    "frame_message",
    "lookup",
]
