"""MCP models — JSON-RPC 2.0 envelopes, tool definitions and tool-call targets.

Only the parts of the Model Context Protocol the proxy inspects are modelled:
the request envelope (to sniff ``method``), tool definitions returned by
``tools/list``, and the design coordinates carried by ``tools/call``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

TOOLS_LIST = "tools/list"
TOOLS_CALL = "tools/call"

# ---------------------------------------------------------------------------
# JSON-RPC 2.0 envelope
# ---------------------------------------------------------------------------


class JsonRpcRequest(BaseModel):
    """A JSON-RPC 2.0 request as sent by the MCP client.

    ``params`` stays opaque; its shape depends on ``method`` and is only
    looked at lazily through :func:`lookup`.
    """

    model_config = ConfigDict(extra="allow")

    jsonrpc: str = "2.0"
    id: int | str | None = None
    method: str | None = None
    params: Any = None


class MCPToolDef(BaseModel):
    """A tool definition as returned by ``tools/list``."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    name: str
    description: str = ""
    input_schema: dict[str, Any] = Field(default_factory=dict, alias="inputSchema")

    @property
    def properties(self) -> dict[str, Any]:
        props = self.input_schema.get("properties")
        return props if isinstance(props, dict) else {}

    @property
    def required(self) -> list[Any]:
        req = self.input_schema.get("required")
        return req if isinstance(req, list) else []


# ---------------------------------------------------------------------------
# Tolerant shape lookup
# ---------------------------------------------------------------------------


class ShapeIssue(str, Enum):
    """Why a nested lookup did not produce a value."""

    ABSENT = "field absent"
    WRONG_TYPE = "wrong type"


@dataclass(frozen=True)
class ShapeMismatch:
    """A failed lookup: the dotted *path* that failed and the *issue*."""

    path: str
    issue: ShapeIssue

    def __str__(self) -> str:
        return f"{self.path}: {self.issue.value}"


def lookup(container: Any, path: str, expected: type | tuple[type, ...]) -> Any:
    """Walk the dotted *path* through nested mappings.

    Returns the value when every segment exists and the leaf is an instance
    of *expected*, otherwise a :class:`ShapeMismatch` naming the first
    segment that failed.  Never raises.
    """
    current = container
    walked: list[str] = []
    for segment in path.split("."):
        if not isinstance(current, dict):
            return ShapeMismatch(".".join(walked), ShapeIssue.WRONG_TYPE)
        walked.append(segment)
        if segment not in current:
            return ShapeMismatch(".".join(walked), ShapeIssue.ABSENT)
        current = current[segment]
    if not isinstance(current, expected):
        return ShapeMismatch(path, ShapeIssue.WRONG_TYPE)
    return current


# ---------------------------------------------------------------------------
# tools/call design coordinates
# ---------------------------------------------------------------------------


class DesignTarget(BaseModel):
    """The ``fileKey`` / ``fileName`` / ``nodeId`` triple of a tool call."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    file_key: str = Field(alias="fileKey")
    file_name: str = Field(alias="fileName")
    node_id: str = Field(alias="nodeId")

    @property
    def escaped_node_id(self) -> str:
        """``nodeId`` with ``:`` replaced by ``-`` (the desktop handler rejects colons)."""
        return escape_node_id(self.node_id)

    def uri(self, scheme: str = "figma") -> str:
        return f"{scheme}://design/{self.file_key}/{self.file_name}?node-id={self.escaped_node_id}"


def escape_node_id(node_id: str) -> str:
    return node_id.replace(":", "-")


def extract_design_target(params: Any) -> DesignTarget | ShapeMismatch:
    """Pull the design coordinates out of ``tools/call`` *params*.

    A :class:`ShapeMismatch` is returned for anything short of three string
    arguments; callers treat it as "skip the side effect".
    """
    arguments = lookup(params, "arguments", dict)
    if isinstance(arguments, ShapeMismatch):
        return _under("params", arguments)

    fields: dict[str, str] = {}
    for key in ("fileKey", "fileName", "nodeId"):
        value = lookup(arguments, key, str)
        if isinstance(value, ShapeMismatch):
            return _under("params.arguments", value)
        fields[key] = value
    return DesignTarget.model_validate(fields)


def _under(prefix: str, mismatch: ShapeMismatch) -> ShapeMismatch:
    path = f"{prefix}.{mismatch.path}" if mismatch.path else prefix
    return ShapeMismatch(path, mismatch.issue)
