"""ResponseRewriter — patches the ``tools/list`` schema advertised upstream.

Every tool whose ``inputSchema.properties`` has a ``nodeId`` is taught to
also take ``fileKey`` and ``fileName``, so the assistant passes enough
information for the proxy to open the design before the call runs.

The upstream server answers over streamable HTTP, i.e. as a Server-Sent
Events stream.  The first ``data:`` line is decoded, patched and re-framed
as a single ``message`` event.  A body without event data passes through
untouched; a body that cannot be decoded or re-encoded aborts the response.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from figma_proxy.protocols.errors import ResponseRewriteError
from figma_proxy.protocols.mcp.models import TOOLS_LIST, ShapeMismatch, lookup
from figma_proxy.protocols.mcp.sse import extract_data, frame_message
from figma_proxy.utils.telemetry import (
    ATTR_TOOLS_MODIFIED,
    ATTR_TOOLS_TOTAL,
    SPAN_REWRITE_TOOLS,
    get_tracer,
)

if TYPE_CHECKING:
    from figma_proxy.proxy.forwarder import UpstreamResponse
    from figma_proxy.proxy.interceptor import InterceptedRequest

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)

_EXAMPLE_URL = "https://figma.com/design/1234/5678?node-id=1-2"

DESCRIPTION_SUFFIX = (
    " Use the fileKey and fileName parameters to specify a file. If a URL is provided, "
    "extract the fileKey and fileName from the URL, for example, if given the URL "
    f"{_EXAMPLE_URL}, the extracted fileKey would be `1234` and the extracted fileName "
    "would be `5678`."
)

FILE_KEY_PROPERTY: dict[str, str] = {
    "type": "string",
    "description": (
        f"The key of the file, extracted from the URL. For example, in {_EXAMPLE_URL}, "
        "the fileKey is `1234`."
    ),
}

FILE_NAME_PROPERTY: dict[str, str] = {
    "type": "string",
    "description": (
        f"The name of the file, extracted from the URL. For example, in {_EXAMPLE_URL}, "
        "the fileName is `5678`."
    ),
}


def augment_tool(tool: Any) -> bool:
    """Add ``fileKey``/``fileName`` to *tool* if it takes a ``nodeId``.

    Mutates *tool* in place and returns whether it was changed.  Entries
    already listed in ``required`` are appended again rather than
    de-duplicated.
    """
    schema = lookup(tool, "inputSchema", dict)
    if isinstance(schema, ShapeMismatch):
        return False
    properties = lookup(schema, "properties", dict)
    if isinstance(properties, ShapeMismatch) or "nodeId" not in properties:
        return False

    description = tool.get("description")
    if isinstance(description, str):
        tool["description"] = description + DESCRIPTION_SUFFIX

    properties["fileKey"] = dict(FILE_KEY_PROPERTY)
    properties["fileName"] = dict(FILE_NAME_PROPERTY)

    if "required" not in schema:
        schema["required"] = ["fileKey", "fileName"]
    elif isinstance(schema["required"], list):
        schema["required"].extend(["fileKey", "fileName"])
    return True


def augment_tools(message: dict[str, Any]) -> tuple[int, int]:
    """Augment every tool in ``result.tools``; return ``(total, modified)``."""
    tools = lookup(message, "result.tools", list)
    if isinstance(tools, ShapeMismatch):
        logger.debug("No tools to rewrite (%s)", tools)
        return 0, 0

    modified = 0
    for tool in tools:
        if isinstance(tool, dict) and augment_tool(tool):
            modified += 1
            logger.debug("Added fileKey/fileName to tool %s", tool.get("name"))
    return len(tools), modified


def rewrite_tools_list(body: str) -> str | None:
    """Rewrite an SSE ``tools/list`` *body*.

    Returns the re-framed body, or ``None`` when *body* carries no event
    data and should be relayed as-is.

    Raises:
        ResponseRewriteError: If the payload is not a JSON object or cannot
            be re-encoded.
    """
    payload = extract_data(body)
    if payload is None:
        return None

    try:
        message = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise ResponseRewriteError(f"invalid JSON payload: {exc}") from exc
    if not isinstance(message, dict):
        raise ResponseRewriteError(f"expected a JSON object, got {type(message).__name__}")

    with _tracer.start_as_current_span(SPAN_REWRITE_TOOLS) as span:
        total, modified = augment_tools(message)
        span.set_attribute(ATTR_TOOLS_TOTAL, total)
        span.set_attribute(ATTR_TOOLS_MODIFIED, modified)
    logger.info("Rewrote tools/list: %d of %d tools take fileKey/fileName", modified, total)

    try:
        encoded = json.dumps(message, separators=(",", ":"), ensure_ascii=False, allow_nan=False)
    except (TypeError, ValueError) as exc:
        raise ResponseRewriteError(f"cannot encode payload: {exc}") from exc
    return frame_message(encoded)


class ResponseRewriter:
    """``modify_response`` hook for :class:`~figma_proxy.proxy.forwarder.ReverseProxy`.

    Reads the originating method from the request's
    :class:`~figma_proxy.proxy.interceptor.InterceptedRequest` context.
    """

    async def __call__(self, response: UpstreamResponse) -> None:
        await self.rewrite(response)

    async def rewrite(self, response: UpstreamResponse) -> None:
        context: InterceptedRequest | None = response.request.context
        method = context.method if context is not None else None
        request_id = response.request.request_id

        if method != TOOLS_LIST:
            return
        if response.status_code != 200:
            logger.info("[%s] tools/list returned %d, not rewriting", request_id, response.status_code)
            return

        raw = await response.read()
        try:
            body = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ResponseRewriteError(f"body is not UTF-8: {exc}") from exc

        rewritten = rewrite_tools_list(body)
        if rewritten is None:
            logger.info("[%s] tools/list response has no event data, relaying as-is", request_id)
            return
        response.replace_body(rewritten.encode("utf-8"))
