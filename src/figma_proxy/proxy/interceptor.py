"""RequestInterceptor — sniffs inbound JSON-RPC bodies before forwarding.

The body is read once by the server layer and handed here as bytes.  When it
is a tool call carrying ``fileKey``, ``fileName`` and ``nodeId`` the design
is opened through the :class:`DesignOpenCoordinator` before the request goes
upstream.  Whatever happens, the original bytes are forwarded unchanged and
the parsed envelope travels on in an :class:`InterceptedRequest`.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from pydantic import ValidationError

from figma_proxy.protocols.mcp.models import JsonRpcRequest, ShapeMismatch, extract_design_target
from figma_proxy.utils.telemetry import ATTR_REQUEST_ID, ATTR_RPC_METHOD, SPAN_INTERCEPT, get_tracer

if TYPE_CHECKING:
    from figma_proxy.protocols.mcp.models import DesignTarget
    from figma_proxy.runtime.coordinator import DesignOpenCoordinator, DesignOpenResult

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)

OpenMode = Literal["blocking", "background"]


@dataclass
class InterceptedRequest:
    """Request-scoped context shared by the interceptor and the rewriter."""

    body: bytes
    envelope: JsonRpcRequest | None = None
    open_result: DesignOpenResult | None = None
    open_task: asyncio.Task[DesignOpenResult] | None = None

    @property
    def method(self) -> str | None:
        return self.envelope.method if self.envelope is not None else None


class RequestInterceptor:
    """Inspects request bodies and triggers desktop opens.

    In ``blocking`` mode the request is held until the open (launch plus
    settle) finishes.  In ``background`` mode the open is scheduled and the
    request continues at once.  Either way the open runs in its own task, so
    a client disconnect never cancels a launch that has started.
    """

    def __init__(self, coordinator: DesignOpenCoordinator, *, open_mode: OpenMode = "blocking") -> None:
        self._coordinator = coordinator
        self._open_mode = open_mode
        self._pending: set[asyncio.Task[DesignOpenResult]] = set()

    @property
    def pending(self) -> frozenset[asyncio.Task[DesignOpenResult]]:
        return frozenset(self._pending)

    async def intercept(self, body: bytes, *, request_id: str = "") -> InterceptedRequest:
        """Inspect *body* and run any side effect it asks for."""
        context = InterceptedRequest(body=body)
        if not body:
            logger.debug("[%s] No request body", request_id)
            return context

        with _tracer.start_as_current_span(SPAN_INTERCEPT) as span:
            span.set_attribute(ATTR_REQUEST_ID, request_id)
            try:
                context.envelope = JsonRpcRequest.model_validate_json(body)
            except ValidationError as exc:
                logger.warning(
                    "[%s] Forwarding unparseable body unchanged: %s",
                    request_id,
                    exc.errors(include_url=False)[0]["msg"],
                )
                return context

            if context.envelope.method is not None:
                span.set_attribute(ATTR_RPC_METHOD, context.envelope.method)
            logger.info(
                "[%s] JSON-RPC %s (id=%s)", request_id, context.envelope.method, context.envelope.id
            )

            target = extract_design_target(context.envelope.params)
            if isinstance(target, ShapeMismatch):
                logger.debug("[%s] No design to open (%s)", request_id, target)
                return context

            await self._open(target, context, request_id)
        return context

    async def drain(self) -> None:
        """Wait for background opens still in flight."""
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)

    async def _open(self, target: DesignTarget, context: InterceptedRequest, request_id: str) -> None:
        task = asyncio.create_task(self._coordinator.open_target(target))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        context.open_task = task

        if self._open_mode == "background":
            logger.info("[%s] Opening %s in the background", request_id, target.file_key)
            return

        result = await asyncio.shield(task)
        context.open_result = result
        if not result.opened:
            logger.warning("[%s] Design not opened: %s", request_id, result.reason)
