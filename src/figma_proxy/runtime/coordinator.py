"""DesignOpenCoordinator — serializes desktop open actions.

The desktop application's URI handler is not safe under concurrent
invocation from the same process, so every open goes through a single
mutual-exclusion guard owned by the coordinator.  A second request that
wants to open a design waits for the full launch-and-settle period of the
one already running.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from figma_proxy.protocols.mcp.models import DesignTarget
from figma_proxy.runtime.errors import LaunchError, OpenLockTimeoutError
from figma_proxy.utils.telemetry import (
    ATTR_DESIGN_URI,
    ATTR_FILE_KEY,
    ATTR_OPENED,
    SPAN_OPEN_DESIGN,
    get_tracer,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from figma_proxy.runtime.launcher.launcher import Launcher

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)


class DesignOpenResult(BaseModel):
    """Outcome of one open action."""

    opened: bool = Field(..., description="Whether the launcher accepted the URI.")
    uri: str | None = Field(default=None, description="The URI handed to the launcher.")
    reason: str = Field(default="", description="Failure reason when not opened.")


class DesignOpenCoordinator:
    """Owns the open lock and delegates to a :class:`Launcher`.

    Launcher failures are reported in the returned :class:`DesignOpenResult`
    rather than raised: the HTTP exchange that triggered the open must still
    complete.

    Usage::

        coordinator = DesignOpenCoordinator(OSLauncher())
        result = await coordinator.open_design("K", "N", "1:2")
    """

    def __init__(
        self,
        launcher: Launcher,
        *,
        lock: asyncio.Lock | None = None,
        lock_timeout: float | None = None,
        scheme: str = "figma",
    ) -> None:
        self._launcher = launcher
        self._lock = lock or asyncio.Lock()
        self._lock_timeout = lock_timeout
        self._scheme = scheme

    @property
    def lock(self) -> asyncio.Lock:
        return self._lock

    @property
    def scheme(self) -> str:
        return self._scheme

    async def open_design(self, file_key: str, file_name: str, node_id: str) -> DesignOpenResult:
        """Open ``<scheme>://design/<fileKey>/<fileName>?node-id=<nodeId>``."""
        target = DesignTarget(file_key=file_key, file_name=file_name, node_id=node_id)
        return await self.open_target(target)

    async def open_target(self, target: DesignTarget) -> DesignOpenResult:
        with _tracer.start_as_current_span(SPAN_OPEN_DESIGN) as span:
            span.set_attribute(ATTR_FILE_KEY, target.file_key)
            result = await self._run_exclusive(lambda: target.uri(self._scheme))
            span.set_attribute(ATTR_OPENED, result.opened)
            if result.uri:
                span.set_attribute(ATTR_DESIGN_URI, result.uri)
            return result

    async def open_app(self) -> DesignOpenResult:
        """Launch the desktop application itself via ``<scheme>://``."""
        return await self._run_exclusive(lambda: f"{self._scheme}://")

    async def _run_exclusive(self, build_uri: Callable[[], str]) -> DesignOpenResult:
        try:
            await self._acquire()
        except OpenLockTimeoutError as exc:
            logger.warning("Skipping open: %s", exc)
            return DesignOpenResult(opened=False, reason=str(exc))

        uri: str | None = None
        try:
            uri = build_uri()
            logger.info("Opening %s", uri)
            await self._launcher.launch(uri)
        except LaunchError as exc:
            logger.error("Failed to open %s: %s", uri, exc)
            return DesignOpenResult(opened=False, uri=uri, reason=str(exc))
        finally:
            self._lock.release()

        logger.info("Opened %s", uri)
        return DesignOpenResult(opened=True, uri=uri)

    async def _acquire(self) -> None:
        if self._lock_timeout is None:
            await self._lock.acquire()
            return
        try:
            await asyncio.wait_for(self._lock.acquire(), timeout=self._lock_timeout)
        except TimeoutError:
            raise OpenLockTimeoutError(self._lock_timeout) from None
