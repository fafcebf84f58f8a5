"""Launcher protocol — the common interface for desktop URI launchers."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class Launcher(Protocol):
    """Hands a URI to the desktop environment's default handler.

    Implementations return once the handler has had time to settle and
    raise :class:`~figma_proxy.runtime.errors.LaunchError` on failure.
    """

    async def launch(self, uri: str) -> None:
        """Open *uri* and wait for the settle period."""
        ...
