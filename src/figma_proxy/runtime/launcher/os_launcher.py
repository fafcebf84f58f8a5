"""OSLauncher — opens URIs with the platform's native default handler.

- macOS: ``open <uri>``
- Windows: ``powershell -Command "Start-Process '<uri>'"``
- Linux: ``xdg-open <uri>``

After the command exits the launcher sleeps for a fixed settle period so the
desktop application can finish handling the URI before anything else is sent
its way.
"""

from __future__ import annotations

import asyncio
import logging
import sys

from figma_proxy.runtime.errors import LaunchCommandError, UnsupportedPlatformError

logger = logging.getLogger(__name__)

DEFAULT_SETTLE_DELAY = 2.0


def build_command(uri: str, platform: str | None = None) -> list[str]:
    """Return the argv that opens *uri* on *platform* (default: this host)."""
    platform = platform or sys.platform
    if platform == "darwin":
        return ["open", uri]
    if platform == "win32":
        return ["powershell", "-Command", f"Start-Process '{uri}'"]
    if platform.startswith("linux"):
        return ["xdg-open", uri]
    raise UnsupportedPlatformError(platform)


class OSLauncher:
    """Host launcher satisfying the :class:`~figma_proxy.runtime.launcher.launcher.Launcher` protocol."""

    def __init__(
        self,
        *,
        settle_delay: float = DEFAULT_SETTLE_DELAY,
        platform: str | None = None,
    ) -> None:
        self._settle_delay = settle_delay
        self._platform = platform

    @property
    def settle_delay(self) -> float:
        return self._settle_delay

    async def launch(self, uri: str) -> None:
        """Run the platform command for *uri*, then wait for the settle period."""
        command = build_command(uri, self._platform)
        logger.info("Launching %s", command)

        try:
            proc = await asyncio.create_subprocess_exec(
                *command,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
            _, stderr = await proc.communicate()
        except OSError as exc:
            raise LaunchCommandError(uri, str(exc)) from exc

        if proc.returncode:
            detail = stderr.decode(errors="replace").strip() if stderr else ""
            raise LaunchCommandError(uri, detail or f"exit status {proc.returncode}")

        logger.debug("Waiting %.1fs for the desktop application to settle", self._settle_delay)
        await asyncio.sleep(self._settle_delay)
