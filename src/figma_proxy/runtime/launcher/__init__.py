"""Launcher subsystem — handing URIs to the desktop environment."""

from figma_proxy.runtime.launcher.launcher import Launcher
from figma_proxy.runtime.launcher.os_launcher import OSLauncher, build_command

__all__ = [
    "Launcher",
    "OSLauncher",
    "build_command",
]
