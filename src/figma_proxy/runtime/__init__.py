"""Runtime layer — serialized desktop side effects."""

from figma_proxy.runtime.coordinator import DesignOpenCoordinator, DesignOpenResult
from figma_proxy.runtime.errors import (
    LaunchCommandError,
    LaunchError,
    OpenLockTimeoutError,
    UnsupportedPlatformError,
)

__all__ = [
    "DesignOpenCoordinator",
    "DesignOpenResult",
    "LaunchCommandError",
    "LaunchError",
    "OpenLockTimeoutError",
    "UnsupportedPlatformError",
]
