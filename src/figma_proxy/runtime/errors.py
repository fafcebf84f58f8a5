"""Shared error types for the desktop side-effect layer."""


class LaunchError(Exception):
    """Base error for failures to hand a URI to the desktop environment."""


class UnsupportedPlatformError(LaunchError):
    """The host platform has no known default-handler command."""

    def __init__(self, platform: str) -> None:
        self.platform = platform
        super().__init__(f"unsupported operating system: {platform}")


class LaunchCommandError(LaunchError):
    """The launch command could not be started or exited non-zero."""

    def __init__(self, uri: str, detail: str = "") -> None:
        self.uri = uri
        self.detail = detail
        super().__init__(f"failed to open '{uri}'" + (f": {detail}" if detail else ""))


class OpenLockTimeoutError(Exception):
    """Another open action held the lock for longer than the configured bound."""

    def __init__(self, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(f"lock timeout: open action still running after {timeout}s")
