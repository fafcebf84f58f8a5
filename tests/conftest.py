"""Shared fixtures: a recording launcher and a clean proxy environment."""

from __future__ import annotations

import asyncio
import time

import pytest

from figma_proxy.runtime.errors import LaunchCommandError

_ENV_VARS = (
    "TARGET_URL",
    "EXTERNAL_DNS_NAME",
    "HOST",
    "PORT",
    "API_KEY",
    "PROXY_PATH",
    "URI_SCHEME",
    "SETTLE_DELAY",
    "OPEN_LOCK_TIMEOUT",
    "OPEN_MODE",
    "UPSTREAM_TIMEOUT",
    "LOG_LEVEL",
)


class RecordingLauncher:
    """Launcher stand-in that records ``(uri, start, end)`` for every launch."""

    def __init__(self, *, delay: float = 0.0, fail_with: str | None = None) -> None:
        self.delay = delay
        self.fail_with = fail_with
        self.calls: list[tuple[str, float, float]] = []

    @property
    def uris(self) -> list[str]:
        return [uri for uri, _, _ in self.calls]

    async def launch(self, uri: str) -> None:
        start = time.monotonic()
        try:
            await asyncio.sleep(self.delay)
            if self.fail_with is not None:
                raise LaunchCommandError(uri, self.fail_with)
        finally:
            self.calls.append((uri, start, time.monotonic()))


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    """Keep the host environment (and any ``.env``) out of settings."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def launcher() -> RecordingLauncher:
    return RecordingLauncher()


@pytest.fixture
def slow_launcher() -> RecordingLauncher:
    return RecordingLauncher(delay=0.05)


@pytest.fixture
def failing_launcher() -> RecordingLauncher:
    return RecordingLauncher(fail_with="exit status 1")
