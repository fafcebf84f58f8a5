"""Proxy configuration — environment variables read once at startup.

Every field maps to an upper-case environment variable of the same name
(``TARGET_URL``, ``EXTERNAL_DNS_NAME``, ``PORT``, ``API_KEY``, ...).  A
``.env`` file in the working directory is honoured as well.
"""

from __future__ import annotations

import logging
from typing import Any, Literal

import httpx
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_TARGET_URL = "http://localhost:3845"
DEFAULT_PORT = 3846


class ConfigurationError(Exception):
    """Raised when the startup configuration cannot be loaded."""


class ProxySettings(BaseSettings):
    """Effective configuration of a proxy process."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    target_url: str = Field(default=DEFAULT_TARGET_URL, description="Upstream MCP server URL.")
    external_dns_name: str | None = Field(
        default=None, description="Externally visible URL; enables Host rewriting from X-Forwarded-Host."
    )
    host: str = Field(default="0.0.0.0", description="Listen address.")
    port: int = Field(default=DEFAULT_PORT, ge=1, le=65535, description="Listen port.")
    api_key: str | None = Field(default=None, description="Bearer token required when set.")
    proxy_path: str = Field(default="/mcp", description="Path forwarded to the upstream server.")
    uri_scheme: str = Field(default="figma", description="URI scheme of the desktop application.")
    settle_delay: float = Field(default=2.0, ge=0.0, description="Seconds to wait after a launch.")
    open_lock_timeout: float | None = Field(
        default=None, gt=0.0, description="Max seconds to wait for the open lock (unbounded if unset)."
    )
    open_mode: Literal["blocking", "background"] = Field(
        default="blocking", description="Hold the request during an open, or continue immediately."
    )
    upstream_timeout: float = Field(default=30.0, gt=0.0, description="Upstream connect/write timeout.")
    log_level: str = Field(default="INFO", description="Logging level name.")

    @field_validator("external_dns_name", "api_key", "open_lock_timeout", mode="before")
    @classmethod
    def _empty_is_unset(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("target_url", "external_dns_name")
    @classmethod
    def _require_absolute_url(cls, value: str | None) -> str | None:
        if value is None:
            return value
        try:
            url = httpx.URL(value)
        except httpx.InvalidURL as exc:
            raise ValueError(str(exc)) from exc
        if url.scheme not in ("http", "https") or not url.host:
            msg = f"expected an absolute http(s) URL, got {value!r}"
            raise ValueError(msg)
        return value

    @field_validator("proxy_path")
    @classmethod
    def _require_leading_slash(cls, value: str) -> str:
        if not value.startswith("/"):
            msg = f"proxy path must start with '/', got {value!r}"
            raise ValueError(msg)
        return value

    @field_validator("log_level")
    @classmethod
    def _normalise_level(cls, value: str) -> str:
        level = value.upper()
        if level not in logging.getLevelNamesMapping():
            msg = f"unknown log level {value!r}"
            raise ValueError(msg)
        return level

    @property
    def auth_enabled(self) -> bool:
        return self.api_key is not None


def load_settings(**overrides: Any) -> ProxySettings:
    """Read settings from the environment, applying explicit *overrides* on top.

    ``None`` overrides are ignored so CLI options left unset fall back to the
    environment.

    Raises:
        ConfigurationError: When any value fails validation.
    """
    explicit = {key: value for key, value in overrides.items() if value is not None}
    try:
        return ProxySettings(**explicit)
    except ValidationError as exc:
        raise ConfigurationError(str(exc)) from exc
