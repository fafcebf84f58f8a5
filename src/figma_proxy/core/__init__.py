"""Core — configuration shared by every layer."""

from figma_proxy.core.config import ConfigurationError, ProxySettings, load_settings

__all__ = [
    "ConfigurationError",
    "ProxySettings",
    "load_settings",
]
