"""Figma MCP Proxy — intercepting HTTP proxy for the Figma desktop MCP server."""

from __future__ import annotations

__version__ = "0.1.0"
