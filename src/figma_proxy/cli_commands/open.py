"""``figma-mcp-proxy open`` — open designs or the desktop app directly."""

from __future__ import annotations

import asyncio
import sys
from typing import TYPE_CHECKING

import click

from figma_proxy.cli_commands._output import console, print_open_result

if TYPE_CHECKING:
    from figma_proxy.runtime.coordinator import DesignOpenCoordinator


def _coordinator() -> DesignOpenCoordinator:
    from figma_proxy.core.config import ConfigurationError, load_settings
    from figma_proxy.server.app import build_coordinator

    try:
        settings = load_settings()
    except ConfigurationError as exc:
        console.print(f"[red]Configuration error:[/red] {exc}")
        sys.exit(1)
    return build_coordinator(settings)


@click.group("open")
def open_group() -> None:
    """Open Figma designs through the same path the proxy uses."""


@open_group.command("design")
@click.argument("file_key")
@click.argument("file_name")
@click.argument("node_id")
def design(file_key: str, file_name: str, node_id: str) -> None:
    """Open FILE_KEY/FILE_NAME at NODE_ID (colons are escaped automatically)."""
    coordinator = _coordinator()
    result = asyncio.run(coordinator.open_design(file_key, file_name, node_id))
    print_open_result(result)
    if not result.opened:
        sys.exit(1)


@open_group.command("app")
def app() -> None:
    """Launch the Figma desktop application."""
    coordinator = _coordinator()
    result = asyncio.run(coordinator.open_app())
    print_open_result(result)
    if not result.opened:
        sys.exit(1)
