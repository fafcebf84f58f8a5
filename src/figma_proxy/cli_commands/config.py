"""``figma-mcp-proxy config`` — show the effective configuration."""

from __future__ import annotations

import sys

import click

from figma_proxy.cli_commands._output import console, print_settings


@click.command("config")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
def config_cmd(as_json: bool) -> None:
    """Print the configuration the proxy would start with."""
    from figma_proxy.core.config import ConfigurationError, load_settings

    try:
        settings = load_settings()
    except ConfigurationError as exc:
        console.print(f"[red]Configuration error:[/red] {exc}")
        sys.exit(1)

    print_settings(settings, as_json=as_json)
