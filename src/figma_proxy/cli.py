"""figma-mcp-proxy CLI entrypoint."""

from __future__ import annotations

import click

from figma_proxy import __version__


@click.group()
@click.version_option(version=__version__, prog_name="figma-mcp-proxy")
def main() -> None:
    """Figma MCP Proxy — opens designs for the tools your assistant calls."""


# Register subcommands
from figma_proxy.cli_commands import register_commands  # noqa: E402

register_commands(main)

if __name__ == "__main__":
    main()
