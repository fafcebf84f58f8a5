"""``figma-mcp-proxy rewrite`` — apply the tools/list rewrite offline."""

from __future__ import annotations

import json
import sys
from typing import TextIO

import click

from figma_proxy.cli_commands._output import console, print_tools_table


@click.command()
@click.argument("source", type=click.File("r", encoding="utf-8"), default="-")
@click.option("--table", "as_table", is_flag=True, help="Show the rewritten tools as a table.")
def rewrite(source: TextIO, as_table: bool) -> None:
    """Rewrite a captured tools/list SSE body read from SOURCE (default: stdin)."""
    from figma_proxy.protocols.errors import ResponseRewriteError
    from figma_proxy.protocols.mcp.models import lookup
    from figma_proxy.protocols.mcp.sse import extract_data
    from figma_proxy.proxy.rewriter import rewrite_tools_list

    try:
        rewritten = rewrite_tools_list(source.read())
    except ResponseRewriteError as exc:
        console.print(f"[red]Rewrite error:[/red] {exc}")
        sys.exit(1)

    if rewritten is None:
        console.print("[yellow]No event data found; body would be relayed unchanged.[/yellow]")
        return

    if not as_table:
        click.echo(rewritten, nl=False)
        return

    tools = lookup(json.loads(extract_data(rewritten) or "{}"), "result.tools", list)
    if not isinstance(tools, list) or not tools:
        console.print("[yellow]No tools in response.[/yellow]")
        return
    print_tools_table([tool for tool in tools if isinstance(tool, dict) and "name" in tool])
