"""Shared CLI output formatters."""

from __future__ import annotations

from typing import Any

from rich.console import Console
from rich.table import Table

from figma_proxy.core.config import ProxySettings  # noqa: TC001
from figma_proxy.protocols.mcp.models import MCPToolDef
from figma_proxy.runtime.coordinator import DesignOpenResult  # noqa: TC001

console = Console()


def print_open_result(result: DesignOpenResult) -> None:
    """Report the outcome of an open action."""
    if result.opened:
        console.print(f"[green]Opened[/green] {result.uri}")
        return
    target = f" {result.uri}" if result.uri else ""
    console.print(f"[red]Open failed{target}:[/red] {result.reason}")


def print_tools_table(tools: list[dict[str, Any]]) -> None:
    """Pretty-print ``tools/list`` entries with the parameters they require."""
    table = Table(title="Advertised Tools")
    table.add_column("Name", style="cyan")
    table.add_column("Required")
    table.add_column("Description")

    for raw in tools:
        tool = MCPToolDef.model_validate(raw)
        table.add_row(
            tool.name,
            ", ".join(str(name) for name in tool.required) or "-",
            _truncate(tool.description),
        )

    console.print(table)


def print_settings(settings: ProxySettings, *, as_json: bool = False) -> None:
    """Print the effective configuration with the API key masked."""
    data = settings.model_dump()
    if data.get("api_key"):
        data["api_key"] = "****"

    if as_json:
        console.print_json(data=data)
        return

    table = Table(title="Effective Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    for key, value in data.items():
        table.add_row(key.upper(), "-" if value is None else str(value))
    console.print(table)


def _truncate(text: str, max_len: int = 80) -> str:
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."
