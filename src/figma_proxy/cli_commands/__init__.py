"""CLI subcommand registration."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all subcommands on the CLI group."""
    from figma_proxy.cli_commands.config import config_cmd
    from figma_proxy.cli_commands.open import open_group
    from figma_proxy.cli_commands.rewrite import rewrite
    from figma_proxy.cli_commands.serve import serve

    cli.add_command(serve)
    cli.add_command(open_group)
    cli.add_command(rewrite)
    cli.add_command(config_cmd)
