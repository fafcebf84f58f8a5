"""``figma-mcp-proxy serve`` — run the proxy server."""

from __future__ import annotations

import logging
import sys

import click

from figma_proxy.cli_commands._output import console

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


@click.command()
@click.option("--host", default=None, help="Listen address (env: HOST).")
@click.option("--port", "-p", type=int, default=None, help="Listen port (env: PORT).")
@click.option("--target", default=None, help="Upstream MCP server URL (env: TARGET_URL).")
@click.option("--log-level", default=None, help="Logging level (env: LOG_LEVEL).")
@click.option("--telemetry", is_flag=True, help="Export OpenTelemetry spans to the console.")
@click.option("--otlp-endpoint", default=None, help="Export OpenTelemetry spans via OTLP/gRPC.")
def serve(
    host: str | None,
    port: int | None,
    target: str | None,
    log_level: str | None,
    telemetry: bool,
    otlp_endpoint: str | None,
) -> None:
    """Start the proxy in front of the Figma desktop MCP server."""
    import uvicorn

    from figma_proxy.core.config import ConfigurationError, load_settings
    from figma_proxy.server.app import create_app

    try:
        settings = load_settings(host=host, port=port, target_url=target, log_level=log_level)
    except ConfigurationError as exc:
        console.print(f"[red]Configuration error:[/red] {exc}")
        sys.exit(1)

    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)

    if telemetry or otlp_endpoint:
        from figma_proxy.utils.telemetry import configure_telemetry

        try:
            configure_telemetry(export_to_console=telemetry, otlp_endpoint=otlp_endpoint)
        except ImportError as exc:
            console.print(f"[red]Telemetry error:[/red] {exc}")
            sys.exit(1)

    app = create_app(settings)
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        timeout_keep_alive=120,
    )
