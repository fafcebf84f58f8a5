"""OpenTelemetry tracing helpers for the proxy.

Modules call ``get_tracer(__name__)`` and open spans around the interesting
parts of an exchange (interception, the desktop open, the tool-list
rewrite).  Until :func:`configure_telemetry` installs an SDK provider the
API hands out no-op tracers, so an unconfigured proxy pays nothing.

Usage::

    from figma_proxy.utils.telemetry import get_tracer

    _tracer = get_tracer(__name__)

    with _tracer.start_as_current_span("figma_proxy.rewrite_tools") as span:
        span.set_attribute(ATTR_TOOLS_MODIFIED, 3)

Real export needs the ``otel`` extra: ``pip install figma-mcp-proxy[otel]``.
"""

from __future__ import annotations

from typing import Any

from opentelemetry import trace

# ---------------------------------------------------------------------------
# Span names and attribute keys
# ---------------------------------------------------------------------------

SPAN_INTERCEPT = "figma_proxy.intercept"
SPAN_OPEN_DESIGN = "figma_proxy.open_design"
SPAN_REWRITE_TOOLS = "figma_proxy.rewrite_tools"

ATTR_REQUEST_ID = "figma_proxy.request.id"
ATTR_RPC_METHOD = "figma_proxy.rpc.method"
ATTR_FILE_KEY = "figma_proxy.design.file_key"
ATTR_DESIGN_URI = "figma_proxy.design.uri"
ATTR_OPENED = "figma_proxy.design.opened"
ATTR_TOOLS_TOTAL = "figma_proxy.tools.total"
ATTR_TOOLS_MODIFIED = "figma_proxy.tools.modified"

_INSTRUMENTATION_NAME = "figma_proxy"


def get_tracer(name: str | None = None) -> trace.Tracer:
    """Return a :class:`~opentelemetry.trace.Tracer` for *name*.

    No-op until an SDK tracer provider has been installed.
    """
    return trace.get_tracer(name or _INSTRUMENTATION_NAME)


def configure_telemetry(
    *,
    service_name: str = "figma-mcp-proxy",
    export_to_console: bool = True,
    otlp_endpoint: str | None = None,
) -> None:
    """Install an SDK tracer provider (requires ``figma-mcp-proxy[otel]``).

    Parameters
    ----------
    service_name:
        The ``service.name`` resource attribute.
    export_to_console:
        If ``True``, export spans as JSON to stdout.
    otlp_endpoint:
        If set, export spans via OTLP/gRPC to this endpoint.

    Raises
    ------
    ImportError
        If the ``opentelemetry-sdk`` package is not installed.
    """
    try:
        from opentelemetry.sdk.resources import Resource  # pyright: ignore[reportMissingImports]
        from opentelemetry.sdk.trace import TracerProvider  # pyright: ignore[reportMissingImports]
        from opentelemetry.sdk.trace.export import BatchSpanProcessor, SimpleSpanProcessor  # pyright: ignore[reportMissingImports]
    except ImportError as exc:
        msg = (
            "opentelemetry-sdk is required for configure_telemetry(). "
            "Install it with: pip install figma-mcp-proxy[otel]"
        )
        raise ImportError(msg) from exc

    provider = TracerProvider(resource=Resource.create({"service.name": service_name}))

    if export_to_console:
        _add_console_exporter(provider, SimpleSpanProcessor)

    if otlp_endpoint:
        _add_otlp_exporter(provider, BatchSpanProcessor, otlp_endpoint)

    trace.set_tracer_provider(provider)


def _add_console_exporter(provider: Any, processor_cls: Any) -> None:
    from opentelemetry.sdk.trace.export import ConsoleSpanExporter  # pyright: ignore[reportMissingImports]

    provider.add_span_processor(processor_cls(ConsoleSpanExporter()))


def _add_otlp_exporter(provider: Any, processor_cls: Any, endpoint: str) -> None:
    """Attach the OTLP gRPC exporter."""
    try:
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter  # pyright: ignore[reportMissingImports]
    except ImportError as exc:
        msg = (
            "opentelemetry-exporter-otlp is required for OTLP export. "
            "Install it with: pip install figma-mcp-proxy[otel]"
        )
        raise ImportError(msg) from exc

    provider.add_span_processor(processor_cls(OTLPSpanExporter(endpoint=endpoint)))
