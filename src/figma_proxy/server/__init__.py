"""HTTP surface — FastAPI application served by uvicorn."""

from figma_proxy.server.app import build_coordinator, create_app

__all__ = [
    "build_coordinator",
    "create_app",
]
