"""Bearer-token authentication for the proxied path."""

from __future__ import annotations

import logging
import secrets
from collections.abc import Awaitable, Callable

from fastapi import HTTPException, Request, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

logger = logging.getLogger(__name__)

_bearer = HTTPBearer(auto_error=False)


def require_bearer(api_key: str | None) -> Callable[..., Awaitable[None]]:
    """Build a FastAPI dependency that enforces ``Authorization: Bearer <api_key>``.

    With no *api_key* configured the dependency lets everything through.
    """

    async def verify(
        request: Request,
        credentials: HTTPAuthorizationCredentials | None = Security(_bearer),
    ) -> None:
        if api_key is None:
            return
        token = credentials.credentials if credentials else ""
        if not secrets.compare_digest(token.encode(), api_key.encode()):
            logger.warning(
                "[%s] Authentication failed from %s",
                getattr(request.state, "request_id", "-"),
                request.client.host if request.client else "unknown",
            )
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")

    return verify
