"""Bearer-token authentication middleware for FastAPI."""

from __future__ import annotations

from typing import Awaitable, Callable, Mapping

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response
from starlette.types import ASGIApp

from support_desk.dependencies.auth import Identity, resolve_identity_from_token


class BearerIdentityMiddleware(BaseHTTPMiddleware):
    """Populate the request state with the caller identity when a token is sent.

    Requests without an ``Authorization`` header pass through untouched so
    public routes keep working; protected routes reject them through the
    ``get_current_identity`` dependency.
    """

    def __init__(self, app: ASGIApp, *, tokens: Mapping[str, str]) -> None:
        super().__init__(app)
        self._tokens = tokens

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        authorization = request.headers.get("Authorization")
        if authorization:
            scheme, _, credentials = authorization.partition(" ")
            if scheme.lower() != "bearer":
                return JSONResponse(
                    status_code=401, content={"detail": "Invalid authentication credentials"}
                )
            try:
                identity: Identity = resolve_identity_from_token(credentials.strip() or None, self._tokens)
            except HTTPException as exc:
                return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})
            request.state.identity = identity

        return await call_next(request)
