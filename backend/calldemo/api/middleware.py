"""
LiveCall Demo - HTTP Middleware

Transport-level guards that run before any route:
- UnhandledErrorMiddleware: render unexpected exceptions as a bare 500
- OriginGuardMiddleware: reject callers outside the CORS allow list
- BodySizeLimitMiddleware: reject oversized request bodies
- SecurityHeadersMiddleware: baseline hardening headers on every response
"""

import logging
from typing import Callable, List

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from calldemo.config import Settings
from calldemo.core.exceptions import CallDemoError, OriginNotAllowedError, PayloadTooLargeError

logger = logging.getLogger(__name__)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Resource-Policy": "same-origin",
}


def _error_response(error: CallDemoError) -> JSONResponse:
    return JSONResponse(
        status_code=error.status_code,
        content=error.to_payload(),
        headers=error.headers,
    )


class UnhandledErrorMiddleware(BaseHTTPMiddleware):
    """
    500 {"error": "Internal server error."} for exceptions no handler took.

    Registered innermost, inside the header and CORS middleware. Tracebacks
    go to the log only.
    """

    async def dispatch(self, request: Request, call_next: Callable):
        try:
            return await call_next(request)
        except Exception:
            logger.exception("Unhandled error on %s %s", request.method, request.url.path)
            return JSONResponse(status_code=500, content={"error": "Internal server error."})


class OriginGuardMiddleware(BaseHTTPMiddleware):
    """403 for requests whose Origin is not allowed. Empty list allows all."""

    def __init__(self, app, allowed_origins: List[str]):
        super().__init__(app)
        self._allowed = set(allowed_origins)

    async def dispatch(self, request: Request, call_next: Callable):
        origin = request.headers.get("origin")
        if origin and self._allowed and origin not in self._allowed:
            logger.warning("Blocked request from disallowed origin %s", origin)
            return _error_response(OriginNotAllowedError("Origin not allowed."))
        return await call_next(request)


class BodySizeLimitMiddleware(BaseHTTPMiddleware):
    """413 when Content-Length exceeds the configured limit."""

    def __init__(self, app, max_bytes: int):
        super().__init__(app)
        self._max_bytes = max_bytes

    async def dispatch(self, request: Request, call_next: Callable):
        content_length = request.headers.get("content-length")
        if content_length and content_length.isdigit() and int(content_length) > self._max_bytes:
            return _error_response(PayloadTooLargeError("Request body too large."))
        return await call_next(request)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable):
        response: Response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """
    Attach all middleware. Starlette runs the last added first, so the
    order below is: security headers -> CORS -> origin guard -> body limit
    -> unhandled errors.
    """
    allowed = settings.allowed_origins_list

    app.add_middleware(UnhandledErrorMiddleware)
    app.add_middleware(BodySizeLimitMiddleware, max_bytes=settings.max_body_bytes)
    app.add_middleware(OriginGuardMiddleware, allowed_origins=allowed)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed or ["*"],
        allow_credentials=False,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
    app.add_middleware(SecurityHeadersMiddleware)
