"""
Custom exception classes.

Represent errors raised while routing and forwarding a request.
"""

import logging
from typing import List, Optional

from fastapi import Request, status
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .headers import CORS_HEADERS, NO_CACHE
from .request_context import get_request_id

logger = logging.getLogger(__name__)


class ProxyError(Exception):
    """Base exception class for the proxy."""

    pass


class ClientError(ProxyError):
    """
    Missing key or unknown path.

    Always rendered as the plain 404 so scanners cannot tell a protected
    endpoint from an absent one.
    """

    def __init__(self, reason: str = "not found"):
        self.reason = reason
        super().__init__(reason)


class UpstreamError(ProxyError):
    """Raised when TMDB answers with a non-2xx status."""

    def __init__(self, status_code: int):
        self.status_code = status_code
        super().__init__(f"Upstream returned HTTP {status_code}")


class NetworkError(ProxyError):
    """Timeout, DNS or connection failure talking to TMDB."""

    def __init__(self, cause: Exception):
        self.cause = cause
        detail = str(cause) or type(cause).__name__
        super().__init__(detail)


class RetryExhaustedError(ProxyError):
    """Raised when every image fetch attempt has failed."""

    def __init__(self, attempts: List, last_error: Optional[ProxyError]):
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"Failed after {len(attempts)} attempts: {last_error}")

    @property
    def network_failure(self) -> bool:
        """True when the final failure was not an HTTP status from TMDB."""
        return not isinstance(self.last_error, UpstreamError)


# ===========================================
# Exception Handlers
# ===========================================


def not_found_response() -> PlainTextResponse:
    return PlainTextResponse("Not Found", status_code=404, headers=dict(CORS_HEADERS))


async def global_exception_handler(request: Request, exc: Exception):
    """
    Catch-all handler for unhandled exceptions.

    The exception text is logged but never returned; it may carry the
    upstream URL and with it the API key.
    """
    logger.error(
        f"Global exception handler caught: {type(exc).__name__}",
        exc_info=True,
        extra={
            "path": request.url.path,
            "method": request.method,
        },
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Internal Server Error",
            "message": "Unexpected error while handling the request",
            "request_id": getattr(request.state, "request_id", None) or get_request_id(),
        },
        headers={**CORS_HEADERS, "Cache-Control": NO_CACHE},
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """
    Handler for HTTPException.

    Methods outside the catch-all route (TRACE, CONNECT, custom verbs)
    get the same masked 404 as an unknown path.
    """
    if exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
        return not_found_response()
    headers = dict(exc.headers or {})
    headers.update(CORS_HEADERS)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail, "message": exc.detail},
        headers=headers,
    )

