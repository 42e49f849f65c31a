"""
Where: tmdb_proxy/middleware.py
What: HTTP middleware for request ids, CORS enforcement and access logging.
Why: Isolate cross-cutting request concerns from app assembly.
"""

import logging
import re
import time

from fastapi import Request

from .core.api_key import redact_query
from .core.headers import ALLOW_ORIGIN
from .core.request_context import clear_request_id, generate_request_id, set_request_id

logger = logging.getLogger("tmdb_proxy.main")

REQUEST_ID_HEADER = "X-Request-Id"
_REQUEST_ID_RE = re.compile(r"^[A-Za-z0-9._-]{1,128}$")


async def request_context_middleware(request: Request, call_next):
    """Middleware for Request ID propagation and structured access logging."""
    start_time = time.perf_counter()

    incoming_id = request.headers.get(REQUEST_ID_HEADER)
    if incoming_id and _REQUEST_ID_RE.match(incoming_id):
        req_id = set_request_id(incoming_id)
    else:
        req_id = generate_request_id()
    request.state.request_id = req_id

    try:
        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = req_id
        response.headers.setdefault(ALLOW_ORIGIN, "*")

        process_time_ms = round((time.perf_counter() - start_time) * 1000, 2)

        logger.info(
            f"{request.method} {request.url.path} {response.status_code}",
            extra={
                "request_id": req_id,
                "method": request.method,
                "path": request.url.path,
                "query": redact_query(request.url.query),
                "route": getattr(request.state, "route_kind", None),
                "status": response.status_code,
                "latency_ms": process_time_ms,
                "client_ip": request.client.host if request.client else None,
            },
        )

        return response
    finally:
        clear_request_id()
