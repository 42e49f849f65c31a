"""
Header handling shared by every route.

Builds outbound upstream headers and filters upstream response headers.
"""

from typing import Dict, Iterable, List, Mapping, Optional, Tuple

ALLOW_ORIGIN = "Access-Control-Allow-Origin"

CORS_HEADERS: Dict[str, str] = {ALLOW_ORIGIN: "*"}

PREFLIGHT_HEADERS: Dict[str, str] = {
    ALLOW_ORIGIN: "*",
    "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization, X-API-Key",
    "Cache-Control": "no-cache",
}

NO_CACHE = "no-cache"

# RFC 7230 hop-by-hop headers plus framing headers the server recomputes.
HOP_BY_HOP = frozenset(
    {
        "connection",
        "keep-alive",
        "proxy-authenticate",
        "proxy-authorization",
        "te",
        "trailer",
        "trailers",
        "transfer-encoding",
        "upgrade",
        "content-length",
    }
)

# Removed from every outbound request.
OUTBOUND_STRIP = HOP_BY_HOP | {"host", "accept-encoding"}

# httpx has already decoded the body, so the upstream encoding no longer applies.
RESPONSE_STRIP = HOP_BY_HOP | {"content-encoding"}


def build_outbound_headers(
    incoming: Mapping[str, str], overrides: Optional[Mapping[str, str]] = None
) -> Dict[str, str]:
    """
    Copy the client's headers for an upstream call.

    Host and Accept-Encoding are dropped; overrides replace any
    case-variant of the same name.
    """
    headers = {k: v for k, v in incoming.items() if k.lower() not in OUTBOUND_STRIP}
    for name, value in (overrides or {}).items():
        for existing in [k for k in headers if k.lower() == name.lower()]:
            del headers[existing]
        headers[name] = value
    return headers


def filter_response_headers(
    upstream: Iterable[Tuple[str, str]], drop: Iterable[str] = ()
) -> List[Tuple[str, str]]:
    """
    Copy upstream response headers, skipping hop-by-hop and the names in drop.

    Returned as pairs so repeated headers such as Set-Cookie survive.
    """
    skip = RESPONSE_STRIP | {d.lower() for d in drop}
    return [(name, value) for name, value in upstream if name.lower() not in skip]
