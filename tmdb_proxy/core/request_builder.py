"""
Request builder.

Turns a Starlette request into the IncomingRequest snapshot the router
and forwarder work on.
"""

from typing import Mapping, Optional, Sequence

from fastapi import Request

from ..models.request import ClientInfo, IncomingRequest

UNKNOWN = "unknown"


def resolve_client_info(
    headers: Mapping[str, str],
    peer_host: Optional[str],
    country_headers: Sequence[str] = (),
) -> ClientInfo:
    """
    Best-effort client IP and country.

    IP: eo-connecting-ip, then the first x-forwarded-for hop, then the
    socket peer. Country: first configured header with a value.
    """
    ip = headers.get("eo-connecting-ip")
    if not ip:
        forwarded = headers.get("x-forwarded-for", "")
        ip = forwarded.split(",")[0].strip()
    if not ip:
        ip = peer_host or UNKNOWN

    country = UNKNOWN
    for name in country_headers:
        value = headers.get(name)
        if value:
            country = value
            break

    return ClientInfo(ip=ip, country=country)


def build_incoming_request(
    request: Request, body: bytes, country_headers: Sequence[str] = ()
) -> IncomingRequest:
    raw_path_bytes = request.scope.get("raw_path")
    raw_path = raw_path_bytes.decode("latin-1") if raw_path_bytes else request.url.path

    return IncomingRequest(
        method=request.method.upper(),
        path=request.url.path,
        raw_path=raw_path,
        query_string=request.url.query,
        query_params=dict(request.query_params),
        headers=dict(request.headers),
        body=body,
        client=resolve_client_info(
            request.headers,
            request.client.host if request.client else None,
            country_headers,
        ),
    )
