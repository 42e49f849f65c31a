"""
Upstream Forwarder Service

Turns a RouteDecision and an IncomingRequest into the response sent back to
the client. Only the image and API routes reach TMDB; everything else is
answered locally.
"""

import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable, Dict, Iterable, Optional
from urllib.parse import urlencode

from fastapi.responses import JSONResponse, PlainTextResponse, Response

from ..config import ProxyConfig
from ..core.api_key import extract_api_key, is_admin_key, redact_secret
from ..core.cache_policy import CachePolicy
from ..core.exceptions import (
    ClientError,
    NetworkError,
    RetryExhaustedError,
    not_found_response,
)
from ..core.headers import (
    ALLOW_ORIGIN,
    CORS_HEADERS,
    NO_CACHE,
    PREFLIGHT_HEADERS,
    build_outbound_headers,
    filter_response_headers,
)
from ..core.pages import DISGUISE_PAGE
from ..models.request import IncomingRequest
from ..models.route import RouteDecision, RouteKind
from ..models.schemas import AdminClientInfo, AdminStatusResponse, ErrorEnvelope, HealthResponse
from ..models.upstream import UpstreamRequest, UpstreamResult
from .retry import RetryController, RetryState
from .upstream import UpstreamClient

logger = logging.getLogger("tmdb_proxy.forwarder")

ENDPOINTS = {
    "images": "/t/p/{size}/{path}",
    "api": "/3/{endpoint}",
    "health": "/health",
    "admin": "/admin/status",
}


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _plain(body: str, status_code: int, cache_control: Optional[str] = NO_CACHE) -> Response:
    headers = dict(CORS_HEADERS)
    if cache_control:
        headers["Cache-Control"] = cache_control
    return PlainTextResponse(body, status_code=status_code, headers=headers)


def _copy_response(
    result: UpstreamResult, drop: Iterable[str], overrides: Dict[str, str]
) -> Response:
    """Rebuild an upstream response with filtered headers and forced overrides."""
    response = Response(content=result.content, status_code=result.status_code)
    for name, value in filter_response_headers(result.headers, drop=drop):
        response.headers.append(name, value)
    for name, value in overrides.items():
        response.headers[name] = value
    return response


class UpstreamForwarder:
    def __init__(
        self,
        upstream: UpstreamClient,
        retry: RetryController,
        cache_policy: CachePolicy,
        config: ProxyConfig,
    ):
        """
        Args:
            upstream: client for single upstream calls
            retry: retry controller for the image route
            cache_policy: advisory Cache-Control selection
            config: ProxyConfig instance
        """
        self.upstream = upstream
        self.retry = retry
        self.cache_policy = cache_policy
        self.config = config
        self._handlers: Dict[RouteKind, Callable[[IncomingRequest], Awaitable[Response]]] = {
            RouteKind.PREFLIGHT: self._preflight,
            RouteKind.HEALTH: self._health,
            RouteKind.ADMIN_STATUS: self._admin_status,
            RouteKind.ROOT_DISGUISE: self._root_disguise,
            RouteKind.IMAGE_PROXY: self._image_proxy,
            RouteKind.API_PROXY: self._api_proxy,
            RouteKind.NOT_FOUND: self._not_found,
        }

    async def forward(self, decision: RouteDecision, request: IncomingRequest) -> Response:
        """
        Produce the response for a routed request.

        Every response carries Access-Control-Allow-Origin: *.
        """
        try:
            response = await self._handlers[decision.kind](request)
        except ClientError as e:
            logger.info("Request masked as 404", extra={"path": request.path, "reason": e.reason})
            response = not_found_response()
        response.headers[ALLOW_ORIGIN] = "*"
        return response

    # ------------------------------------------------------------------
    # Local routes
    # ------------------------------------------------------------------

    async def _preflight(self, request: IncomingRequest) -> Response:
        return Response(status_code=200, headers=dict(PREFLIGHT_HEADERS))

    async def _health(self, request: IncomingRequest) -> Response:
        body = HealthResponse(
            platform=self.config.PLATFORM_NAME,
            timestamp=_utc_now(),
            client_ip=request.client.ip,
            country=request.client.country,
        )
        return JSONResponse(
            content=body.model_dump(),
            headers={**CORS_HEADERS, "Cache-Control": NO_CACHE},
        )

    async def _admin_status(self, request: IncomingRequest) -> Response:
        api_key = extract_api_key(request.headers, request.query_params)
        if not is_admin_key(api_key, self.config.ADMIN_KEY_LENGTH):
            # Indistinguishable from an unknown path.
            raise ClientError("admin key rejected")

        body = AdminStatusResponse(
            version=self.config.SERVICE_VERSION,
            platform=self.config.PLATFORM_NAME,
            endpoints=ENDPOINTS,
            client_info=AdminClientInfo(ip=request.client.ip, country=request.client.country),
            timestamp=_utc_now(),
        )
        return JSONResponse(
            content=body.model_dump(),
            headers={**CORS_HEADERS, "Cache-Control": NO_CACHE},
        )

    async def _root_disguise(self, request: IncomingRequest) -> Response:
        return Response(
            content=DISGUISE_PAGE,
            status_code=404,
            media_type="text/html; charset=utf-8",
            headers=dict(CORS_HEADERS),
        )

    async def _not_found(self, request: IncomingRequest) -> Response:
        return not_found_response()

    # ------------------------------------------------------------------
    # Image route
    # ------------------------------------------------------------------

    def _image_url(self, request: IncomingRequest) -> str:
        url = f"{self.config.image_base_url}{request.raw_path}"
        if request.query_string:
            url = f"{url}?{request.query_string}"
        return url

    def _image_request_factory(self, request: IncomingRequest):
        url = self._image_url(request)

        def build(attempt: int, timeout: float) -> UpstreamRequest:
            # Fresh headers per attempt.
            headers = build_outbound_headers(
                request.headers,
                {"User-Agent": self.config.PROXY_USER_AGENT, "Accept": "image/*"},
            )
            return UpstreamRequest(
                method=request.method,
                url=url,
                headers=headers,
                body=request.body if request.has_body else None,
                timeout=timeout,
            )

        return build

    async def _image_proxy(self, request: IncomingRequest) -> Response:
        try:
            outcome = await self.retry.run(
                self._image_request_factory(request), self.upstream.send
            )
        except RetryExhaustedError as e:
            logger.error(
                "Image proxy failed",
                extra={
                    "path": request.path,
                    "attempts": [a.describe() for a in e.attempts],
                    "network_failure": e.network_failure,
                },
            )
            if e.network_failure:
                return _plain("Service Unavailable", 503)
            return _plain("Bad Gateway", 502)

        if outcome.state == RetryState.NOT_FOUND:
            return _plain("Not Found", 404)

        result = outcome.result
        return _copy_response(
            result,
            drop=("cache-control", "access-control-allow-origin"),
            overrides={
                "Content-Type": result.header("content-type", "image/jpeg"),
                "Cache-Control": self.cache_policy.image_cache_control(),
                "X-Proxy-Attempts": str(len(outcome.attempts)),
            },
        )

    # ------------------------------------------------------------------
    # API route
    # ------------------------------------------------------------------

    def _api_url(self, request: IncomingRequest, api_key: str) -> str:
        query = request.query_string
        # A caller-supplied api_key is never overwritten.
        if "api_key" not in request.query_params:
            injected = urlencode({"api_key": api_key})
            query = f"{query}&{injected}" if query else injected
        return f"{self.config.api_base_url}{request.raw_path}?{query}"

    async def _api_proxy(self, request: IncomingRequest) -> Response:
        api_key = extract_api_key(request.headers, request.query_params)
        if not api_key:
            raise ClientError("missing api key")

        upstream_request = UpstreamRequest(
            method=request.method,
            url=self._api_url(request, api_key),
            headers=build_outbound_headers(
                request.headers,
                {"Accept": "application/json", "User-Agent": self.config.PROXY_USER_AGENT},
            ),
            body=request.body if request.has_body else None,
            timeout=self.config.API_REQUEST_TIMEOUT,
        )

        try:
            result = await self.upstream.send(upstream_request)
        except NetworkError as e:
            envelope = ErrorEnvelope(
                error="API request failed",
                message=redact_secret(str(e), api_key),
            )
            logger.error(
                "API proxy error",
                extra={"path": request.path, "error_type": type(e.cause).__name__},
            )
            return JSONResponse(
                status_code=502,
                content=envelope.model_dump(),
                headers={**CORS_HEADERS, "Cache-Control": NO_CACHE},
            )

        logger.debug(
            "API response",
            extra={"path": request.path, "upstream_status": result.status_code},
        )
        return _copy_response(
            result,
            drop=("cache-control", "content-type", "access-control-allow-origin"),
            overrides={
                "Content-Type": "application/json",
                "Cache-Control": self.cache_policy.api_cache_control(request.path),
            },
        )

