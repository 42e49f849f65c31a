"""
Upstream Client Service

Sends a single request to a TMDB host through the shared httpx client and
reads the full body before returning.
"""

import logging

import httpx

from ..core.exceptions import NetworkError
from ..models.upstream import UpstreamRequest, UpstreamResult

logger = logging.getLogger("tmdb_proxy.upstream")


class UpstreamClient:
    def __init__(self, client: httpx.AsyncClient):
        """
        Args:
            client: Shared httpx.AsyncClient
        """
        self.client = client

    async def send(self, upstream_request: UpstreamRequest) -> UpstreamResult:
        """
        Perform one upstream call.

        Args:
            upstream_request: the call to make

        Returns:
            UpstreamResult with the body fully read, whatever the status

        Raises:
            NetworkError: timeout, DNS or connection failure
        """
        try:
            response = await self.client.request(
                upstream_request.method,
                upstream_request.url,
                headers=upstream_request.headers,
                content=upstream_request.body,
                timeout=upstream_request.timeout,
            )
        except httpx.RequestError as e:
            # The URL may carry api_key, so only the host is logged.
            logger.warning(
                "Upstream request failed",
                extra={
                    "upstream_host": httpx.URL(upstream_request.url).host,
                    "error_type": type(e).__name__,
                },
            )
            raise NetworkError(e) from e

        return UpstreamResult(
            status_code=response.status_code,
            headers=list(response.headers.items()),
            content=response.content,
        )
