"""
Proxy configuration definition.

Loads configuration from environment variables and provides a Pydantic model.
Uses pydantic-settings for type safety and defaults.
"""

import sys
from typing import List

from pydantic import Field

from . import __version__
from .core.config import BaseAppConfig


class ProxyConfig(BaseAppConfig):
    """
    Configuration management for the proxy service.
    """

    # Server settings
    UVICORN_WORKERS: int = Field(default=1, description="Number of worker processes")
    PROXY_BIND_ADDR: str = Field(default="0.0.0.0:8000", description="Listen address")

    # Upstream hosts
    UPSTREAM_SCHEME: str = Field(default="https", description="Scheme used for upstream calls")
    IMAGE_UPSTREAM_HOST: str = Field(default="image.tmdb.org", description="Image CDN host")
    API_UPSTREAM_HOST: str = Field(default="api.tmdb.org", description="REST API host")
    PROXY_USER_AGENT: str = Field(
        default="Mozilla/5.0 (compatible; TMDB-Edge-Proxy/1.0)",
        description="User-Agent sent to the upstream",
    )

    # Identity reported by health/admin endpoints
    PLATFORM_NAME: str = Field(default="TMDB Edge Proxy", description="Platform label")
    SERVICE_VERSION: str = Field(default=__version__, description="Reported service version")

    # Admin gate
    ADMIN_KEY_LENGTH: int = Field(default=32, description="Exact API key length for admin access")

    # API route
    API_REQUEST_TIMEOUT: float = Field(default=10.0, description="API upstream timeout (seconds)")

    # Image retry loop
    IMAGE_RETRY_MAX_ATTEMPTS: int = Field(default=3, ge=1, description="Max image fetch attempts")
    IMAGE_RETRY_BASE_DELAY: float = Field(default=0.5, ge=0, description="Backoff base (seconds)")
    IMAGE_RETRY_MAX_DELAY: float = Field(default=5.0, ge=0, description="Backoff cap (seconds)")
    IMAGE_ATTEMPT_TIMEOUT: float = Field(
        default=10.0, gt=0, description="Timeout of the first image attempt (seconds)"
    )
    IMAGE_ATTEMPT_TIMEOUT_STEP: float = Field(
        default=0.0, ge=0, description="Timeout added per subsequent attempt (seconds)"
    )
    IMAGE_REQUEST_DEADLINE: float = Field(
        default=35.0, gt=0, description="Overall cap for one image request (seconds)"
    )

    # Advisory cache hints (seconds)
    IMAGE_CACHE_MAX_AGE: int = Field(default=604800, description="Image max-age")
    CACHE_TTL_CONFIGURATION: int = Field(default=3600, description="/configuration max-age")
    CACHE_TTL_SEARCH: int = Field(default=300, description="/search max-age")
    CACHE_TTL_POPULAR: int = Field(default=1800, description="/popular max-age")
    CACHE_TTL_DEFAULT: int = Field(default=600, description="Default API max-age")

    # Edge platform metadata
    COUNTRY_HEADERS: List[str] = Field(
        default=["eo-client-ipcountry", "cf-ipcountry", "x-country-code"],
        description="Headers consulted (in order) for the client country",
    )

    # Connection pool
    HTTP_MAX_CONNECTIONS: int = Field(default=100, description="Max pooled connections")
    HTTP_MAX_KEEPALIVE: int = Field(default=20, description="Max keep-alive connections")

    @property
    def image_base_url(self) -> str:
        return f"{self.UPSTREAM_SCHEME}://{self.IMAGE_UPSTREAM_HOST}"

    @property
    def api_base_url(self) -> str:
        return f"{self.UPSTREAM_SCHEME}://{self.API_UPSTREAM_HOST}"


# Load config as a singleton.
# pydantic-settings reads environment variables during instantiation.
try:
    config = ProxyConfig()
except Exception as e:
    sys.stderr.write(f"Failed to load configuration: {e}\n")
    raise
