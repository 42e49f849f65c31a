"""
Where: tmdb_proxy/lifecycle.py
What: Startup/shutdown orchestration for shared resources.
Why: Keep main.py focused on app assembly.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from .config import ProxyConfig
from .core.cache_policy import CachePolicy
from .core.http_client import HttpClientFactory
from .services.forwarder import UpstreamForwarder
from .services.retry import RetryController, RetryPolicy
from .services.router import Router
from .services.upstream import UpstreamClient

logger = logging.getLogger("tmdb_proxy.main")


@asynccontextmanager
async def manage_lifespan(app: FastAPI, proxy_config: ProxyConfig) -> AsyncIterator[None]:
    """Manage application lifecycle."""
    factory = HttpClientFactory(proxy_config)
    factory.configure_global_settings()
    client = factory.create_async_client(timeout=proxy_config.API_REQUEST_TIMEOUT)

    try:
        retry_policy = RetryPolicy.from_config(proxy_config)
        forwarder = UpstreamForwarder(
            upstream=UpstreamClient(client),
            retry=RetryController(retry_policy),
            cache_policy=CachePolicy.from_config(proxy_config),
            config=proxy_config,
        )

        app.state.config = proxy_config
        app.state.http_client = client
        app.state.router = Router()
        app.state.forwarder = forwarder

        logger.info(
            "Proxy initialized",
            extra={
                "image_upstream": proxy_config.image_base_url,
                "api_upstream": proxy_config.api_base_url,
                "image_max_attempts": retry_policy.max_attempts,
            },
        )
        yield
    finally:
        logger.info("Proxy shutting down, closing http client.")
        await client.aclose()
