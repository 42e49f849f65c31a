"""
TMDB Edge Proxy - application assembly

Forwards /t/p/* to the TMDB image CDN and /3/* to the TMDB REST API,
answers health/admin probes locally and disguises the root as a 404.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, Response

from . import __version__
from .api.deps import ConfigDep, ForwarderDep, RouterDep
from .config import ProxyConfig, config
from .core.disconnect import ClientDisconnected, run_until_disconnected
from .core.headers import CORS_HEADERS
from .core.logging_config import setup_proxy_logging
from .core.request_builder import build_incoming_request
from .exceptions import register_exception_handlers
from .lifecycle import manage_lifespan
from .middleware import request_context_middleware

logger = logging.getLogger("tmdb_proxy.main")

# Other methods never reach the router and are answered with the masked 404.
PROXY_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]

# nginx convention for "client closed request"; never reaches a client.
CLIENT_CLOSED_REQUEST = 499


async def proxy_handler(
    request: Request,
    path: str,
    proxy_config: ConfigDep,
    router: RouterDep,
    forwarder: ForwarderDep,
):
    """
    Catch-all route: classify the request and forward it.
    """
    body = await request.body()
    incoming = build_incoming_request(request, body, proxy_config.COUNTRY_HEADERS)

    decision = router.decide(incoming.method, incoming.path)
    request.state.route_kind = decision.kind.value

    try:
        return await run_until_disconnected(
            forwarder.forward(decision, incoming), request.receive
        )
    except ClientDisconnected:
        return Response(status_code=CLIENT_CLOSED_REQUEST, headers=dict(CORS_HEADERS))


def create_app(app_config: Optional[ProxyConfig] = None) -> FastAPI:
    """Build the ASGI app for the given config."""
    app_config = app_config or config

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        async with manage_lifespan(app, app_config):
            yield

    # Built-in docs would reveal the service; /docs falls through to 404.
    app = FastAPI(
        title="TMDB Edge Proxy",
        version=__version__,
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.middleware("http")(request_context_middleware)
    register_exception_handlers(app)
    app.add_api_route("/{path:path}", proxy_handler, methods=PROXY_METHODS)
    return app


setup_proxy_logging(config)
app = create_app()


def run() -> None:
    """Console entrypoint."""
    import uvicorn

    host, _, port = config.PROXY_BIND_ADDR.rpartition(":")
    if config.UVICORN_WORKERS > 1:
        uvicorn.run(
            "tmdb_proxy.main:app",
            host=host or "0.0.0.0",
            port=int(port),
            workers=config.UVICORN_WORKERS,
            log_config=None,
        )
    else:
        uvicorn.run(app, host=host or "0.0.0.0", port=int(port), log_config=None)


if __name__ == "__main__":
    run()
