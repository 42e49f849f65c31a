"""
Route decision service.

Classifies a request into a route class from its method and path.

Note:
    FastAPI only sees a single catch-all route; this module decides what
    the request is. Matching is exact or by prefix, never by pattern.
"""

import logging

from ..models.route import RouteDecision, RouteKind

logger = logging.getLogger("tmdb_proxy.router")

HEALTH_PATHS = frozenset({"/health", "/ping"})
ADMIN_STATUS_PATH = "/admin/status"
ROOT_PATHS = frozenset({"/", ""})
IMAGE_PREFIX = "/t/p/"
API_PREFIX = "/3/"


class Router:
    def decide(self, method: str, path: str) -> RouteDecision:
        """
        Resolve the route class for a request.

        Args:
            method: HTTP method (e.g., "GET")
            path: percent-decoded request path (e.g., "/3/movie/550")

        Returns:
            RouteDecision; every input maps to exactly one class
        """
        # Preflight is answered before anything else, on any path.
        if method.upper() == "OPTIONS":
            return RouteDecision(kind=RouteKind.PREFLIGHT)

        if path in HEALTH_PATHS:
            return RouteDecision(kind=RouteKind.HEALTH)

        if path == ADMIN_STATUS_PATH:
            return RouteDecision(kind=RouteKind.ADMIN_STATUS)

        if path in ROOT_PATHS:
            return RouteDecision(kind=RouteKind.ROOT_DISGUISE)

        if path.startswith(IMAGE_PREFIX):
            return RouteDecision(kind=RouteKind.IMAGE_PROXY, path=path)

        if path.startswith(API_PREFIX):
            return RouteDecision(kind=RouteKind.API_PROXY, path=path)

        logger.debug("No route for path", extra={"path": path})
        return RouteDecision(kind=RouteKind.NOT_FOUND)


_default_router = Router()


def decide(method: str, path: str) -> RouteDecision:
    """Module-level shortcut for Router().decide()."""
    return _default_router.decide(method, path)
