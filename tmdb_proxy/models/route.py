"""
Route decision model.

Result of classifying a request path into a route class.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict


class RouteKind(str, Enum):
    PREFLIGHT = "preflight"
    HEALTH = "health"
    ADMIN_STATUS = "admin_status"
    ROOT_DISGUISE = "root_disguise"
    IMAGE_PROXY = "image_proxy"
    API_PROXY = "api_proxy"
    NOT_FOUND = "not_found"


class RouteDecision(BaseModel):
    """
    Route class resolved for a request.

    ``path`` is the request path passed through unchanged for the proxy
    routes and empty otherwise.
    """

    model_config = ConfigDict(frozen=True)

    kind: RouteKind
    path: str = ""
