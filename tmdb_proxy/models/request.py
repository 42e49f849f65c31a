"""
Incoming request model.

Encapsulates all data required to route and forward a proxy request.
"""

from typing import Dict

from pydantic import BaseModel, Field


class ClientInfo(BaseModel):
    """Opaque client metadata supplied by the hosting edge."""

    ip: str = "unknown"
    country: str = "unknown"


class IncomingRequest(BaseModel):
    """
    Snapshot of an incoming request.

    This model decouples the forwarding layer from Starlette's Request object.
    ``path`` is percent-decoded and used for routing; ``raw_path`` is what
    gets sent upstream.
    """

    method: str
    path: str
    raw_path: str
    query_string: str = ""
    query_params: Dict[str, str] = Field(default_factory=dict)
    headers: Dict[str, str] = Field(default_factory=dict)
    body: bytes = b""
    client: ClientInfo = Field(default_factory=ClientInfo)

    @property
    def has_body(self) -> bool:
        return self.method.upper() not in ("GET", "HEAD")
