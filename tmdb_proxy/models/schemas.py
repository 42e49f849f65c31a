"""
Pydantic schema definitions.

JSON bodies produced by the proxy itself.
"""

from typing import Dict

from pydantic import BaseModel


class HealthResponse(BaseModel):
    """Liveness probe body."""

    status: str = "ok"
    platform: str
    timestamp: str
    client_ip: str
    country: str


class AdminClientInfo(BaseModel):
    ip: str
    country: str


class AdminStatusResponse(BaseModel):
    """Admin status block."""

    status: str = "active"
    version: str
    platform: str
    endpoints: Dict[str, str]
    client_info: AdminClientInfo
    timestamp: str


class ErrorEnvelope(BaseModel):
    """JSON error body for API-route failures."""

    error: str
    message: str
