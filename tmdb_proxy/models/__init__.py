"""
Data model definitions package.

Aggregates Pydantic models for use in other modules.
"""

from .request import ClientInfo, IncomingRequest
from .route import RouteDecision, RouteKind
from .schemas import AdminClientInfo, AdminStatusResponse, ErrorEnvelope, HealthResponse
from .upstream import AttemptRecord, UpstreamRequest, UpstreamResult

__all__ = [
    "ClientInfo",
    "IncomingRequest",
    "RouteDecision",
    "RouteKind",
    "AdminClientInfo",
    "AdminStatusResponse",
    "ErrorEnvelope",
    "HealthResponse",
    "AttemptRecord",
    "UpstreamRequest",
    "UpstreamResult",
]
