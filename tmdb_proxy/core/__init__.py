"""
Core logic package.

Provides shared helpers such as API key handling, header filtering and
cache hints.
"""

from .api_key import extract_api_key, is_admin_key
from .cache_policy import CachePolicy
from .request_builder import build_incoming_request

__all__ = [
    "extract_api_key",
    "is_admin_key",
    "CachePolicy",
    "build_incoming_request",
]
