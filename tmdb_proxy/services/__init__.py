"""
Services package.

Provides routing, retry and upstream forwarding.
"""

from .forwarder import UpstreamForwarder
from .retry import RetryController, RetryPolicy
from .router import Router

__all__ = [
    "UpstreamForwarder",
    "RetryController",
    "RetryPolicy",
    "Router",
]
