"""
Dependency Injection for the proxy API.

Manage request handler dependencies using FastAPI Depends.
"""

from typing import Annotated

from fastapi import Depends, Request

from ..config import ProxyConfig
from ..services.forwarder import UpstreamForwarder
from ..services.router import Router


def get_config(request: Request) -> ProxyConfig:
    return request.app.state.config


def get_router(request: Request) -> Router:
    return request.app.state.router


def get_forwarder(request: Request) -> UpstreamForwarder:
    return request.app.state.forwarder


ConfigDep = Annotated[ProxyConfig, Depends(get_config)]
RouterDep = Annotated[Router, Depends(get_router)]
ForwarderDep = Annotated[UpstreamForwarder, Depends(get_forwarder)]
