"""
API schemas.
"""

from vigie.presentation.schemas.health import EndpointStatus, RpcHealthResponse
from vigie.presentation.schemas.rpc import (
    RpcErrorBody,
    RpcProxyRequest,
    RpcProxyResponse,
)

__all__ = [
    "RpcProxyRequest",
    "RpcProxyResponse",
    "RpcErrorBody",
    "RpcHealthResponse",
    "EndpointStatus",
]
