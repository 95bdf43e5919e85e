"""
JSON-RPC transport.
"""

from vigie.infrastructure.transport.rpc_transport import (
    RELAY_UNMANAGED_ENDPOINT,
    RELAY_UPSTREAM_ERROR,
    RpcTransport,
)

__all__ = ["RpcTransport", "RELAY_UPSTREAM_ERROR", "RELAY_UNMANAGED_ENDPOINT"]
