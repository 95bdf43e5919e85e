"""
Vigie - resilient node access for chain explorers and bridges.

Endpoint failover registry, polling block/tx subscriptions and bridge
attestation verification.

Usage:
    >>> from vigie import EndpointRegistry, RpcTransport, ChainClient, PollingEngine
"""

__version__ = "0.1.0"

from vigie.application.attestations import (  # noqa: E402
    derive_signatures,
    has_quorum,
    verify_attestations,
)
from vigie.application.subscriptions import PollingEngine  # noqa: E402
from vigie.infrastructure.chain import ChainClient  # noqa: E402
from vigie.infrastructure.registry import EndpointRegistry  # noqa: E402
from vigie.infrastructure.transport import RpcTransport  # noqa: E402

__all__ = [
    "__version__",
    "EndpointRegistry",
    "RpcTransport",
    "ChainClient",
    "PollingEngine",
    "verify_attestations",
    "derive_signatures",
    "has_quorum",
]
