"""
Domain exceptions.
"""

from vigie.domain.exceptions.base_exceptions import VigieException
from vigie.domain.exceptions.decode_exceptions import DecodeError
from vigie.domain.exceptions.registry_exceptions import (
    PersistenceError,
    RegistryExhaustedError,
    UnknownEndpointError,
)
from vigie.domain.exceptions.transport_exceptions import (
    RelayError,
    RelayRejectedError,
    RPCError,
    TransportError,
    TransportTimeoutError,
)

__all__ = [
    "VigieException",
    "TransportError",
    "TransportTimeoutError",
    "RelayError",
    "RelayRejectedError",
    "RPCError",
    "RegistryExhaustedError",
    "UnknownEndpointError",
    "PersistenceError",
    "DecodeError",
]
