"""
Transport-related exceptions.
"""

from typing import Optional

from vigie.domain.exceptions.base_exceptions import VigieException


class TransportError(VigieException):
    """Remote call failed (network, HTTP status, malformed body)."""

    def __init__(
        self,
        message: str,
        endpoint: Optional[str] = None,
        details: Optional[dict] = None,
    ):
        self.endpoint = endpoint
        super().__init__(message, details)


class TransportTimeoutError(TransportError):
    """Remote call exceeded its timeout."""


class RelayError(TransportError):
    """Relay could not reach the upstream node."""


class RPCError(TransportError):
    """Node answered with a well-formed JSON-RPC error."""

    def __init__(
        self,
        message: str,
        code: int,
        endpoint: Optional[str] = None,
        details: Optional[dict] = None,
    ):
        self.code = code
        super().__init__(message, endpoint=endpoint, details=details)


class RelayRejectedError(RelayError):
    """Relay refused to forward to an endpoint it does not manage."""
