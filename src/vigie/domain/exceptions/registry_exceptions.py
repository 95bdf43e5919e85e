"""
Endpoint registry exceptions.
"""

from vigie.domain.exceptions.base_exceptions import VigieException


class RegistryExhaustedError(VigieException):
    """Every candidate endpoint is unavailable."""


class UnknownEndpointError(VigieException):
    """Endpoint URL is not managed by the registry."""


class PersistenceError(VigieException):
    """Last-known-good endpoint could not be read or written."""
