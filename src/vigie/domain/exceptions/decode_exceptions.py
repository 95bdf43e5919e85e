"""
Payload decoding exceptions.
"""

from vigie.domain.exceptions.base_exceptions import VigieException


class DecodeError(VigieException):
    """Block or transaction payload is malformed."""
