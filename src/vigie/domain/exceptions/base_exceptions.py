"""
Base exception for Vigie.
"""

from typing import Optional


class VigieException(Exception):
    """Base exception for Vigie operations."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)
