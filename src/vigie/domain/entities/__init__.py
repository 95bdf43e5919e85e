"""
Domain entities.
"""

from vigie.domain.entities.endpoint import Endpoint, EndpointHealth

__all__ = ["Endpoint", "EndpointHealth"]
