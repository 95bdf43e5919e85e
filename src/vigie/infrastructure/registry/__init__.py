"""
Endpoint health registry.
"""

from vigie.infrastructure.registry.endpoint_registry import EndpointRegistry

__all__ = ["EndpointRegistry"]
