"""
Endpoint monitoring.
"""

from vigie.infrastructure.monitoring.health_prober import EndpointHealthProber

__all__ = ["EndpointHealthProber"]
