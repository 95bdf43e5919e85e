"""
Endpoint persistence backends.
"""

from vigie.infrastructure.persistence.endpoint_store import (
    EndpointStore,
    FileEndpointStore,
    InMemoryEndpointStore,
)
from vigie.infrastructure.persistence.redis_endpoint_store import RedisEndpointStore


def create_endpoint_store(settings) -> EndpointStore:
    """
    Build the endpoint store selected in configuration.

    Args:
        settings: VigieConfig instance

    Returns:
        EndpointStore implementation
    """
    backend = settings.persistence.backend
    if backend == "file":
        return FileEndpointStore(settings.persistence.file_path)
    if backend == "redis":
        return RedisEndpointStore(config=settings.redis)
    return InMemoryEndpointStore()


__all__ = [
    "EndpointStore",
    "InMemoryEndpointStore",
    "FileEndpointStore",
    "RedisEndpointStore",
    "create_endpoint_store",
]
