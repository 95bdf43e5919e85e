"""
Vigie configuration.
"""

from vigie.config.settings import (
    PersistenceConfig,
    PollingConfig,
    RedisConfig,
    RegistryConfig,
    TransportConfig,
    VigieConfig,
    get_settings,
    load_config,
)

__all__ = [
    "VigieConfig",
    "RegistryConfig",
    "TransportConfig",
    "PollingConfig",
    "PersistenceConfig",
    "RedisConfig",
    "get_settings",
    "load_config",
]
