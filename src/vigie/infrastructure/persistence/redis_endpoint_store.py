"""
Redis-based endpoint store.

Implements the EndpointStore protocol for deployments where several
relay processes share one last-known-good endpoint.
"""

from typing import Optional

import redis

from vigie.config.settings import RedisConfig
from vigie.domain.exceptions import PersistenceError

KEY_PREFIX = "vigie:endpoint:"


class RedisEndpointStore:
    """
    Redis implementation of the endpoint store.

    Keys are namespaced under `vigie:endpoint:`. Calls block for at
    most `socket_timeout` seconds, so the registry writes from a worker
    thread.
    """

    blocking = True

    def __init__(
        self,
        redis_client: Optional[redis.Redis] = None,
        config: Optional[RedisConfig] = None,
    ):
        """
        Initialize Redis endpoint store.

        Args:
            redis_client: Optional Redis client. If None, creates from config.
            config: Redis connection options
        """
        self.redis = redis_client
        self._config = config or RedisConfig()

    def _ensure_connection(self) -> redis.Redis:
        """Ensure Redis connection is established."""
        if self.redis is None:
            self.redis = redis.Redis(
                host=self._config.host,
                port=self._config.port,
                db=self._config.db,
                password=self._config.password,
                socket_timeout=self._config.socket_timeout,
                socket_connect_timeout=self._config.socket_timeout,
                decode_responses=True,
            )
        return self.redis

    def get(self, key: str) -> Optional[str]:
        """
        Get stored URL.

        Args:
            key: Storage key

        Returns:
            Stored URL or None if not found
        """
        try:
            value = self._ensure_connection().get(f"{KEY_PREFIX}{key}")
        except redis.RedisError as e:
            raise PersistenceError(f"Redis read failed: {e}", {"key": key}) from e

        if isinstance(value, bytes):
            value = value.decode("utf-8")
        return value

    def set(self, key: str, value: str) -> None:
        """
        Store URL.

        Args:
            key: Storage key
            value: Endpoint URL
        """
        try:
            self._ensure_connection().set(f"{KEY_PREFIX}{key}", value)
        except redis.RedisError as e:
            raise PersistenceError(f"Redis write failed: {e}", {"key": key}) from e

    def close(self) -> None:
        """Close Redis connection."""
        if self.redis:
            self.redis.close()
