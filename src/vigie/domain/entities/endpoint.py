"""
Endpoint entity - A remote node address and its observed health.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class EndpointHealth(str, Enum):
    """Health state of a managed endpoint."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNAVAILABLE = "unavailable"


@dataclass
class Endpoint:
    """
    Endpoint entity.

    Created once per session from configured candidates (plus an
    optional user-supplied URL) and never deleted. Only the registry
    mutates health state and counters.
    """

    url: str
    state: EndpointHealth = EndpointHealth.HEALTHY
    consecutive_failures: int = 0
    consecutive_successes: int = 0
    last_outcome_at: Optional[float] = None
    pinned: bool = False

    def __post_init__(self):
        """Validate endpoint URL."""
        if not self.url:
            raise ValueError("Endpoint URL is required")

        if not self.url.startswith(("http://", "https://")):
            raise ValueError(f"Endpoint URL must be http(s): {self.url}")

        self.url = self.url.rstrip("/")

    @property
    def is_available(self) -> bool:
        """Whether the endpoint may be handed out by selection."""
        return self.state != EndpointHealth.UNAVAILABLE

    def reset(self) -> None:
        """Return to a clean healthy state."""
        self.state = EndpointHealth.HEALTHY
        self.consecutive_failures = 0
        self.consecutive_successes = 0

    def to_dict(self) -> dict:
        """Convert entity to dictionary representation."""
        return {
            "url": self.url,
            "state": self.state.value,
            "consecutive_failures": self.consecutive_failures,
            "consecutive_successes": self.consecutive_successes,
            "last_outcome_at": self.last_outcome_at,
            "pinned": self.pinned,
        }
