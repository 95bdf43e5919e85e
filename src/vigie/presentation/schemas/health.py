"""
Relay health schemas.
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class EndpointStatus(BaseModel):
    """Health of one managed endpoint."""

    url: str
    state: str
    consecutive_failures: int
    consecutive_successes: int
    last_outcome_at: Optional[float] = None
    pinned: bool = False


class RpcHealthResponse(BaseModel):
    """
    Response from GET /api/health/rpc.
    """

    status: str = Field(..., description="healthy / degraded / unavailable")
    active: str = Field(..., description="Endpoint selection currently returns")
    endpoints: List[EndpointStatus]
    fail_open_resets: int = 0
    latest_height: Optional[int] = Field(
        None, description="Height reported by a live status probe"
    )
    network: Optional[str] = Field(None, description="Network of the probed node")
    probe_error: Optional[str] = Field(None, description="Live probe failure")
