"""
Health check endpoints.
"""

from fastapi import APIRouter, Request

from vigie.domain.exceptions import DecodeError, TransportError
from vigie.presentation.schemas import EndpointStatus, RpcHealthResponse

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check():
    """
    Liveness of the relay process.

    Returns:
        Service status
    """
    return {"status": "healthy", "service": "vigie"}


@router.get("/api/health/rpc", response_model=RpcHealthResponse)
async def rpc_health(req: Request, probe: bool = False):
    """
    Endpoint registry snapshot.

    With `probe=true`, also queries `status` on the selected endpoint.
    """
    registry = req.app.state.registry
    stats = registry.get_stats()
    states = {e["state"] for e in stats["endpoints"]}

    if "healthy" in states:
        overall = "healthy"
    elif "degraded" in states:
        overall = "degraded"
    else:
        overall = "unavailable"

    response = RpcHealthResponse(
        status=overall,
        active=stats["active"],
        endpoints=[EndpointStatus(**e) for e in stats["endpoints"]],
        fail_open_resets=stats["fail_open_resets"],
    )

    if probe:
        try:
            node = await req.app.state.chain_client.status()
            response.latest_height = node.latest_height
            response.network = node.network
        except (TransportError, DecodeError) as e:
            response.probe_error = e.message

    return response
