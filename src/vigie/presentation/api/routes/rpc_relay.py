"""
RPC relay routes.

Forwards JSON-RPC calls to upstream nodes for clients that cannot reach
them directly. Always answers HTTP 200; upstream failures are embedded
in the JSON-RPC `error` member.
"""

from fastapi import APIRouter, Request, status

from vigie.domain.exceptions import RPCError, TransportError
from vigie.infrastructure.transport import (
    RELAY_UNMANAGED_ENDPOINT,
    RELAY_UPSTREAM_ERROR,
)
from vigie.presentation.schemas import RpcErrorBody, RpcProxyRequest, RpcProxyResponse
from vigie.reporter.emojis import Emoji

router = APIRouter(prefix="/api", tags=["rpc"])


@router.post(
    "/rpc-proxy",
    response_model=RpcProxyResponse,
    status_code=status.HTTP_200_OK,
)
async def rpc_proxy(request_data: RpcProxyRequest, req: Request):
    """
    Forward one JSON-RPC call upstream.

    A named `endpoint` must be one the relay itself manages; any other
    is refused with an embedded RELAY_UNMANAGED_ENDPOINT error. Without
    one, the relay's registry selects the endpoint.
    """
    registry = req.app.state.registry
    transport = req.app.state.transport
    reporter = req.app.state.reporter

    endpoint = request_data.endpoint or None
    if endpoint and not registry.contains(endpoint):
        reporter.debug(
            f"{Emoji.NETWORK.RELAY} Refusing unmanaged endpoint {endpoint}",
            context="Relay",
        )
        return RpcProxyResponse(
            id=request_data.id,
            error=RpcErrorBody(
                code=RELAY_UNMANAGED_ENDPOINT,
                message="Endpoint not managed by relay",
                data={"endpoint": endpoint},
            ),
        )

    try:
        result = await transport.execute(
            request_data.method, request_data.params, endpoint=endpoint
        )
    except RPCError as e:
        return RpcProxyResponse(
            id=request_data.id,
            error=RpcErrorBody(code=e.code, message=e.message),
        )
    except TransportError as e:
        return RpcProxyResponse(
            id=request_data.id,
            error=RpcErrorBody(
                code=RELAY_UPSTREAM_ERROR,
                message=e.message,
                data={"endpoint": e.endpoint, **e.details},
            ),
        )

    return RpcProxyResponse(id=request_data.id, result=result)
