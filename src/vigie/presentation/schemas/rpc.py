"""
RPC relay schemas.

Mirrors the JSON-RPC contract of the node and of the browser-side relay.
"""

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field


class RpcProxyRequest(BaseModel):
    """
    Request to forward a JSON-RPC call.

    Corresponds to: POST /api/rpc-proxy
    """

    method: str = Field(..., min_length=1, description="RPC method name")
    params: Optional[Union[Dict[str, Any], List[Any]]] = Field(
        default=None, description="RPC params"
    )
    id: Optional[Union[int, str]] = Field(default=None, description="Request id")
    endpoint: Optional[str] = Field(
        default=None,
        description="Preferred upstream endpoint (must be managed by the relay)",
    )


class RpcErrorBody(BaseModel):
    """JSON-RPC error member."""

    code: int = Field(..., description="Error code")
    message: str = Field(..., description="Error message")
    data: Optional[Any] = Field(None, description="Extra error data")


class RpcProxyResponse(BaseModel):
    """
    Relay answer. Always HTTP 200; failures are embedded in `error`.
    """

    jsonrpc: str = Field(default="2.0")
    id: Optional[Union[int, str]] = Field(None, description="Request id")
    result: Optional[Any] = Field(None, description="Upstream result")
    error: Optional[RpcErrorBody] = Field(None, description="Embedded error")
