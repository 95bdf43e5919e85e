"""
JSON-RPC transport with endpoint outcome reporting.

Executes a single remote call against the endpoint chosen by the
registry, either directly or through the same-origin relay, and reports
the outcome back to the registry. It never retries against another
endpoint; callers iterate candidates themselves.
"""

import itertools
from typing import Any, Dict, Optional
from urllib.parse import urlparse

import httpx

from vigie.config.settings import TransportConfig
from vigie.domain.entities import Endpoint
from vigie.domain.exceptions import (
    RelayError,
    RelayRejectedError,
    RPCError,
    TransportError,
    TransportTimeoutError,
)
from vigie.infrastructure.registry import EndpointRegistry
from vigie.reporter import SystemReporter
from vigie.reporter.emojis import Emoji

# Error code the relay embeds when it could not reach the upstream node.
RELAY_UPSTREAM_ERROR = -32099

# Error code the relay embeds when the named endpoint is not one it manages.
RELAY_UNMANAGED_ENDPOINT = -32098

LOOPBACK_HOSTS = {"localhost", "127.0.0.1", "::1"}


class RpcTransport:
    """
    Resilient JSON-RPC call executor.

    Modes:
        direct: POST to the endpoint itself
        relay: POST to the relay, naming the endpoint in the body
        auto: relay for remote endpoints when a relay URL is configured

    Example:
        async with RpcTransport(registry, config) as transport:
            status = await transport.execute("status")
    """

    def __init__(
        self,
        registry: EndpointRegistry,
        config: Optional[TransportConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
        reporter: Optional[SystemReporter] = None,
    ):
        """
        Initialize transport.

        Args:
            registry: Endpoint registry used for selection and reporting
            config: Routing mode and timeouts (uses defaults if not provided)
            client: Optional HTTP client. If None, one is created lazily.
            reporter: SystemReporter for logging

        Raises:
            ValueError: If relay mode is requested without a relay URL
        """
        self.registry = registry
        self.config = config or TransportConfig()
        self.reporter = reporter or SystemReporter(name="vigie")

        if self.config.mode == "relay" and not self.config.relay_url:
            raise ValueError("Relay mode requires transport.relay_url")

        self._client = client
        self._owns_client = client is None
        self._ids = itertools.count(1)

    @property
    def client(self) -> httpx.AsyncClient:
        """
        Get or create async HTTP client.

        Returns:
            Async HTTP client instance
        """
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self.config.request_timeout,
                limits=httpx.Limits(max_connections=20, max_keepalive_connections=10),
            )
            self._owns_client = True

        return self._client

    def uses_relay(self, endpoint_url: str) -> bool:
        """Whether a call to this endpoint is routed through the relay."""
        if self.config.mode == "relay":
            return True
        if self.config.mode == "auto" and self.config.relay_url:
            host = urlparse(endpoint_url).hostname or ""
            return host not in LOOPBACK_HOSTS
        return False

    async def execute(
        self,
        method: str,
        params: Optional[Dict[str, Any]] = None,
        *,
        endpoint: Optional[str] = None,
    ) -> Any:
        """
        Execute one JSON-RPC call.

        Args:
            method: RPC method name (e.g. "status", "block")
            params: RPC params object
            endpoint: Call this managed endpoint instead of the selected one

        Returns:
            Decoded `result` member of the response

        Raises:
            TransportError: Network/HTTP failure, timeout or malformed body
            RPCError: Node answered with a JSON-RPC error
            RelayRejectedError: Relay does not manage the target endpoint
            UnknownEndpointError: `endpoint` is not managed by the registry
        """
        target: Endpoint = (
            self.registry.get(endpoint)
            if endpoint is not None
            else self.registry.select_endpoint()
        )

        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params or {},
        }
        via_relay = self.uses_relay(target.url)

        try:
            body = await self._post(target.url, payload, via_relay)
            result = self._unwrap(target.url, method, body, via_relay)
        except RPCError as e:
            # The node answered, so the endpoint itself is fine.
            self.registry.report_success(target.url)
            self.reporter.debug(
                f"{Emoji.NETWORK.RPC} {method} on {target.url}: "
                f"RPC error {e.code} {e.message}",
                context="Transport",
            )
            raise
        except RelayRejectedError as e:
            # Nothing was sent to the endpoint, so there is no outcome.
            self.reporter.warning(
                f"{Emoji.NETWORK.RELAY} {method} on {target.url}: {e.message}",
                context="Transport",
            )
            raise
        except TransportError as e:
            self.registry.report_failure(target.url)
            self.reporter.warning(
                f"{Emoji.ERROR.ERROR} {method} on {target.url} failed: {e.message}",
                context="Transport",
            )
            raise

        self.registry.report_success(target.url)
        self.reporter.debug(
            f"{Emoji.NETWORK.RECEIVE} {method} on {target.url} ok",
            context="Transport",
        )
        return result

    async def _post(
        self, endpoint_url: str, payload: Dict[str, Any], via_relay: bool
    ) -> Dict[str, Any]:
        """POST payload and return the parsed JSON object."""
        if via_relay:
            url = self.config.relay_url
            body = {
                "method": payload["method"],
                "params": payload["params"],
                "id": payload["id"],
                "endpoint": endpoint_url,
            }
        else:
            url = endpoint_url
            body = payload

        try:
            response = await self.client.post(
                url, json=body, timeout=self.config.request_timeout
            )
        except httpx.TimeoutException as e:
            raise TransportTimeoutError(
                f"Timeout after {self.config.request_timeout}s",
                endpoint=endpoint_url,
                details={"relay": via_relay},
            ) from e
        except httpx.HTTPError as e:
            raise TransportError(
                f"Connection error: {e}",
                endpoint=endpoint_url,
                details={"relay": via_relay},
            ) from e

        if not response.is_success:
            raise TransportError(
                f"HTTP {response.status_code}",
                endpoint=endpoint_url,
                details={"status_code": response.status_code, "relay": via_relay},
            )

        try:
            data = response.json()
        except ValueError as e:
            raise TransportError(
                "Malformed JSON response", endpoint=endpoint_url
            ) from e

        if not isinstance(data, dict):
            raise TransportError(
                "JSON-RPC response is not an object", endpoint=endpoint_url
            )

        return data

    def _unwrap(
        self, endpoint_url: str, method: str, body: Dict[str, Any], via_relay: bool
    ) -> Any:
        """Extract `result` or raise the error embedded in the body."""
        error = body.get("error")

        if error is not None:
            if not isinstance(error, dict):
                raise TransportError(
                    f"Malformed JSON-RPC error: {error!r}", endpoint=endpoint_url
                )

            code = error.get("code", 0)
            message = str(error.get("message", "Unknown error"))
            data = error.get("data")
            if data:
                message = f"{message}: {data}"

            if via_relay and code == RELAY_UNMANAGED_ENDPOINT:
                raise RelayRejectedError(
                    message,
                    endpoint=endpoint_url,
                    details={"code": code},
                )

            if via_relay and code == RELAY_UPSTREAM_ERROR:
                raise RelayError(
                    f"Relay upstream failure: {message}",
                    endpoint=endpoint_url,
                    details={"code": code},
                )

            raise RPCError(message, code=code, endpoint=endpoint_url)

        if "result" not in body:
            raise TransportError(
                f"JSON-RPC response for {method} has no result",
                endpoint=endpoint_url,
            )

        return body["result"]

    async def close(self) -> None:
        """Close the HTTP client if this transport created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "RpcTransport":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
