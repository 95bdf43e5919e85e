"""
Tendermint-style chain client.

Wraps the transport with the node RPC methods the polling engine and the
connect flow need, and decodes their answers into domain value objects.

Features:
- Connect flow (user address first, then candidates, pin the winner)
- Caller-side fallback across endpoints
- Decoding of status, block and tx answers
"""

import base64
import binascii
import hashlib
from typing import Any, Dict, List, Optional

from vigie.domain.exceptions import DecodeError, RPCError, TransportError
from vigie.domain.value_objects import BlockEvent, NodeStatus, TxEvent
from vigie.infrastructure.transport import RpcTransport
from vigie.reporter import SystemReporter
from vigie.reporter.emojis import Emoji


def tx_hash(raw_tx: bytes) -> str:
    """
    Compute the transaction hash used by the node.

    Args:
        raw_tx: Raw transaction bytes as found in the block

    Returns:
        Upper-case hex SHA-256 digest
    """
    return hashlib.sha256(raw_tx).hexdigest().upper()


def _b64decode(value: str, what: str) -> bytes:
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError, TypeError) as e:
        raise DecodeError(f"Invalid base64 in {what}", details={"value": value}) from e


class ChainClient:
    """
    Node RPC client on top of RpcTransport.

    Example:
        client = ChainClient(transport)
        await client.connect("https://my-node.example/rpc")
        height = await client.latest_height()
        block = await client.block(height)
    """

    def __init__(
        self,
        transport: RpcTransport,
        reporter: Optional[SystemReporter] = None,
    ):
        """
        Initialize chain client.

        Args:
            transport: RpcTransport bound to an endpoint registry
            reporter: SystemReporter for logging
        """
        self.transport = transport
        self.registry = transport.registry
        self.reporter = reporter or transport.reporter

    # ============================================================
    # Endpoint handling
    # ============================================================

    async def connect(self, rpc_address: Optional[str] = None) -> NodeStatus:
        """
        Find a working endpoint and make it the first one tried.

        The given address (if any) is tried first, then every managed
        endpoint in priority order.

        Args:
            rpc_address: User-supplied endpoint URL

        Returns:
            NodeStatus of the endpoint that answered

        Raises:
            TransportError: If no endpoint answered
            ValueError: If rpc_address is not an http(s) URL
        """
        if rpc_address and not self.registry.contains(rpc_address):
            self.registry.pin(rpc_address)

        order: List[str] = []
        if rpc_address:
            order.append(rpc_address.strip().rstrip("/"))
        order.extend(url for url in self.registry.urls if url not in order)

        errors: Dict[str, str] = {}
        for url in order:
            self.reporter.info(
                f"{Emoji.NETWORK.CONNECTING} Trying {url}",
                context="ChainClient",
                verbose_level=2,
            )
            try:
                status = await self.status(endpoint=url)
            except TransportError as e:
                errors[url] = e.message
                continue

            self.registry.pin(url)
            self.reporter.info(
                f"{Emoji.NETWORK.CONNECTED} Connected to {url} "
                f"({status.network} @ {status.latest_height})",
                context="ChainClient",
            )
            return status

        self.reporter.error(
            f"{Emoji.ERROR.CRITICAL} No endpoint reachable ({len(order)} tried)",
            context="ChainClient",
        )
        raise TransportError("Failed to connect to any RPC endpoint", details=errors)

    async def call_with_fallback(
        self, method: str, params: Optional[Dict[str, Any]] = None
    ) -> Any:
        """
        Execute a call, moving on to the next endpoint on transport failure.

        The selected endpoint is tried first, then every other endpoint
        that is not UNAVAILABLE, in priority order. JSON-RPC errors are
        raised immediately since the node did answer.

        Raises:
            RPCError: Node answered with a JSON-RPC error
            TransportError: Every endpoint failed
        """
        first = self.registry.select_endpoint().url
        order = [first] + [
            e.url for e in self.registry.endpoints if e.url != first and e.is_available
        ]

        last_error: Optional[TransportError] = None
        for url in order:
            try:
                return await self.transport.execute(method, params, endpoint=url)
            except RPCError:
                raise
            except TransportError as e:
                last_error = e
                self.reporter.info(
                    f"{Emoji.NETWORK.FAILOVER} {method}: {url} failed, trying next",
                    context="ChainClient",
                    verbose_level=2,
                )

        raise TransportError(
            f"All endpoints failed for {method}",
            details={"tried": order},
        ) from last_error

    async def _call(
        self,
        method: str,
        params: Optional[Dict[str, Any]] = None,
        endpoint: Optional[str] = None,
    ) -> Any:
        if endpoint is not None:
            return await self.transport.execute(method, params, endpoint=endpoint)
        return await self.call_with_fallback(method, params)

    # ============================================================
    # Node queries
    # ============================================================

    async def status(self, endpoint: Optional[str] = None) -> NodeStatus:
        """
        Query node status.

        Raises:
            TransportError: Call failed
            DecodeError: Answer lacks node_info or sync_info
        """
        result = await self._call("status", endpoint=endpoint)
        return self.decode_status(result)

    async def latest_height(self) -> int:
        """Current chain height as reported by `status`."""
        status = await self.status()
        return status.latest_height

    async def block(self, height: int) -> BlockEvent:
        """
        Fetch the block at a height.

        Raises:
            TransportError: Call failed
            DecodeError: Block payload is malformed
        """
        result = await self._call("block", {"height": str(height)})
        return self.decode_block(result)

    async def tx(self, raw_tx: bytes, height: int, index: int = 0) -> TxEvent:
        """
        Fetch the execution result of a transaction found in a block.

        Args:
            raw_tx: Raw transaction bytes from the block
            height: Block height (used when the answer omits it)
            index: Position within the block

        Raises:
            RPCError: Node does not know the transaction
            TransportError: Call failed
            DecodeError: Answer is malformed
        """
        digest = hashlib.sha256(raw_tx).digest()
        result = await self._call(
            "tx", {"hash": base64.b64encode(digest).decode("ascii")}
        )
        return self.decode_tx(result, raw_tx=raw_tx, height=height, index=index)

    # ============================================================
    # Decoding
    # ============================================================

    @staticmethod
    def decode_status(result: Any) -> NodeStatus:
        """Decode a `status` result."""
        try:
            node_info = result["node_info"]
            sync_info = result["sync_info"]
            return NodeStatus(
                network=str(node_info.get("network", "")),
                moniker=node_info.get("moniker"),
                latest_height=int(sync_info["latest_block_height"]),
                latest_block_time=sync_info.get("latest_block_time"),
                catching_up=bool(sync_info.get("catching_up", False)),
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise DecodeError(f"Malformed status result: {e}") from e

    @staticmethod
    def decode_block(result: Any) -> BlockEvent:
        """Decode a `block` result."""
        try:
            block = result["block"]
            header = block["header"]
            height = int(header["height"])
            txs = tuple(
                _b64decode(tx, "block txs") for tx in (block["data"].get("txs") or [])
            )
            evidence = block.get("evidence") or {}
            if isinstance(evidence, dict):
                evidence = evidence.get("evidence") or []

            return BlockEvent(
                height=height,
                time=header.get("time"),
                header=header,
                txs=txs,
                last_commit=block.get("last_commit"),
                evidence=tuple(evidence),
            )
        except DecodeError:
            raise
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise DecodeError(f"Malformed block result: {e}") from e

    @staticmethod
    def decode_tx(
        result: Any, raw_tx: bytes = b"", height: int = 0, index: int = 0
    ) -> TxEvent:
        """Decode a `tx` result."""
        try:
            tx_bytes = raw_tx
            if result.get("tx"):
                tx_bytes = _b64decode(result["tx"], "tx")

            return TxEvent(
                height=int(result.get("height") or height),
                hash=str(result.get("hash") or tx_hash(tx_bytes)).upper(),
                index=int(result.get("index", index)),
                tx=tx_bytes,
                result=dict(result.get("tx_result") or {}),
            )
        except DecodeError:
            raise
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise DecodeError(f"Malformed tx result: {e}") from e
