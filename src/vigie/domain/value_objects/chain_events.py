"""
Chain event value objects - Immutable snapshots produced by polling.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class NodeStatus:
    """Subset of a node's `status` answer."""

    network: str
    latest_height: int
    latest_block_time: Optional[str] = None
    moniker: Optional[str] = None
    catching_up: bool = False

    def __post_init__(self):
        """Validate node status."""
        if self.latest_height < 0:
            raise ValueError(f"Invalid height: {self.latest_height}")


@dataclass(frozen=True)
class BlockEvent:
    """
    New block notification.

    Transactions are kept as raw bytes in block order.
    """

    height: int
    time: Optional[str]
    header: Dict[str, Any] = field(default_factory=dict, compare=False)
    txs: Tuple[bytes, ...] = ()
    last_commit: Optional[Dict[str, Any]] = field(default=None, compare=False)
    evidence: Tuple[Any, ...] = field(default=(), compare=False)

    def __post_init__(self):
        """Validate block event."""
        if self.height <= 0:
            raise ValueError(f"Invalid block height: {self.height}")

    @property
    def tx_count(self) -> int:
        """Number of transactions in the block."""
        return len(self.txs)

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "height": self.height,
            "time": self.time,
            "tx_count": self.tx_count,
        }


@dataclass(frozen=True)
class TxEvent:
    """New transaction notification."""

    height: int
    hash: str
    index: int
    tx: bytes = b""
    result: Dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def code(self) -> int:
        """Execution result code (0 means success)."""
        return int(self.result.get("code", 0) or 0)

    @property
    def succeeded(self) -> bool:
        """Whether the transaction executed successfully."""
        return self.code == 0

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "height": self.height,
            "hash": self.hash,
            "index": self.index,
            "code": self.code,
        }
