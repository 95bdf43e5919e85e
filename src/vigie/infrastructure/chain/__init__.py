"""
Chain node client.
"""

from vigie.infrastructure.chain.chain_client import ChainClient, tx_hash

__all__ = ["ChainClient", "tx_hash"]
