"""
Test helpers.
"""

from helpers.endpoints import DEFAULT_1, DEFAULT_2, USER_RPC
from helpers.fake_node import FakeNode, rpc_error, rpc_result
from helpers.manual_scheduler import ManualScheduler, ManualTask
from helpers.signers import Signer

__all__ = [
    "USER_RPC",
    "DEFAULT_1",
    "DEFAULT_2",
    "FakeNode",
    "rpc_result",
    "rpc_error",
    "ManualScheduler",
    "ManualTask",
    "Signer",
]
