"""
Domain value objects.
"""

from vigie.domain.value_objects.attestation import SignatureTriple, VerificationResult
from vigie.domain.value_objects.chain_events import BlockEvent, NodeStatus, TxEvent
from vigie.domain.value_objects.validator import Validator

__all__ = [
    "BlockEvent",
    "NodeStatus",
    "TxEvent",
    "Validator",
    "SignatureTriple",
    "VerificationResult",
]
