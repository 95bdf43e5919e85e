"""
Bridge attestation verification.
"""

from vigie.application.attestations.bridge import (
    derive_signatures,
    deposit_query_id,
    snapshot_digest,
    withdrawal_query_id,
)
from vigie.application.attestations.signature_verifier import (
    has_quorum,
    recover_address,
    verify_attestations,
)

__all__ = [
    "verify_attestations",
    "recover_address",
    "has_quorum",
    "snapshot_digest",
    "deposit_query_id",
    "withdrawal_query_id",
    "derive_signatures",
]
