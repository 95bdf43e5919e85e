"""
Bridge attestation helpers.

Derives the values a bridge claim needs: the digest validators sign
(SHA-256 of the valset snapshot), the oracle query ids of deposits and
withdrawals, and the verified signatures from the bridge API answer.

Usage:
    >>> deposit_query_id(1)
    >>> result = derive_signatures(snapshot, {"attestations": [...]}, valset)
"""

import hashlib
from typing import Any, Dict, List, Mapping, Optional

from eth_abi import encode
from eth_utils import keccak

from vigie.application.attestations.signature_verifier import verify_attestations
from vigie.domain.exceptions import DecodeError
from vigie.domain.value_objects import Validator, VerificationResult
from vigie.reporter import SystemReporter

QUERY_TYPE = "TRBBridge"


def snapshot_digest(snapshot: str) -> bytes:
    """
    Digest validators sign for a valset snapshot.

    Args:
        snapshot: Snapshot as hex (with or without 0x)

    Returns:
        32-byte SHA-256 digest of the snapshot bytes

    Raises:
        ValueError: If the snapshot is not valid hex
    """
    text = snapshot[2:] if snapshot[:2].lower() == "0x" else snapshot
    return hashlib.sha256(bytes.fromhex(text)).digest()


def bridge_query_data(to_layer: bool, bridge_id: int) -> bytes:
    """ABI encoding of (string "TRBBridge", bytes abi(bool, uint256))."""
    if bridge_id < 0:
        raise ValueError(f"Bridge id must be non-negative: {bridge_id}")
    inner = encode(["bool", "uint256"], [to_layer, bridge_id])
    return encode(["string", "bytes"], [QUERY_TYPE, inner])


def bridge_query_id(to_layer: bool, bridge_id: int) -> str:
    """keccak256 of the query data, as hex without 0x."""
    return keccak(bridge_query_data(to_layer, bridge_id)).hex()


def deposit_query_id(deposit_id: int) -> str:
    """Query id of a deposit into the chain."""
    return bridge_query_id(True, deposit_id)


def withdrawal_query_id(withdrawal_id: int) -> str:
    """Query id of a withdrawal out of the chain."""
    return bridge_query_id(False, withdrawal_id)


def parse_valset(valset: List[Mapping[str, Any]]) -> List[Validator]:
    """
    Convert bridge API valset entries into validators.

    Entries look like {"ethereumAddress": "<hex>", "power": "<int>"}.

    Raises:
        DecodeError: If an entry is malformed
    """
    validators = []
    for entry in valset:
        try:
            validators.append(
                Validator(str(entry["ethereumAddress"]), int(entry["power"]))
            )
        except (KeyError, TypeError, ValueError) as e:
            raise DecodeError(
                f"Malformed valset entry: {e}", details={"entry": dict(entry)}
            ) from e
    return validators


def derive_signatures(
    snapshot: str,
    attestations_payload: Dict[str, Any],
    valset: List[Mapping[str, Any]],
    reporter: Optional[SystemReporter] = None,
) -> VerificationResult:
    """
    Verify the attestations the bridge API returned for a snapshot.

    Args:
        snapshot: Valset snapshot hex
        attestations_payload: {"attestations": ["<r||s hex>", ...]}
        valset: Validator entries from the bridge API
        reporter: Optional SystemReporter for debug logging

    Returns:
        VerificationResult aligned with the attestation list

    Raises:
        DecodeError: If the payload or valset is malformed
    """
    attestations = attestations_payload.get("attestations")
    if not isinstance(attestations, list):
        raise DecodeError("Invalid attestations data format")

    try:
        digest = snapshot_digest(snapshot)
    except ValueError as e:
        raise DecodeError(f"Invalid snapshot: {e}") from e

    return verify_attestations(digest, attestations, parse_valset(valset), reporter)
