"""
Validator attestation verifier.

Recovers the signer of each attestation over a message digest and
matches it against a validator roster weighted by voting power.

Business rules:
- Recovery identifier is unknown: try v=27, then v=28
- An attestation matching no roster entry is skipped, not an error
- Signatures stay aligned with input order (None marks a gap)
- A validator is counted once, however many attestations it signed
"""

from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Union

from coincurve import PublicKey
from eth_utils import keccak

from vigie.domain.value_objects import SignatureTriple, Validator, VerificationResult
from vigie.reporter import SystemReporter
from vigie.reporter.emojis import Emoji

DIGEST_SIZE = 32
SIGNATURE_SIZE = 64
RECOVERABLE_SIGNATURE_SIZE = 65
TWO_THIRDS = (2, 3)

Attestation = Union[bytes, str, None]
Roster = Union[Mapping[str, int], Iterable[Validator]]


def _to_bytes(value: Union[bytes, str]) -> bytes:
    """Accept raw bytes or a hex string with or without 0x."""
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    text = value.strip()
    if text[:2].lower() == "0x":
        text = text[2:]
    return bytes.fromhex(text)


def normalize_roster(roster: Roster) -> Dict[str, Validator]:
    """
    Build an address -> Validator map with lowercase addresses.

    Args:
        roster: Mapping of address to power, or Validator objects

    Raises:
        ValueError: If an address or power is invalid
    """
    if isinstance(roster, Mapping):
        validators = [Validator(address, int(power)) for address, power in roster.items()]
    else:
        validators = list(roster)

    return {v.address: v for v in validators}


def recover_address(digest: bytes, r: bytes, s: bytes, v: int) -> Optional[str]:
    """
    Recover the Ethereum-style address that produced a signature.

    Args:
        digest: 32-byte message digest
        r: 32-byte r component
        s: 32-byte s component
        v: Recovery identifier (27 or 28)

    Returns:
        Lowercase 0x address, or None if recovery fails
    """
    try:
        public_key = PublicKey.from_signature_and_message(
            r + s + bytes([v - 27]), digest, hasher=None
        )
    except (ValueError, TypeError):
        return None

    uncompressed = public_key.format(compressed=False)
    return "0x" + keccak(uncompressed[1:])[-20:].hex()


def verify_attestations(
    digest: Union[bytes, str],
    attestations: Sequence[Attestation],
    roster: Roster,
    reporter: Optional[SystemReporter] = None,
) -> VerificationResult:
    """
    Verify a batch of attestations against a validator roster.

    Each attestation is empty/None, or a 64-byte r||s blob (a 65-byte
    blob has its trailing recovery byte ignored). Other lengths are
    skipped.

    Args:
        digest: 32-byte message digest (bytes or hex)
        attestations: Attestation blobs in validator order
        roster: Known validators and their voting power
        reporter: Optional SystemReporter for debug logging

    Returns:
        VerificationResult with matched validators, aligned signatures
        and aggregate power

    Raises:
        ValueError: If the digest is not 32 bytes or the roster is invalid
    """
    message_hash = _to_bytes(digest)
    if len(message_hash) != DIGEST_SIZE:
        raise ValueError(f"Digest must be {DIGEST_SIZE} bytes, got {len(message_hash)}")

    validators = normalize_roster(roster)

    matched: List[Validator] = []
    seen = set()
    signatures: List[Optional[SignatureTriple]] = []

    for index, attestation in enumerate(attestations):
        signature = None

        blob = _parse_attestation(attestation)
        if blob is not None:
            r, s = blob[:32], blob[32:64]

            # Exactly two recovery identifiers exist for secp256k1.
            v = 27
            address = recover_address(message_hash, r, s, v)
            if address not in validators:
                v = 28
                address = recover_address(message_hash, r, s, v)

            if address in validators and address not in seen:
                seen.add(address)
                matched.append(validators[address])
                signature = SignatureTriple(v=v, r="0x" + r.hex(), s="0x" + s.hex())
            elif reporter is not None:
                reason = "duplicate" if address in seen else "unverifiable"
                reporter.debug(
                    f"{Emoji.CHAIN.SIGNATURE} Attestation {index} skipped ({reason})",
                    context="Verifier",
                )
        elif attestation and reporter is not None:
            reporter.debug(
                f"{Emoji.ERROR.INVALID_INPUT} Attestation {index} malformed",
                context="Verifier",
            )

        signatures.append(signature)

    total_power = sum(v.power for v in matched)

    if reporter is not None:
        reporter.debug(
            f"{Emoji.CHAIN.QUORUM} {len(matched)}/{len(attestations)} attestations "
            f"matched, power {total_power}",
            context="Verifier",
        )

    return VerificationResult(
        validators=tuple(matched),
        signatures=tuple(signatures),
        total_power=total_power,
    )


def _parse_attestation(attestation: Attestation) -> Optional[bytes]:
    """Return the 64-byte r||s part, or None if empty or malformed."""
    if not attestation or not isinstance(attestation, (bytes, bytearray, str)):
        return None

    try:
        blob = _to_bytes(attestation)
    except (ValueError, TypeError):
        return None

    if len(blob) == RECOVERABLE_SIGNATURE_SIZE:
        return blob[:SIGNATURE_SIZE]
    if len(blob) == SIGNATURE_SIZE:
        return blob
    return None


def has_quorum(
    matched_power: int,
    total_power: int,
    threshold: tuple = TWO_THIRDS,
) -> bool:
    """
    Check matched power against a fraction of total roster power.

    Args:
        matched_power: Aggregate power of matched validators
        total_power: Power of the whole roster
        threshold: (numerator, denominator), two thirds by default

    Returns:
        True if matched_power * denominator >= total_power * numerator
    """
    numerator, denominator = threshold
    if total_power <= 0:
        return False
    return matched_power * denominator >= total_power * numerator
