"""
Attestation value objects - Recovered signatures and verification output.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

from vigie.domain.value_objects.validator import Validator


@dataclass(frozen=True)
class SignatureTriple:
    """Recoverable ECDSA signature as consumed by an on-chain claim."""

    v: int
    r: str
    s: str

    def __post_init__(self):
        """Validate recovery identifier."""
        if self.v not in (27, 28):
            raise ValueError(f"Invalid recovery identifier: {self.v}")

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {"v": self.v, "r": self.r, "s": self.s}


@dataclass(frozen=True)
class VerificationResult:
    """
    Outcome of verifying a batch of attestations.

    `signatures` is aligned with the input attestations: index i holds the
    signature recovered from attestation i, or None when it was empty,
    malformed, unverifiable, or a repeat of an already matched validator.
    """

    validators: Tuple[Validator, ...]
    signatures: Tuple[Optional[SignatureTriple], ...]
    total_power: int

    @property
    def matched_count(self) -> int:
        """Number of distinct validators matched."""
        return len(self.validators)

    def has_quorum(self, threshold_power: int) -> bool:
        """Whether matched power reaches the given threshold."""
        return self.total_power >= threshold_power

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "validators": [v.to_dict() for v in self.validators],
            "signatures": [s.to_dict() if s else None for s in self.signatures],
            "total_power": self.total_power,
        }
