"""
Validator value object - Roster entry used for attestation checks.
"""

import re
from dataclasses import dataclass

ADDRESS_PATTERN = re.compile(r"^0x[0-9a-f]{40}$")


@dataclass(frozen=True)
class Validator:
    """
    Ethereum-style validator address with voting power.

    Business rules:
    - Address is normalized to lowercase with a 0x prefix
    - Power is a non-negative integer
    """

    address: str
    power: int

    def __post_init__(self):
        """Normalize and validate on creation."""
        address = self.address.strip().lower()
        if not address.startswith("0x"):
            address = f"0x{address}"

        if not ADDRESS_PATTERN.match(address):
            raise ValueError(f"Invalid validator address: {self.address}")

        if self.power < 0:
            raise ValueError(f"Validator power must be non-negative: {self.power}")

        object.__setattr__(self, "address", address)

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {"address": self.address, "power": self.power}
