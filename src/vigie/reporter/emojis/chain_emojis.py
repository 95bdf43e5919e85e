"""
Chain data and attestation emoji definitions.
"""

from vigie.reporter.emojis.base_emojis import ComponentEmoji


class ChainEmoji(ComponentEmoji):
    """Blocks, transactions and bridge attestations."""

    # ============================================================
    # Chain Data
    # ============================================================
    BLOCK = "🧱"  # New block observed
    TX = "🧾"  # Transaction observed
    HEIGHT = "📏"  # Chain height

    # ============================================================
    # Attestations
    # ============================================================
    SIGNATURE = "✍️"  # Signature recovered
    VALIDATOR = "🛡️"  # Validator matched
    QUORUM = "⚖️"  # Voting power tallied
