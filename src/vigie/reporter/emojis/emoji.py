"""
Main Emoji registry class with centralized access to all emoji categories.

Usage:
    >>> from vigie.reporter.emojis import Emoji
    >>> Emoji.NETWORK.CONNECTED     # "🔗"
    >>> Emoji.STATE.DEGRADED        # "🟡"
    >>> Emoji.format("CHAIN", "BLOCK", "Height 100")
    '🧱 Height 100'
"""

from typing import Dict, List, Type

from vigie.reporter.emojis.base_emojis import ComponentEmoji, EmojiCategory
from vigie.reporter.emojis.chain_emojis import ChainEmoji
from vigie.reporter.emojis.errors_emojis import ErrorEmoji
from vigie.reporter.emojis.network_emojis import NetworkEmoji
from vigie.reporter.emojis.state_emojis import StateEmoji
from vigie.reporter.emojis.system_emojis import SystemEmoji


class Emoji:
    """
    Central emoji registry with semantic categories.

    Categories:
        SYSTEM: System operations and lifecycle
        NETWORK: Endpoints, RPC and relay
        STATE: Endpoint health states
        ERROR: Error levels and warnings
        CHAIN: Blocks, transactions and attestations
    """

    # ============================================================
    # Emoji Categories (Aggregated from separate modules)
    # ============================================================

    SYSTEM = SystemEmoji
    NETWORK = NetworkEmoji
    STATE = StateEmoji
    ERROR = ErrorEmoji
    CHAIN = ChainEmoji

    # ============================================================
    # Common Shortcuts
    # ============================================================

    SUCCESS = "✅"  # Generic success
    FAILURE = "❌"  # Generic failure
    WARNING = "⚠️"  # Warning

    @classmethod
    def get_all_categories(cls) -> Dict[str, Type[ComponentEmoji]]:
        """Get all registered emoji categories."""
        return {
            name: attr
            for name, attr in vars(cls).items()
            if (
                not name.startswith("_")
                and isinstance(attr, type)
                and issubclass(attr, ComponentEmoji)
            )
        }

    @classmethod
    def get_category_metadata(cls) -> List[EmojiCategory]:
        """Get metadata for all emoji categories."""
        return [
            EmojiCategory(name, (klass.__doc__ or "").strip(), klass)
            for name, klass in cls.get_all_categories().items()
        ]

    @classmethod
    def format(cls, category: str, name: str, message: str) -> str:
        """
        Prefix a message with an emoji looked up by category and name.

        Raises:
            AttributeError: If the category or emoji does not exist
        """
        category_class = getattr(cls, category.upper())
        emoji = getattr(category_class, name.upper())
        return f"{emoji} {message}"
