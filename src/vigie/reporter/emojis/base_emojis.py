"""
Base classes for emoji registry components.

Provides foundation for all emoji category classes with
consistent structure and introspection support.
"""

from typing import Dict, List, Type


class ComponentEmoji:
    """
    Base class for component-specific emoji collections.

    Each subclass represents a semantic category; class attributes
    define emojis as constants.

    Example:
        >>> class MyEmoji(ComponentEmoji):
        ...     HELLO = "👋"
    """

    @classmethod
    def get_all(cls) -> Dict[str, str]:
        """
        Get all emoji definitions from this category.

        Returns:
            Dictionary mapping emoji name to emoji character
        """
        return {
            name: value
            for name, value in vars(cls).items()
            if not name.startswith("_") and isinstance(value, str)
        }

    @classmethod
    def list_names(cls) -> List[str]:
        """Get list of all emoji names in this category."""
        return [
            name for name in dir(cls) if not name.startswith("_") and name.isupper()
        ]


class EmojiCategory:
    """Container for emoji category metadata."""

    def __init__(self, name: str, description: str, emoji_class: Type[ComponentEmoji]):
        self.name = name
        self.description = description
        self.emoji_class = emoji_class

    def __repr__(self) -> str:
        return f"EmojiCategory(name={self.name!r}, count={len(self.emoji_class.get_all())})"
