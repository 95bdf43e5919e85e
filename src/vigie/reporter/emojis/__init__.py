"""Emoji definitions for system reporting."""

from vigie.reporter.emojis.base_emojis import ComponentEmoji, EmojiCategory
from vigie.reporter.emojis.chain_emojis import ChainEmoji
from vigie.reporter.emojis.emoji import Emoji
from vigie.reporter.emojis.errors_emojis import ErrorEmoji
from vigie.reporter.emojis.network_emojis import NetworkEmoji
from vigie.reporter.emojis.state_emojis import StateEmoji
from vigie.reporter.emojis.system_emojis import SystemEmoji

__all__ = [
    "Emoji",
    "ComponentEmoji",
    "EmojiCategory",
    "SystemEmoji",
    "NetworkEmoji",
    "StateEmoji",
    "ErrorEmoji",
    "ChainEmoji",
]
