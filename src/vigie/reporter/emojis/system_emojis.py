"""
System-level operations and lifecycle emoji definitions.
"""

from vigie.reporter.emojis.base_emojis import ComponentEmoji


class SystemEmoji(ComponentEmoji):
    """System-level operations and lifecycle events."""

    # ============================================================
    # Lifecycle Operations
    # ============================================================
    STARTUP = "🚀"  # System/component initialization
    SHUTDOWN = "🛑"  # System/component shutdown
    READY = "✅"  # Component initialized successfully

    # ============================================================
    # Configuration
    # ============================================================
    CONFIG = "⚙️"  # Configuration operation
    CONFIG_LOAD = "📋"  # Configuration loading

    # ============================================================
    # Health & Monitoring
    # ============================================================
    HEALTH_CHECK = "🩺"  # Health check performed
    PING = "🏓"  # Ping operation

    # ============================================================
    # Persistence
    # ============================================================
    SAVE = "💾"  # Value persisted
    LOAD = "📂"  # Value loaded
    RESET = "♻️"  # Reset to initial state
