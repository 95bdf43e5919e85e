"""
Endpoint health state emoji definitions.

Usage:
    >>> from vigie.reporter.emojis.state_emojis import StateEmoji
    >>> print(f"{StateEmoji.DEGRADED} Endpoint degraded")
    🟡 Endpoint degraded
"""

from vigie.reporter.emojis.base_emojis import ComponentEmoji


class StateEmoji(ComponentEmoji):
    """
    Health states and transitions.

    Categories:
        - States: HEALTHY, DEGRADED, UNAVAILABLE
        - Control: Tick, stop
    """

    # ============================================================
    # Core States
    # ============================================================

    HEALTHY = "🟢"  # Healthy endpoint
    DEGRADED = "🟡"  # Degraded endpoint
    UNAVAILABLE = "🔴"  # Unavailable endpoint

    # ============================================================
    # Control States
    # ============================================================

    TICK = "⏱️"  # Poll tick
    STOP = "⏹️"  # Loop stopped
    SKIP = "⏭️"  # Tick skipped

    # ============================================================
    # Transitions
    # ============================================================

    TRANSITION = "🔀"  # State transition
    RESTORED = "✔️"  # Restored to healthy
