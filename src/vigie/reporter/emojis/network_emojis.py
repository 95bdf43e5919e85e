"""
Network operations and communication emoji definitions.

Covers endpoint connections, JSON-RPC calls and relayed requests.

Usage:
    >>> from vigie.reporter.emojis.network_emojis import NetworkEmoji
    >>> print(f"{NetworkEmoji.CONNECTED} Endpoint connected")
    🔗 Endpoint connected
"""

from vigie.reporter.emojis.base_emojis import ComponentEmoji


class NetworkEmoji(ComponentEmoji):
    """
    Network operations and communication.

    Categories:
        - Connection: Connect, disconnect, failover
        - Data Flow: Send, receive
        - Protocols: HTTP, RPC, relay
    """

    # ============================================================
    # Connection States
    # ============================================================

    CONNECTED = "🔗"  # Connection established
    DISCONNECTED = "⚠️"  # Connection lost
    FAILOVER = "🔄"  # Switched to another endpoint
    CONNECTING = "⏳"  # Connection in progress
    TIMEOUT = "⏱️"  # Connection timeout

    # ============================================================
    # Data Flow
    # ============================================================

    SEND = "📤"  # Data sent
    RECEIVE = "📥"  # Data received

    # ============================================================
    # Protocol Types
    # ============================================================

    HTTP = "🔌"  # HTTP/REST API
    RPC = "⚡"  # JSON-RPC call
    RELAY = "🛰️"  # Call routed through the relay

    # ============================================================
    # Subscriptions
    # ============================================================

    SUBSCRIPTION = "📬"  # Subscription started
    UNSUBSCRIBE = "📭"  # Subscription cancelled
