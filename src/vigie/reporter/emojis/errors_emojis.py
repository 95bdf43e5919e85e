"""
Error and warning level emoji definitions.

Usage:
    >>> from vigie.reporter.emojis.errors_emojis import ErrorEmoji
    >>> print(f"{ErrorEmoji.CRITICAL} All endpoints unavailable")
    🔴 All endpoints unavailable
"""

from vigie.reporter.emojis.base_emojis import ComponentEmoji


class ErrorEmoji(ComponentEmoji):
    """
    Error levels and warning indicators.

    Categories:
        - Severity: Critical, error, warning
        - Recovery: Retry, fallback, timeout
        - Validation: Invalid input, missing data
    """

    # ============================================================
    # Severity Levels
    # ============================================================

    CRITICAL = "🔴"  # Critical error (system failure)
    ERROR = "❌"  # Error (operation failed)
    WARNING = "⚠️"  # Warning (potential issue)

    # ============================================================
    # Recovery Operations
    # ============================================================

    RETRY = "🔄"  # Retry attempt
    FALLBACK = "↩️"  # Fallback triggered
    TIMEOUT = "⏱️"  # Operation timeout

    # ============================================================
    # Validation
    # ============================================================

    INVALID_INPUT = "❓"  # Invalid input data
    MISSING_DATA = "📭"  # Missing required data
    NOT_FOUND = "🔍"  # Resource not found
