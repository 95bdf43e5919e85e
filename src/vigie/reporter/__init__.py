"""
Vigie reporter package.

Usage:
    >>> from vigie.reporter import SystemReporter
    >>> from vigie.reporter.emojis import Emoji
"""

from vigie.reporter.system_reporter import SystemReporter

__all__ = ["SystemReporter"]
