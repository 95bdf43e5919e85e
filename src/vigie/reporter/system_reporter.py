"""
System Reporter - Centralized logging for Vigie components.

Provides SystemReporter for console logging with an optional log file.
Every message carries a context tag (Registry, Transport, Polling, ...)
and a verbosity level so noisy per-tick messages can be filtered out.
"""

import logging
import os
import sys
import threading
import time
from typing import Optional

# Constants
LOG_RETENTION_DAYS = 1
LOG_CHECK_INTERVAL = 3600  # 1 hour

LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}


class SystemReporter:
    """
    Logger with verbose filtering.

    Verbose Levels:
        0 = Critical only (always visible)
        1 = Important messages (default)
        2 = Detailed information
        3 = Debug/verbose
    """

    def __init__(
        self,
        name: str = "vigie",
        log_dir: Optional[str] = None,
        level: int = logging.INFO,
        verbose: int = 1,
    ) -> None:
        """
        Initialize SystemReporter.

        Args:
            name: Logger name (used for filename if log_dir provided)
            log_dir: Directory for log files. If None, logs to stdout only.
            level: Python logging level
            verbose: Verbosity filter (0-3)
        """
        self.name = name
        self.verbose = max(0, min(3, verbose))
        self._init_logger(name, log_dir, level)

    @classmethod
    def from_settings(cls, settings, name: str = "vigie") -> "SystemReporter":
        """Build a reporter from VigieConfig logging fields."""
        level = LEVELS.get(settings.log_level, logging.INFO)
        verbose = 3 if level == logging.DEBUG else 1
        return cls(name=name, log_dir=settings.log_dir, level=level, verbose=verbose)

    def _init_logger(self, name: str, log_dir: Optional[str], level: int) -> None:
        """
        Initialize logger with console and optional file handlers.

        Args:
            name: Logger name
            log_dir: Log directory path (None = stdout only)
            level: Python logging level
        """
        self.logger = logging.getLogger(name)
        self.logger.setLevel(level)
        self.logger.handlers.clear()

        formatter = logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        self.logger.addHandler(console_handler)

        if log_dir:
            log_file = os.path.join(os.path.abspath(log_dir), f"{name}.log")
            os.makedirs(os.path.dirname(log_file), exist_ok=True)

            file_handler = logging.FileHandler(log_file, encoding="utf-8")
            file_handler.setFormatter(formatter)
            self.logger.addHandler(file_handler)

            retention_thread = threading.Thread(
                target=self._log_retention_worker,
                args=(log_file,),
                daemon=True,
            )
            retention_thread.start()

    def _log_retention_worker(self, log_file: str) -> None:
        """Background worker to drop log files older than the retention window."""
        while True:
            try:
                if os.path.exists(log_file):
                    age_days = (time.time() - os.path.getmtime(log_file)) / 86400
                    if age_days > LOG_RETENTION_DAYS:
                        os.remove(log_file)
            except OSError as e:
                print(f"⚠ Retention worker error: {e}", file=sys.stderr)
            time.sleep(LOG_CHECK_INTERVAL)

    def set_verbose(self, level: int) -> None:
        """Update verbosity level."""
        self.verbose = max(0, min(3, level))
        self.info(
            f"Verbosity set to {self.verbose}",
            context="SystemReporter",
            verbose_level=0,
        )

    def _should_log(self, verbose_level: int) -> bool:
        """Check if message should be logged."""
        return self.verbose >= verbose_level

    def debug(self, msg: str, context: str = "system", verbose_level: int = 3) -> None:
        """Log debug message."""
        if self._should_log(verbose_level):
            self.logger.debug(f"[{context}] {msg}")

    def info(self, msg: str, context: str = "system", verbose_level: int = 1) -> None:
        """Log info message."""
        if self._should_log(verbose_level):
            self.logger.info(f"[{context}] {msg}")

    def warning(
        self, msg: str, context: str = "system", verbose_level: int = 1
    ) -> None:
        """Log warning message."""
        if self._should_log(verbose_level):
            self.logger.warning(f"[{context}] {msg}")

    def error(self, msg: str, context: str = "system", verbose_level: int = 0) -> None:
        """Log error message."""
        if self._should_log(verbose_level):
            self.logger.error(f"[{context}] {msg}")

    def critical(
        self, msg: str, context: str = "system", verbose_level: int = 0
    ) -> None:
        """Log critical message."""
        if self._should_log(verbose_level):
            self.logger.critical(f"[{context}] {msg}")
