"""
Logger - Central logging system for Hideaway

Usage:
    from hideaway.logger import logger

    logger.debug("Detailed debug info")
    logger.info("Normal operation")
    logger.warning("Something unexpected")

    # With context
    logger.info("Level 6 generated", component="PLACE")
    logger.warning("Decode failed", component="CAMO", details=str(e))
"""

import logging
import sys
from enum import IntEnum
from typing import Optional


class LogLevel(IntEnum):
    """Log levels matching Python logging."""
    DEBUG = logging.DEBUG      # 10
    INFO = logging.INFO        # 20
    WARNING = logging.WARNING  # 30
    ERROR = logging.ERROR      # 40


class HideawayLogger:
    """
    Central logger for Hideaway.

    Features:
    - Component tagging for filtering
    - Console (terminal) output
    - Optional file output
    """

    def __init__(self, name: str = "hideaway"):
        self._logger = logging.getLogger(name)
        self._logger.setLevel(logging.DEBUG)  # Capture all, filter on handlers
        self._logger.propagate = False

        # Console handler (terminal output); stdout is left to command output
        self._console_handler = logging.StreamHandler(sys.stderr)
        self._console_handler.setLevel(logging.WARNING)
        self._console_handler.setFormatter(logging.Formatter(
            "%(asctime)s [%(levelname)s] %(message)s",
            datefmt="%H:%M:%S"
        ))
        self._logger.addHandler(self._console_handler)

        # File handler (optional, for bug reports)
        self._file_handler: Optional[logging.FileHandler] = None

    def set_level(self, level: LogLevel):
        """Set minimum log level for console output."""
        self._console_handler.setLevel(level)

    def enable_file_logging(self, filepath: str):
        """Enable logging to file."""
        if self._file_handler:
            self._logger.removeHandler(self._file_handler)
            self._file_handler.close()

        self._file_handler = logging.FileHandler(filepath)
        self._file_handler.setLevel(logging.DEBUG)
        self._file_handler.setFormatter(logging.Formatter(
            "%(asctime)s [%(levelname)s] %(message)s"
        ))
        self._logger.addHandler(self._file_handler)

    def disable_file_logging(self):
        """Disable file logging."""
        if self._file_handler:
            self._logger.removeHandler(self._file_handler)
            self._file_handler.close()
            self._file_handler = None

    def _format_message(self, msg: str, component: Optional[str] = None,
                        details: Optional[str] = None) -> str:
        """Format message with optional component tag and details."""
        parts = []
        if component:
            parts.append(f"[{component}]")
        parts.append(msg)
        if details:
            parts.append(f"- {details}")
        return " ".join(parts)

    def debug(self, msg: str, component: Optional[str] = None,
              details: Optional[str] = None):
        """Log debug message (detailed info for troubleshooting)."""
        self._logger.debug(self._format_message(msg, component, details))

    def info(self, msg: str, component: Optional[str] = None,
             details: Optional[str] = None):
        """Log info message (normal operation)."""
        self._logger.info(self._format_message(msg, component, details))

    def warning(self, msg: str, component: Optional[str] = None,
                details: Optional[str] = None):
        """Log warning message (unexpected but recoverable)."""
        self._logger.warning(self._format_message(msg, component, details))

    def camo(self, msg: str, details: Optional[str] = None):
        """Convenience: log camouflage-analysis message."""
        self.debug(msg, component="CAMO", details=details)

    def place(self, level: int, msg: str, details: Optional[str] = None):
        """Convenience: log placement message for a level."""
        self.debug(f"Level {level}: {msg}", component="PLACE", details=details)


# Global logger instance
logger = HideawayLogger()


def set_log_level(level: LogLevel):
    """Set the console log level."""
    logger.set_level(level)
