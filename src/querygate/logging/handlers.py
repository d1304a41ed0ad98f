"""Log handlers for the QueryGate logging system.

QueryGate is typically embedded in tools whose stdout carries results, so
console output always goes to stderr.

Classes:
    ConsoleHandler: stderr handler with optional colour
    RotatingFileHandler: Size-based rotating file handler

Example:
    >>> handler = RotatingFileHandler("querygate.log", maxBytes=10485760, backupCount=5)
    >>> logging.getLogger().addHandler(handler)
"""

import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import Dict, Optional, Union


class ConsoleHandler(logging.StreamHandler):
    """Console handler writing to stderr with optional colour support."""

    def __init__(self, *, colors: bool = True, color_map: Optional[Dict[str, str]] = None) -> None:
        """Initialize console handler.

        Args:
            colors: Enable coloured output when stderr is a terminal
            color_map: Custom colour mapping for log levels
        """
        super().__init__(sys.stderr)

        self.colors = colors and self._supports_color()
        self.color_map = color_map or {
            "DEBUG": "\033[36m",
            "INFO": "\033[32m",
            "WARNING": "\033[33m",
            "ERROR": "\033[31m",
            "CRITICAL": "\033[35m",
            "RESET": "\033[0m",
        }

    def _supports_color(self) -> bool:
        if not (hasattr(self.stream, "isatty") and self.stream.isatty()):
            return False

        if os.environ.get("NO_COLOR"):
            return False

        if os.environ.get("FORCE_COLOR"):
            return True

        term = os.environ.get("TERM", "")
        return "color" in term or term in ("xterm", "xterm-256color", "screen")

    def format(self, record: logging.LogRecord) -> str:
        formatted = super().format(record)

        if self.colors and record.levelname in self.color_map:
            formatted = f"{self.color_map[record.levelname]}{formatted}{self.color_map['RESET']}"

        return formatted


class RotatingFileHandler(logging.handlers.RotatingFileHandler):
    """Rotating file handler that creates its parent directory."""

    def __init__(
        self,
        filename: Union[str, Path],
        *,
        maxBytes: int = 10485760,
        backupCount: int = 5,
        encoding: str = "utf-8",
        delay: bool = False,
        create_dirs: bool = True,
    ) -> None:
        """Initialize rotating file handler.

        Args:
            filename: Log file path
            maxBytes: Maximum file size before rotation
            backupCount: Number of backup files to keep
            encoding: File encoding
            delay: Delay file opening until first emit
            create_dirs: Create parent directories if needed
        """
        filename_path = Path(filename)
        if create_dirs and not filename_path.parent.exists():
            filename_path.parent.mkdir(parents=True, exist_ok=True)

        super().__init__(
            str(filename_path),
            maxBytes=maxBytes,
            backupCount=backupCount,
            encoding=encoding,
            delay=delay,
        )
