"""
Logging manager for the MeteoSwiss MCP server.

Console output goes to stderr so that the stdio transport keeps stdout for
protocol messages.
"""

import logging
import sys
from datetime import date
from pathlib import Path
from typing import Dict, Optional

from ..config.models import LoggingConfig, LogLevel
from .formatters import ColoredFormatter, StructuredFormatter

COMPONENT_LOGGERS = (
    "meteoswiss.cache",
    "meteoswiss.http",
    "meteoswiss.sessions",
    "meteoswiss.data",
    "mcp_server.tools",
    "mcp_server.transport",
)


class LoggingManager:
    """Centralized logging manager."""

    def __init__(self) -> None:
        """Initialize logging manager."""
        self._configured = False
        self._handlers: Dict[str, logging.Handler] = {}

    def setup_logging(self, config: LoggingConfig) -> None:
        """
        Setup logging based on configuration.

        Debug mode forces the DEBUG level and adds a dated log file under
        ``config.debug_dir``.

        Args:
            config: Logging configuration
        """
        if self._configured:
            self.cleanup()

        level = LogLevel.DEBUG if config.debug else LogLevel(config.level)
        log_level = getattr(logging, level.value)

        root_logger = logging.getLogger()
        root_logger.setLevel(log_level)

        if config.enable_console:
            self._setup_console_handler(config, log_level)

        file_path = self._resolve_file_path(config)
        if file_path is not None:
            self._setup_file_handler(config, file_path, log_level)

        for component in COMPONENT_LOGGERS:
            logging.getLogger(component).setLevel(log_level)

        self._configured = True
        logging.getLogger(__name__).debug(
            "Logging configured (level=%s, file=%s)", level.value, file_path
        )

    def _resolve_file_path(self, config: LoggingConfig) -> Optional[Path]:
        if config.file_path:
            return Path(config.file_path)
        if config.debug:
            return Path(config.debug_dir) / f"meteoswiss-{date.today().isoformat()}.log"
        return None

    def _setup_console_handler(self, config: LoggingConfig, log_level: int) -> None:
        """Setup console logging handler."""
        handler = logging.StreamHandler(sys.stderr)

        formatter: logging.Formatter
        if config.enable_structured:
            formatter = StructuredFormatter()
        else:
            formatter = ColoredFormatter(config.format)

        handler.setFormatter(formatter)
        handler.setLevel(log_level)
        self.add_handler("console", handler)

    def _setup_file_handler(self, config: LoggingConfig, path: Path, log_level: int) -> None:
        """Setup file logging handler."""
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(path, encoding="utf-8")

        formatter: logging.Formatter
        if config.enable_structured:
            formatter = StructuredFormatter()
        else:
            formatter = logging.Formatter(config.format)

        handler.setFormatter(formatter)
        handler.setLevel(log_level)
        self.add_handler("file", handler)

    def add_handler(self, name: str, handler: logging.Handler) -> None:
        """
        Add a named handler to the root logger.

        Args:
            name: Handler name
            handler: Logging handler
        """
        logging.getLogger().addHandler(handler)
        self._handlers[name] = handler

    def get_handler(self, name: str) -> Optional[logging.Handler]:
        return self._handlers.get(name)

    def cleanup(self) -> None:
        """Close and detach every handler this manager installed."""
        root_logger = logging.getLogger()
        for handler in self._handlers.values():
            root_logger.removeHandler(handler)
            handler.close()

        self._handlers.clear()
        self._configured = False

    def is_configured(self) -> bool:
        """Check if logging is configured."""
        return self._configured


# Global logging manager instance
_logging_manager = LoggingManager()


def setup_logging(config: Optional[LoggingConfig] = None) -> LoggingManager:
    """
    Setup logging with configuration.

    Args:
        config: Logging configuration (defaults apply when omitted)

    Returns:
        The process-wide logging manager
    """
    _logging_manager.setup_logging(config or LoggingConfig())
    return _logging_manager


def cleanup_logging() -> None:
    """Cleanup logging system."""
    _logging_manager.cleanup()
