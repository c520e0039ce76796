"""
Logging setup for the MeteoSwiss MCP server.

This module provides a logging manager writing to stderr, with optional JSON
output and a debug log file.
"""

from .formatters import ColoredFormatter, StructuredFormatter
from .manager import COMPONENT_LOGGERS, LoggingManager, cleanup_logging, setup_logging

__all__ = [
    "COMPONENT_LOGGERS",
    "ColoredFormatter",
    "LoggingManager",
    "StructuredFormatter",
    "cleanup_logging",
    "setup_logging",
]
