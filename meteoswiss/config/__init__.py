"""
Configuration management for the MeteoSwiss MCP server.
"""

from .loader import ConfigLoader, load_config
from .models import (
    AppConfig,
    DataConfig,
    Environment,
    HttpConfig,
    LoggingConfig,
    LogLevel,
    RateLimitConfig,
    ServerConfig,
    SessionConfig,
)

__all__ = [
    "AppConfig",
    "ConfigLoader",
    "DataConfig",
    "Environment",
    "HttpConfig",
    "LoggingConfig",
    "LogLevel",
    "RateLimitConfig",
    "ServerConfig",
    "SessionConfig",
    "load_config",
]
