"""
Configuration models for the MeteoSwiss MCP server.

This module defines all configuration data models with validation and defaults.
Durations are expressed in seconds.
"""

from __future__ import annotations

import ipaddress
from enum import Enum
from pathlib import Path
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

LOCAL_HOSTS = ["localhost", "127.0.0.1", "[::1]", "::1"]


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class Environment(str, Enum):
    """Application environments."""

    DEVELOPMENT = "development"
    PRODUCTION = "production"
    TEST = "test"


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field(default=LogLevel.INFO, description="Default logging level")
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log message format",
    )
    debug: bool = Field(
        default=False, description="Debug mode: DEBUG level plus a log file in debug_dir"
    )
    debug_dir: Path = Field(
        default=Path(".debug/logs"), description="Directory for debug log files"
    )
    file_path: Optional[Path] = Field(default=None, description="Log file path")
    enable_console: bool = Field(default=True, description="Enable console logging")
    enable_structured: bool = Field(
        default=False, description="Enable structured JSON logging"
    )


class ServerConfig(BaseModel):
    """HTTP transport configuration."""

    port: int = Field(default=3000, ge=1, le=65535, description="Port to listen on")
    bind_address: str = Field(default="0.0.0.0", description="Interface to bind to")
    public_url: Optional[str] = Field(
        default=None, description="Externally visible base URL"
    )
    cors_origin: str = Field(default="*", description="Allowed CORS origin")
    request_size_limit: str = Field(default="10mb", description="Maximum request body size")
    host_origin_protection: bool = Field(
        default=True, description="Reject requests with non-local Host/Origin headers"
    )
    allowed_hosts: List[str] = Field(
        default_factory=lambda: list(LOCAL_HOSTS), description="Accepted Host header names"
    )
    allowed_origins: List[str] = Field(
        default_factory=list, description="Additional accepted Origin values"
    )

    @field_validator("bind_address")
    @classmethod
    def validate_bind_address(cls, v: str) -> str:
        """Accept IPv4/IPv6 literals and ``localhost``."""
        if v == "localhost":
            return v
        try:
            ipaddress.ip_address(v)
        except ValueError:
            raise ValueError(f"Invalid bind address: {v}")
        return v

    @field_validator("public_url")
    @classmethod
    def validate_public_url(cls, v: Optional[str]) -> Optional[str]:
        """Require an absolute http(s) URL."""
        if v is None or v == "":
            return None
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"Invalid public URL: {v}")
        return v

    @field_validator("allowed_hosts", "allowed_origins", mode="before")
    @classmethod
    def split_list(cls, v: Any) -> Any:
        """Accept comma-separated strings."""
        if isinstance(v, str):
            return [item.strip() for item in v.split(",") if item.strip()]
        return v


class SessionConfig(BaseModel):
    """Session registry configuration."""

    max_sessions: int = Field(default=100, ge=1, description="Maximum concurrent sessions")
    session_timeout: float = Field(
        default=300.0, gt=0, description="Idle timeout in seconds"
    )
    sweep_interval: float = Field(
        default=60.0, gt=0, description="Seconds between idle-session sweeps"
    )


class HttpConfig(BaseModel):
    """Outbound HTTP configuration."""

    retries: int = Field(default=3, ge=0, description="Retries after the first attempt")
    retry_delay: float = Field(default=1.0, ge=0, description="Base retry delay in seconds")
    timeout: float = Field(default=5.0, gt=0, description="Per-attempt timeout in seconds")
    user_agent: str = Field(
        default="MeteoSwiss-MCP-Server/1.0", description="User-Agent header"
    )
    cache_cleanup_interval: float = Field(
        default=300.0, gt=0, description="Seconds between cache sweeps"
    )


class RateLimitConfig(BaseModel):
    """Request rate limits advertised to a fronting limiter."""

    window: float = Field(default=60.0, gt=0, description="Window length in seconds")
    max_requests: int = Field(default=100, ge=1, description="Requests per window")


class DataConfig(BaseModel):
    """Data source configuration."""

    use_test_fixtures: bool = Field(
        default=False, description="Serve search and content from local fixtures"
    )
    fixtures_dir: Path = Field(
        default=Path("tests/fixtures"), description="Root of the fixture tree"
    )
    weather_report_dir: Optional[Path] = Field(
        default=None, description="Root of the weather report product output"
    )

    @model_validator(mode="after")
    def default_weather_report_dir(self) -> "DataConfig":
        if self.weather_report_dir is None:
            self.weather_report_dir = self.fixtures_dir / "weather-report"
        return self


class AppConfig(BaseModel):
    """Global configuration container."""

    environment: Environment = Field(
        default=Environment.PRODUCTION, description="Current environment"
    )
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    sessions: SessionConfig = Field(default_factory=SessionConfig)
    http: HttpConfig = Field(default_factory=HttpConfig)
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)
    data: DataConfig = Field(default_factory=DataConfig)

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    @property
    def is_development(self) -> bool:
        return self.environment == Environment.DEVELOPMENT
