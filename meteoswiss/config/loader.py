"""
Configuration loader for the MeteoSwiss MCP server.

Settings are read from environment variables. Every setting has a
``METEOSWISS_``-prefixed name; the unprefixed legacy variable names
(``PORT``, ``MAX_SESSIONS``, ``SESSION_TIMEOUT_MS`` ...) are
accepted as aliases, with millisecond values converted to seconds.
"""

import logging
import os
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from pydantic import ValidationError

from ..exceptions import ConfigurationError
from .models import AppConfig

logger = logging.getLogger(__name__)

ENV_PREFIX = "METEOSWISS_"


def _milliseconds(value: str) -> Any:
    try:
        return float(value) / 1000.0
    except ValueError:
        return value


# (prefixed name, legacy alias, config path, alias converter)
EnvMapping = Tuple[str, Optional[str], Tuple[str, ...], Optional[Callable[[str], Any]]]

ENV_MAPPINGS: Tuple[EnvMapping, ...] = (
    # Server
    ("PORT", "PORT", ("server", "port"), None),
    ("BIND_ADDRESS", "BIND_ADDRESS", ("server", "bind_address"), None),
    ("PUBLIC_URL", "PUBLIC_URL", ("server", "public_url"), None),
    ("CORS_ORIGIN", "CORS_ORIGIN", ("server", "cors_origin"), None),
    ("REQUEST_SIZE_LIMIT", "REQUEST_SIZE_LIMIT", ("server", "request_size_limit"), None),
    ("ALLOWED_HOSTS", None, ("server", "allowed_hosts"), None),
    ("ALLOWED_ORIGINS", None, ("server", "allowed_origins"), None),
    ("HOST_ORIGIN_PROTECTION", None, ("server", "host_origin_protection"), None),
    # Sessions
    ("MAX_SESSIONS", "MAX_SESSIONS", ("sessions", "max_sessions"), None),
    ("SESSION_TIMEOUT", "SESSION_TIMEOUT_MS", ("sessions", "session_timeout"), _milliseconds),
    # Rate limiting
    ("RATE_LIMIT_WINDOW", "RATE_LIMIT_WINDOW_MS", ("rate_limit", "window"), _milliseconds),
    ("RATE_LIMIT_MAX_REQUESTS", "RATE_LIMIT_MAX_REQUESTS", ("rate_limit", "max_requests"), None),
    # Outbound HTTP
    ("HTTP_RETRIES", None, ("http", "retries"), None),
    ("HTTP_RETRY_DELAY", None, ("http", "retry_delay"), None),
    ("HTTP_TIMEOUT", None, ("http", "timeout"), None),
    # Data
    ("USE_TEST_FIXTURES", "USE_TEST_FIXTURES", ("data", "use_test_fixtures"), None),
    ("FIXTURES_DIR", None, ("data", "fixtures_dir"), None),
    ("WEATHER_REPORT_DIR", None, ("data", "weather_report_dir"), None),
    # Logging
    ("DEBUG", "DEBUG_MCHMCP", ("logging", "debug"), None),
    ("LOG_LEVEL", None, ("logging", "level"), None),
    ("LOG_FILE", None, ("logging", "file_path"), None),
    ("LOG_STRUCTURED", None, ("logging", "enable_structured"), None),
    # Environment
    ("ENVIRONMENT", "NODE_ENV", ("environment",), None),
)


class ConfigLoader:
    """Configuration loader reading environment variables."""

    def __init__(self, env_prefix: str = ENV_PREFIX) -> None:
        self.env_prefix = env_prefix

    def load_config(
        self,
        environ: Optional[Mapping[str, str]] = None,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> AppConfig:
        """
        Load configuration from the environment.

        Args:
            environ: Environment mapping (defaults to ``os.environ``)
            overrides: Nested values applied on top of the environment

        Returns:
            Validated AppConfig

        Raises:
            ConfigurationError: If any value fails validation
        """
        config_data = self._load_from_environment(os.environ if environ is None else environ)
        if overrides:
            config_data = self._deep_merge(config_data, overrides)

        try:
            config = AppConfig(**config_data)
        except ValidationError as e:
            errors = [
                f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
                for err in e.errors()
            ]
            raise ConfigurationError(
                "Invalid configuration: " + "; ".join(errors), errors=errors
            ) from e

        logger.debug("Configuration loaded (environment=%s)", config.environment.value)
        return config

    def _load_from_environment(self, environ: Mapping[str, str]) -> Dict[str, Any]:
        """Map environment variables onto the nested config structure."""
        config: Dict[str, Any] = {}

        for name, alias, config_path, alias_converter in ENV_MAPPINGS:
            value: Any = environ.get(f"{self.env_prefix}{name}")
            if value is None and alias is not None:
                value = environ.get(alias)
                if value is not None and alias_converter is not None:
                    value = alias_converter(value)
            if value is None or value == "":
                continue

            current = config
            for key in config_path[:-1]:
                current = current.setdefault(key, {})
            current[config_path[-1]] = value

        return config

    def _deep_merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge two dictionaries."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result


def load_config(
    environ: Optional[Mapping[str, str]] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> AppConfig:
    """Load the application configuration from the environment."""
    return ConfigLoader().load_config(environ, overrides)
