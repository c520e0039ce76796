"""
Tests for configuration models and the environment loader.
"""

from pathlib import Path

import pytest

from meteoswiss.config import (
    AppConfig,
    ConfigLoader,
    DataConfig,
    Environment,
    LogLevel,
    ServerConfig,
    load_config,
)
from meteoswiss.exceptions import ConfigurationError


class TestConfigModels:
    """Test configuration defaults and validation."""

    def test_defaults(self):
        config = AppConfig()

        assert config.environment == Environment.PRODUCTION
        assert config.server.port == 3000
        assert config.server.bind_address == "0.0.0.0"
        assert config.sessions.max_sessions == 100
        assert config.sessions.session_timeout == 300.0
        assert config.sessions.sweep_interval == 60.0
        assert config.http.retries == 3
        assert config.http.retry_delay == 1.0
        assert config.http.timeout == 5.0
        assert config.rate_limit.window == 60.0
        assert config.logging.level == LogLevel.INFO

    def test_weather_report_dir_follows_fixtures_dir(self):
        config = DataConfig(fixtures_dir=Path("/data/fixtures"))
        assert config.weather_report_dir == Path("/data/fixtures/weather-report")

    def test_explicit_weather_report_dir(self):
        config = DataConfig(weather_report_dir=Path("/srv/reports"))
        assert config.weather_report_dir == Path("/srv/reports")

    @pytest.mark.parametrize("port", [0, 65536, -1])
    def test_invalid_port(self, port):
        with pytest.raises(ValueError):
            ServerConfig(port=port)

    @pytest.mark.parametrize("address", ["0.0.0.0", "127.0.0.1", "::", "::1", "localhost"])
    def test_valid_bind_addresses(self, address):
        assert ServerConfig(bind_address=address).bind_address == address

    def test_invalid_bind_address(self):
        with pytest.raises(ValueError):
            ServerConfig(bind_address="not-an-address")

    def test_public_url_must_be_http(self):
        with pytest.raises(ValueError):
            ServerConfig(public_url="ftp://example.com")
        assert ServerConfig(public_url="https://mcp.example.com").public_url == "https://mcp.example.com"

    def test_allowed_hosts_from_comma_string(self):
        config = ServerConfig(allowed_hosts="localhost, mcp.example.com,")
        assert config.allowed_hosts == ["localhost", "mcp.example.com"]

    def test_unknown_section_rejected(self):
        with pytest.raises(ValueError):
            AppConfig(unknown={})

    def test_assignment_is_validated(self):
        config = AppConfig()
        with pytest.raises(ValueError):
            config.environment = "staging"


class TestConfigLoader:
    """Test loading configuration from environment variables."""

    def test_empty_environment_gives_defaults(self):
        config = load_config(environ={})
        assert config == AppConfig()

    def test_prefixed_variables(self):
        config = load_config(
            environ={
                "METEOSWISS_PORT": "8080",
                "METEOSWISS_MAX_SESSIONS": "5",
                "METEOSWISS_SESSION_TIMEOUT": "120",
                "METEOSWISS_USE_TEST_FIXTURES": "true",
                "METEOSWISS_LOG_LEVEL": "DEBUG",
                "METEOSWISS_ENVIRONMENT": "development",
            }
        )

        assert config.server.port == 8080
        assert config.sessions.max_sessions == 5
        assert config.sessions.session_timeout == 120.0
        assert config.data.use_test_fixtures is True
        assert config.logging.level == LogLevel.DEBUG
        assert config.is_development

    def test_legacy_aliases(self):
        config = load_config(
            environ={
                "PORT": "4000",
                "MAX_SESSIONS": "7",
                "SESSION_TIMEOUT_MS": "60000",
                "RATE_LIMIT_WINDOW_MS": "30000",
                "RATE_LIMIT_MAX_REQUESTS": "50",
                "DEBUG_MCHMCP": "1",
                "NODE_ENV": "test",
                "PUBLIC_URL": "https://mcp.example.com/",
            }
        )

        assert config.server.port == 4000
        assert config.sessions.max_sessions == 7
        assert config.sessions.session_timeout == 60.0
        assert config.rate_limit.window == 30.0
        assert config.rate_limit.max_requests == 50
        assert config.logging.debug is True
        assert config.environment == Environment.TEST
        assert config.server.public_url == "https://mcp.example.com/"

    def test_prefixed_name_wins_over_alias(self):
        config = load_config(environ={"METEOSWISS_PORT": "5000", "PORT": "6000"})
        assert config.server.port == 5000

    def test_empty_values_are_ignored(self):
        config = load_config(environ={"PORT": "", "PUBLIC_URL": ""})
        assert config.server.port == 3000
        assert config.server.public_url is None

    def test_overrides_are_merged(self):
        config = load_config(
            environ={"METEOSWISS_PORT": "5000", "METEOSWISS_BIND_ADDRESS": "127.0.0.1"},
            overrides={"server": {"port": 9000}},
        )

        assert config.server.port == 9000
        assert config.server.bind_address == "127.0.0.1"

    def test_invalid_values_raise_configuration_error(self):
        with pytest.raises(ConfigurationError) as exc_info:
            load_config(environ={"PORT": "99999", "MAX_SESSIONS": "many"})

        error = exc_info.value
        assert len(error.errors) == 2
        assert any(message.startswith("server.port") for message in error.errors)
        assert any(message.startswith("sessions.max_sessions") for message in error.errors)
        assert str(error).startswith("Invalid configuration: ")

    def test_invalid_millisecond_alias(self):
        with pytest.raises(ConfigurationError):
            load_config(environ={"SESSION_TIMEOUT_MS": "soon"})

    def test_custom_prefix(self):
        loader = ConfigLoader(env_prefix="MCH_")
        config = loader.load_config(environ={"MCH_PORT": "3100"})
        assert config.server.port == 3100

    def test_deep_merge(self):
        loader = ConfigLoader()
        merged = loader._deep_merge(
            {"server": {"port": 1, "bind_address": "::"}, "environment": "test"},
            {"server": {"port": 2}},
        )
        assert merged == {"server": {"port": 2, "bind_address": "::"}, "environment": "test"}
