"""
Composition root for the MeteoSwiss MCP server.

One ServerContext owns the shared cache, HTTP client, session registry and
data services of a server instance and controls their background tasks.
"""

import logging
from typing import Optional

from meteoswiss.cache import HttpCache
from meteoswiss.config import AppConfig
from meteoswiss.data import ContentService, SearchService, WeatherReportService
from meteoswiss.http import HttpClient
from meteoswiss.sessions import SessionRegistry
from meteoswiss.urls import get_mcp_endpoint_url

logger = logging.getLogger(__name__)


class ServerContext:
    """Shared state of one server instance."""

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        http_client: Optional[HttpClient] = None,
    ) -> None:
        """
        Wire up the server components from configuration.

        Args:
            config: Application configuration (defaults when omitted)
            http_client: Pre-built client, mainly for tests
        """
        self.config = config or AppConfig()

        self.cache = http_client.cache if http_client is not None else HttpCache()
        self.http_client = http_client or HttpClient(self.cache, self.config.http)

        session_config = self.config.sessions
        self.sessions = SessionRegistry(
            max_sessions=session_config.max_sessions,
            session_timeout=session_config.session_timeout,
            sweep_interval=session_config.sweep_interval,
        )

        data_config = self.config.data
        self.weather_reports = WeatherReportService(data_config.weather_report_dir)
        self.search = SearchService(
            self.http_client,
            fixtures_dir=data_config.fixtures_dir / "search",
            use_fixtures=data_config.use_test_fixtures,
        )
        self.content = ContentService(
            self.http_client,
            fixtures_dir=data_config.fixtures_dir / "content",
            use_fixtures=data_config.use_test_fixtures,
        )
        self._started = False

    @property
    def mcp_endpoint_url(self) -> str:
        server = self.config.server
        return get_mcp_endpoint_url(server.port, server.public_url)

    async def start(self) -> None:
        """Start the cache and session sweepers."""
        if self._started:
            return
        self.cache.start_cleanup(self.config.http.cache_cleanup_interval)
        self.sessions.start()
        self._started = True
        logger.debug("Server context started")

    async def close(self) -> None:
        """Stop background tasks, close every session and the HTTP client."""
        await self.cache.stop_cleanup()
        await self.sessions.stop()
        await self.http_client.close()
        self._started = False
        logger.debug("Server context closed")

    def health(self) -> dict:
        """Health report for the ``/health`` endpoint."""
        return {
            "status": "ok",
            "sessions": self.sessions.size,
            "endpoint": self.mcp_endpoint_url,
            "cache": self.cache.get_stats(),
        }
