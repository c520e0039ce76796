"""
MeteoSwiss content access for AI assistants.

This package provides the building blocks of the MeteoSwiss MCP server:

- An HTTP response cache with ETag/Last-Modified revalidation
- A retrying aiohttp fetch client layered on the cache
- A bounded session registry with idle eviction
- Data services for weather reports, site search and page content
"""

__version__ = "1.0.0"

from .cache import CacheEntry, HttpCache
from .config import AppConfig, ConfigLoader, load_config
from .data import ContentService, SearchService, WeatherReportService
from .exceptions import (
    ConfigurationError,
    ContentError,
    HttpRequestError,
    MeteoSwissError,
    SessionLimitError,
)
from .http import FetchOptions, HttpClient
from .models import (
    ContentFormat,
    ContentResponse,
    Language,
    Region,
    SearchResults,
    SearchSort,
    WeatherReport,
)
from .sessions import SessionRegistry, SessionTransport

__all__ = [
    "AppConfig",
    "CacheEntry",
    "ConfigLoader",
    "ConfigurationError",
    "ContentError",
    "ContentFormat",
    "ContentResponse",
    "ContentService",
    "FetchOptions",
    "HttpCache",
    "HttpClient",
    "HttpRequestError",
    "Language",
    "MeteoSwissError",
    "Region",
    "SearchResults",
    "SearchService",
    "SearchSort",
    "SessionLimitError",
    "SessionRegistry",
    "SessionTransport",
    "WeatherReport",
    "WeatherReportService",
    "load_config",
]
