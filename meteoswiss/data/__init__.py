"""
Data services for weather reports, search and page content.
"""

from .content import ALLOWED_DOMAINS, ContentService
from .search import LANGUAGE_DOMAINS, SearchError, SearchService
from .weather_report import WeatherReportService

__all__ = [
    "ALLOWED_DOMAINS",
    "ContentService",
    "LANGUAGE_DOMAINS",
    "SearchError",
    "SearchService",
    "WeatherReportService",
]
