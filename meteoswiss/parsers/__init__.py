"""
HTML parsing for weather report products and MeteoSwiss pages.
"""

from .content import (
    extract_main_content,
    extract_metadata,
    html_to_markdown,
    html_to_text,
    process_html_content,
)
from .weather_report import parse_weather_report_html

__all__ = [
    "extract_main_content",
    "extract_metadata",
    "html_to_markdown",
    "html_to_text",
    "parse_weather_report_html",
    "process_html_content",
]
