"""
Data models for MeteoSwiss weather reports, search results and page content.

Field names are snake_case in Python and serialize to the camelCase names
used on the wire (``model_dump(by_alias=True)``).
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Region(str, Enum):
    """MeteoSwiss forecast regions."""

    NORTH = "north"
    SOUTH = "south"
    WEST = "west"


class Language(str, Enum):
    """Supported languages."""

    DE = "de"
    FR = "fr"
    IT = "it"
    EN = "en"


class SearchSort(str, Enum):
    """Sort orders supported by the search API."""

    RELEVANCE = "relevance"
    DATE_DESC = "date-desc"
    DATE_ASC = "date-asc"


class ContentFormat(str, Enum):
    """Output formats for fetched page content."""

    MARKDOWN = "markdown"
    TEXT = "text"
    HTML = "html"


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, use_enum_values=True)

    def to_wire(self) -> Dict[str, Any]:
        """Dump with camelCase names, omitting unset optional values."""
        return self.model_dump(by_alias=True, exclude_none=True)


class ForecastDay(_WireModel):
    """Forecast for one day of a weather report."""

    day: str
    description: str
    temperature: Optional[str] = None


class WeatherReport(_WireModel):
    """Regional weather report."""

    region: Region
    language: Language = Language.EN
    title: str
    updated_at: str = Field(alias="updatedAt")
    content: str
    forecast: List[ForecastDay] = Field(default_factory=list)


class SearchResultItem(_WireModel):
    """A single search hit."""

    id: str
    title: str
    url: str
    description: Optional[str] = None
    content_type: Optional[str] = Field(default=None, alias="contentType")
    last_modified: Optional[str] = Field(default=None, alias="lastModified")
    path: Optional[str] = None
    lead: Optional[str] = None
    publication_date: Optional[str] = Field(default=None, alias="publicationDate")


class SearchResults(_WireModel):
    """A page of search results."""

    total_results: int = Field(alias="totalResults")
    page: int
    page_size: int = Field(alias="pageSize")
    results: List[SearchResultItem] = Field(default_factory=list)


class ContentImage(_WireModel):
    """Image referenced by page content."""

    src: str
    alt: Optional[str] = None


class ContentMetadata(_WireModel):
    """Metadata extracted from a page's ``<head>``."""

    url: str
    language: Optional[str] = None
    last_modified: Optional[str] = Field(default=None, alias="lastModified")
    content_type: Optional[str] = Field(default=None, alias="contentType")
    keywords: List[str] = Field(default_factory=list)
    description: Optional[str] = None


class ContentResponse(_WireModel):
    """Page content converted to the requested format."""

    id: str
    title: Optional[str] = None
    content: str
    format: ContentFormat
    metadata: Optional[ContentMetadata] = None
    images: Optional[List[ContentImage]] = None
