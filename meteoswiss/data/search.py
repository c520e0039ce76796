"""
Search over MeteoSwiss website content.

Live searches query the site's Solr-backed search API; in fixture mode
results are served from recorded responses on disk.
"""

import json
import logging
import re
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
from urllib.parse import urlencode

import aiofiles

from ..exceptions import HttpRequestError, MeteoSwissError
from ..http import HttpClient
from ..models import Language, SearchResultItem, SearchResults, SearchSort

logger = logging.getLogger(__name__)

LANGUAGE_DOMAINS = {
    Language.DE: "https://www.meteoschweiz.admin.ch",
    Language.FR: "https://www.meteosuisse.admin.ch",
    Language.IT: "https://www.meteosvizzera.admin.ch",
    Language.EN: "https://www.meteoswiss.admin.ch",
}

SEARCH_API_PATH = "/api/search"
SEARCH_TENANT = "mchweb"
SEARCH_PAGE_GROUP = "project"

SORT_PARAMETERS = {
    SearchSort.RELEVANCE: "score desc",
    SearchSort.DATE_DESC: "publicationDate desc,sortTitle asc",
    SearchSort.DATE_ASC: "publicationDate asc,sortTitle asc",
}

DEFAULT_PAGE_SIZE = 12


class SearchError(MeteoSwissError):
    """Raised when a search cannot be completed."""

    pass


def build_search_url(
    query: str,
    language: Language,
    content_type: Optional[str],
    page: int,
    page_size: int,
    sort: SearchSort,
) -> str:
    """Build the search API URL for the given parameters."""
    params = {
        "fullText": query,
        "tenant": SEARCH_TENANT,
        "pageGroup": SEARCH_PAGE_GROUP,
        "rows": str(page_size),
        "start": str((page - 1) * page_size),
    }
    if content_type:
        params["type"] = content_type
    params["sort"] = SORT_PARAMETERS[sort]

    domain = LANGUAGE_DOMAINS[language]
    return f"{domain}{SEARCH_API_PATH}/public-{language.value}/search/results.json?{urlencode(params)}"


def document_to_result(doc: Dict[str, Any], domain: str) -> SearchResultItem:
    """Map a Solr document to a search result."""
    path = doc.get("path")
    url = f"{domain}{path}" if path else ""

    return SearchResultItem(
        id=url or doc.get("id") or "",
        title=doc.get("title") or "Untitled",
        url=url,
        description=doc.get("lead") or doc.get("description") or "",
        content_type=doc.get("pageType") or "content",
        last_modified=doc.get("modificationDate") or doc.get("publicationDate"),
        path=path,
        lead=doc.get("lead"),
        publication_date=doc.get("publicationDate"),
    )


def _docs(response: Dict[str, Any]) -> List[Dict[str, Any]]:
    return (response.get("response") or {}).get("docs") or []


def _num_found(response: Dict[str, Any]) -> int:
    return (response.get("response") or {}).get("numFound") or 0


def _sort_key(item: SearchResultItem) -> float:
    value = item.last_modified or item.publication_date
    if not value:
        return 0.0
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).timestamp()
    except ValueError:
        return 0.0


async def _read_json(path: Path) -> Dict[str, Any]:
    async with aiofiles.open(path, encoding="utf-8") as f:
        return json.loads(await f.read())


def query_slug(query: str) -> str:
    """File-name slug of a query: lower case, non ``[a-z0-9]`` replaced by ``-``."""
    return re.sub(r"[^a-z0-9]", "-", query.lower())


class SearchService:
    """Searches MeteoSwiss content through the live API or local fixtures."""

    def __init__(
        self,
        client: HttpClient,
        fixtures_dir: Optional[Union[str, Path]] = None,
        use_fixtures: bool = False,
    ) -> None:
        """
        Initialize the search service.

        Args:
            client: HTTP client used for live searches
            fixtures_dir: Directory with ``<lang>/<slug>-results.json`` files
            use_fixtures: Serve results from fixtures instead of the API
        """
        self.client = client
        self.fixtures_dir = Path(fixtures_dir) if fixtures_dir is not None else None
        self.use_fixtures = use_fixtures

    async def search(
        self,
        query: str,
        language: Union[Language, str] = Language.DE,
        content_type: Optional[str] = None,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
        sort: Union[SearchSort, str] = SearchSort.RELEVANCE,
    ) -> SearchResults:
        """
        Search MeteoSwiss content.

        Args:
            query: Full-text query
            language: Site language to search
            content_type: Optional page type filter
            page: 1-based page number
            page_size: Results per page
            sort: Sort order

        Returns:
            SearchResults for the requested page

        Raises:
            SearchError: If the search API request fails
        """
        language = Language(language)
        sort = SearchSort(sort)

        if self.use_fixtures:
            return await self._search_fixtures(query, language, page, page_size, sort)
        return await self._search_api(query, language, content_type, page, page_size, sort)

    async def _search_api(
        self,
        query: str,
        language: Language,
        content_type: Optional[str],
        page: int,
        page_size: int,
        sort: SearchSort,
    ) -> SearchResults:
        url = build_search_url(query, language, content_type, page, page_size, sort)
        domain = LANGUAGE_DOMAINS[language]

        try:
            logger.debug("Searching MeteoSwiss API: %s", url)
            response = await self.client.fetch_json(url)
        except HttpRequestError as e:
            status = e.status_code if e.status_code is not None else "unknown"
            raise SearchError(
                f"Failed to search MeteoSwiss content: HTTP error {status}", url
            ) from e

        if not isinstance(response, dict):
            raise SearchError(
                "Failed to search MeteoSwiss content: unexpected response format", url
            )

        return SearchResults(
            total_results=_num_found(response),
            page=page,
            page_size=page_size,
            results=[document_to_result(doc, domain) for doc in _docs(response)],
        )

    async def _search_fixtures(
        self,
        query: str,
        language: Language,
        page: int,
        page_size: int,
        sort: SearchSort,
    ) -> SearchResults:
        domain = LANGUAGE_DOMAINS[language]
        start = (page - 1) * page_size
        lang_dir = self.fixtures_dir / language.value if self.fixtures_dir else None

        if lang_dir is None or not lang_dir.is_dir():
            logger.debug("No search fixtures for %s", language.value)
            return SearchResults(total_results=0, page=1, page_size=DEFAULT_PAGE_SIZE)

        fixture_file = lang_dir / f"{query_slug(query)}-results.json"
        if fixture_file.is_file():
            logger.debug("Serving search fixture %s", fixture_file)
            response = await _read_json(fixture_file)
            results = [document_to_result(doc, domain) for doc in _docs(response)]

            if sort == SearchSort.DATE_DESC:
                results.sort(key=_sort_key, reverse=True)
            elif sort == SearchSort.DATE_ASC:
                results.sort(key=_sort_key)

            return SearchResults(
                total_results=_num_found(response),
                page=page,
                page_size=page_size,
                results=results[start : start + page_size],
            )

        files = sorted(p for p in lang_dir.iterdir() if p.is_file())
        if not files:
            return SearchResults(total_results=0, page=1, page_size=DEFAULT_PAGE_SIZE)

        response = await _read_json(files[0])
        needle = query.lower()
        matching = [
            doc
            for doc in _docs(response)
            if any(needle in (doc.get(field) or "").lower() for field in ("title", "lead", "content"))
        ]
        results = [document_to_result(doc, domain) for doc in matching]

        return SearchResults(
            total_results=len(results),
            page=page,
            page_size=page_size,
            results=results[start : start + page_size],
        )
