"""
Retrieval of full page content from MeteoSwiss websites.
"""

import logging
from pathlib import Path, PurePosixPath
from typing import Optional, Tuple, Union
from urllib.parse import urlparse

import aiofiles

from ..exceptions import ContentError, HttpRequestError
from ..http import HttpClient
from ..models import ContentFormat, ContentResponse
from ..parsers import process_html_content

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_ORIGIN = "https://www.meteoswiss.admin.ch"

ALLOWED_DOMAINS = frozenset(
    [
        "www.meteoschweiz.admin.ch",
        "www.meteosuisse.admin.ch",
        "www.meteosvizzera.admin.ch",
        "www.meteoswiss.admin.ch",
        "meteoschweiz.admin.ch",
        "meteosuisse.admin.ch",
        "meteosvizzera.admin.ch",
        "meteoswiss.admin.ch",
    ]
)

DOMAIN_LANGUAGES = (
    ("meteoschweiz", "de"),
    ("meteosuisse", "fr"),
    ("meteosvizzera", "it"),
    ("meteoswiss", "en"),
)

FIXTURE_LANGUAGES = ("de", "fr", "it", "en")

URL_SCHEMES = ("http://", "https://")


def resolve_content_url(content_id: str) -> str:
    """Turn a content id (absolute URL or site path) into an absolute URL."""
    if content_id.startswith(URL_SCHEMES):
        return content_id
    path = content_id if content_id.startswith("/") else "/" + content_id
    return f"{DEFAULT_CONTENT_ORIGIN}{path}"


def validate_content_url(url: str) -> str:
    """
    Ensure ``url`` points at a MeteoSwiss host.

    Raises:
        ContentError: If the URL is malformed or on another domain
    """
    try:
        parsed = urlparse(url)
        hostname = parsed.hostname
    except ValueError as e:
        raise ContentError(f"Invalid URL: {url}", url) from e

    if not parsed.scheme or not hostname:
        raise ContentError(f"Invalid URL: {url}", url)
    if hostname not in ALLOWED_DOMAINS:
        raise ContentError(
            f"Invalid domain: {hostname}. Only MeteoSwiss domains are allowed.", url
        )
    return url


def language_from_host(hostname: str) -> str:
    for marker, language in DOMAIN_LANGUAGES:
        if marker in hostname:
            return language
    return "de"


def fixture_lookup(content_id: str) -> Tuple[str, str]:
    """Return ``(detected language, file base name)`` for a content id."""
    language = "de"
    path = content_id

    if content_id.startswith(URL_SCHEMES):
        parsed = urlparse(content_id)
        path = parsed.path
        language = language_from_host(parsed.hostname or "")

    file_name = path.split("/")[-1] or "index.html"
    return language, PurePosixPath(file_name).stem


class ContentService:
    """Fetches MeteoSwiss pages and converts them to the requested format."""

    def __init__(
        self,
        client: HttpClient,
        fixtures_dir: Optional[Union[str, Path]] = None,
        use_fixtures: bool = False,
    ) -> None:
        self.client = client
        self.fixtures_dir = Path(fixtures_dir) if fixtures_dir is not None else None
        self.use_fixtures = use_fixtures

    async def fetch_content(
        self,
        content_id: str,
        format: Union[ContentFormat, str] = ContentFormat.MARKDOWN,
        include_metadata: bool = True,
        include_images: bool = False,
    ) -> ContentResponse:
        """
        Fetch a page by id or URL.

        Args:
            content_id: Absolute URL (as returned by search) or site path
            format: Output format
            include_metadata: Attach page metadata
            include_images: Attach images found in the content

        Returns:
            ContentResponse

        Raises:
            ContentError: Invalid or foreign URL, missing content, fetch failure
        """
        format = ContentFormat(format)
        if self.use_fixtures:
            html, url = await self._read_fixture(content_id)
        else:
            html, url = await self._fetch_page(content_id)

        return process_html_content(
            html,
            content_id,
            url,
            format=format,
            include_metadata=include_metadata,
            include_images=include_images,
        )

    async def _fetch_page(self, content_id: str) -> Tuple[str, str]:
        url = validate_content_url(resolve_content_url(content_id))

        try:
            logger.debug("Fetching content from %s", url)
            html = await self.client.fetch_html(url)
        except HttpRequestError as e:
            if e.status_code == 404:
                raise ContentError(f"Content not found: {content_id}", url) from e
            raise ContentError(f"Failed to fetch content: {e}", url) from e

        return html, url

    async def _read_fixture(self, content_id: str) -> Tuple[str, str]:
        detected, base_name = fixture_lookup(content_id)
        url = resolve_content_url(content_id)

        if self.fixtures_dir is not None:
            for language in (detected,) + FIXTURE_LANGUAGES:
                fixture_file = self.fixtures_dir / language / f"{base_name}.html"
                if fixture_file.is_file():
                    logger.debug("Serving content fixture %s", fixture_file)
                    async with aiofiles.open(fixture_file, encoding="utf-8") as f:
                        return await f.read(), url

        raise ContentError(f"Content not found: {content_id}", url)
