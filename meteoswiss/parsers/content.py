"""
Content extraction for MeteoSwiss web pages.

This module locates the main content of a page, pulls metadata from its
``<head>`` and renders the content as Markdown, plain text or HTML.
"""

from __future__ import annotations

import logging
from typing import List, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag
from markdownify import ATX, markdownify

from ..exceptions import ContentError
from ..models import (
    ContentFormat,
    ContentImage,
    ContentMetadata,
    ContentResponse,
)

logger = logging.getLogger(__name__)

MAIN_CONTENT_SELECTORS = (
    "main",
    '[role="main"]',
    ".main-content",
    ".content",
    "article",
    ".mch-article",
    "#content",
)

BOILERPLATE_TAGS = ("nav", "header", "footer", "script", "style")


def extract_main_content(soup: BeautifulSoup) -> Optional[Tag]:
    """
    Return the element holding the page's main content.

    Falls back to ``<body>`` with navigation, header, footer, scripts and
    styles removed.
    """
    for selector in MAIN_CONTENT_SELECTORS:
        element = soup.select_one(selector)
        if element is not None:
            return element

    body = soup.body
    if body is None:
        return None

    for element in body.find_all(BOILERPLATE_TAGS):
        element.decompose()
    return body


def extract_title(soup: BeautifulSoup) -> str:
    for tag_name in ("h1", "title"):
        element = soup.find(tag_name)
        if element is not None:
            text = element.get_text().strip()
            if text:
                return text
    return "Untitled"


def _meta_content(soup: BeautifulSoup, **attrs: str) -> Optional[str]:
    element = soup.find("meta", attrs=attrs)
    if element is None:
        return None
    content = element.get("content")
    return content or None


def detect_language(soup: BeautifulSoup) -> str:
    lang = None
    if soup.html is not None:
        lang = soup.html.get("lang")
    lang = lang or _meta_content(soup, property="og:locale") or "de"
    return lang[:2].lower()


def extract_metadata(soup: BeautifulSoup, url: str) -> ContentMetadata:
    """Collect language, dates, type, keywords and description."""
    keywords = (
        _meta_content(soup, name="keywords")
        or _meta_content(soup, property="article:tag")
        or ""
    )

    return ContentMetadata(
        url=url,
        language=detect_language(soup),
        last_modified=_meta_content(soup, property="article:modified_time")
        or _meta_content(soup, name="DC.date.modified"),
        content_type=_meta_content(soup, property="og:type")
        or _meta_content(soup, name="DC.type")
        or "article",
        keywords=[k.strip() for k in keywords.split(",") if k.strip()],
        description=_meta_content(soup, name="description")
        or _meta_content(soup, property="og:description"),
    )


def extract_images(element: Tag, base_url: str) -> List[ContentImage]:
    images: List[ContentImage] = []
    for img in element.find_all("img"):
        src = img.get("src")
        if not src:
            continue
        images.append(ContentImage(src=urljoin(base_url, src), alt=img.get("alt") or None))
    return images


def html_to_markdown(html: str) -> str:
    """Convert an HTML fragment to Markdown with ATX headings and ``-`` bullets."""
    markdown = markdownify(html, heading_style=ATX, bullets="-")
    return markdown.strip()


def html_to_text(element: Tag) -> str:
    """Plain text with every line trimmed and blank lines removed."""
    lines = (line.strip() for line in element.get_text().split("\n"))
    return "\n".join(line for line in lines if line)


def process_html_content(
    html: str,
    content_id: str,
    url: str,
    format: ContentFormat = ContentFormat.MARKDOWN,
    include_metadata: bool = True,
    include_images: bool = False,
) -> ContentResponse:
    """
    Convert a page into a ContentResponse.

    Args:
        html: Full HTML document
        content_id: Identifier the caller asked for
        url: Absolute URL of the page
        format: Output format
        include_metadata: Attach metadata extracted from the page head
        include_images: Attach images found in the main content

    Returns:
        ContentResponse in the requested format
    """
    format = ContentFormat(format)
    soup = BeautifulSoup(html, "lxml")

    title = extract_title(soup)
    metadata = extract_metadata(soup, url) if include_metadata else None
    main = extract_main_content(soup)

    if main is None:
        logger.debug("No content element found for %s", url)
        content = ""
        images: List[ContentImage] = []
    else:
        if format == ContentFormat.MARKDOWN:
            content = html_to_markdown(main.decode_contents())
        elif format == ContentFormat.TEXT:
            content = html_to_text(main)
        elif format == ContentFormat.HTML:
            content = main.decode_contents().strip()
        else:
            raise ContentError(f"Invalid format: {format}", url)
        images = extract_images(main, url) if include_images else []

    return ContentResponse(
        id=content_id,
        title=title,
        content=content,
        format=format,
        metadata=metadata,
        images=images if include_images else None,
    )
