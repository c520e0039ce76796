"""
Tests for page content retrieval.
"""

import pytest

from meteoswiss.cache import HttpCache
from meteoswiss.config import HttpConfig
from meteoswiss.data import ContentService
from meteoswiss.data.content import (
    fixture_lookup,
    language_from_host,
    resolve_content_url,
    validate_content_url,
)
from meteoswiss.exceptions import ContentError
from meteoswiss.http import HttpClient

PAGE = """<html lang="en"><head><title>Föhn</title></head>
<body><main><h1>Foehn</h1><p>A warm, dry wind.</p></main></body></html>"""


@pytest.fixture
def fixture_content(fixtures_dir) -> ContentService:
    return ContentService(HttpClient(), fixtures_dir=fixtures_dir / "content", use_fixtures=True)


@pytest.fixture
async def api_content():
    async with HttpClient(HttpCache(), HttpConfig(retries=0)) as client:
        yield ContentService(client)


class TestContentUrls:
    """Test id resolution and domain validation."""

    def test_resolve_path(self):
        assert resolve_content_url("/weather/foehn.html") == "https://www.meteoswiss.admin.ch/weather/foehn.html"
        assert resolve_content_url("weather/foehn.html") == "https://www.meteoswiss.admin.ch/weather/foehn.html"

    def test_resolve_absolute_url(self):
        url = "https://www.meteosuisse.admin.ch/meteo.html"
        assert resolve_content_url(url) == url

    def test_path_starting_with_http_is_relative(self):
        assert resolve_content_url("http-status.html") == "https://www.meteoswiss.admin.ch/http-status.html"
        assert fixture_lookup("http-status.html") == ("de", "http-status")

    @pytest.mark.parametrize(
        "url",
        [
            "https://www.meteoschweiz.admin.ch/wetter.html",
            "https://meteosvizzera.admin.ch/tempo.html",
            "http://meteoswiss.admin.ch/",
        ],
    )
    def test_allowed_domains(self, url):
        assert validate_content_url(url) == url

    def test_foreign_domain(self):
        with pytest.raises(ContentError) as exc_info:
            validate_content_url("https://evil.example.com/page")

        assert str(exc_info.value) == "Invalid domain: evil.example.com. Only MeteoSwiss domains are allowed."

    def test_lookalike_domain(self):
        with pytest.raises(ContentError):
            validate_content_url("https://www.meteoswiss.admin.ch.evil.com/page")

    def test_malformed_url(self):
        with pytest.raises(ContentError):
            validate_content_url("https:///no-host")

    @pytest.mark.parametrize(
        "host,language",
        [
            ("www.meteoschweiz.admin.ch", "de"),
            ("www.meteosuisse.admin.ch", "fr"),
            ("meteosvizzera.admin.ch", "it"),
            ("www.meteoswiss.admin.ch", "en"),
            ("example.com", "de"),
        ],
    )
    def test_language_from_host(self, host, language):
        assert language_from_host(host) == language

    def test_fixture_lookup(self):
        assert fixture_lookup("https://www.meteosuisse.admin.ch/meteo/foehn.html") == ("fr", "foehn")
        assert fixture_lookup("weather-warnings") == ("de", "weather-warnings")
        assert fixture_lookup("https://www.meteoswiss.admin.ch/") == ("en", "index")


class TestFixtureContent:
    """Test content served from fixture files."""

    @pytest.mark.asyncio
    async def test_falls_back_across_languages(self, fixture_content):
        response = await fixture_content.fetch_content("weather-warnings")

        assert response.id == "weather-warnings"
        assert response.title == "Weather warnings"
        assert response.content.startswith("# Weather warnings")
        assert "**thunderstorms**" in response.content
        assert response.metadata.language == "en"
        assert response.metadata.keywords == ["warnings", "storm", "thunderstorm"]
        assert response.metadata.last_modified == "2026-10-17T10:00:00Z"
        assert response.metadata.content_type == "website"

    @pytest.mark.asyncio
    async def test_url_id_uses_detected_language(self, fixture_content):
        response = await fixture_content.fetch_content(
            "https://www.meteoschweiz.admin.ch/wetter.html", format="text"
        )

        assert response.title == "Wetter - MeteoSchweiz"
        assert response.content == "Wetter heute\nSonnig im Süden, bewölkt im Norden."
        assert response.metadata.url == "https://www.meteoschweiz.admin.ch/wetter.html"
        assert response.metadata.keywords == ["Wetter", "Prognose"]
        assert response.metadata.description == "Das Wetter in der Schweiz"

    @pytest.mark.asyncio
    async def test_images(self, fixture_content):
        response = await fixture_content.fetch_content("weather-warnings", include_images=True)

        assert [image.src for image in response.images] == [
            "https://www.meteoswiss.admin.ch/images/warning-map.png"
        ]

    @pytest.mark.asyncio
    async def test_missing_fixture(self, fixture_content):
        with pytest.raises(ContentError) as exc_info:
            await fixture_content.fetch_content("does-not-exist")

        assert str(exc_info.value) == "Content not found: does-not-exist"


class TestApiContent:
    """Test content fetched over HTTP."""

    @pytest.mark.asyncio
    async def test_fetch_page(self, api_content, mock_aiohttp):
        mock_aiohttp.get("https://www.meteoswiss.admin.ch/weather/foehn.html", status=200, body=PAGE)

        response = await api_content.fetch_content("/weather/foehn.html", format="markdown")

        assert response.title == "Foehn"
        assert response.content == "# Foehn\n\nA warm, dry wind."
        assert response.format == "markdown"

    @pytest.mark.asyncio
    async def test_not_found(self, api_content, mock_aiohttp):
        mock_aiohttp.get("https://www.meteoswiss.admin.ch/missing.html", status=404)

        with pytest.raises(ContentError) as exc_info:
            await api_content.fetch_content("missing.html")

        assert str(exc_info.value) == "Content not found: missing.html"

    @pytest.mark.asyncio
    async def test_server_error(self, api_content, mock_aiohttp):
        mock_aiohttp.get("https://www.meteoswiss.admin.ch/broken.html", status=500)

        with pytest.raises(ContentError) as exc_info:
            await api_content.fetch_content("broken.html")

        assert str(exc_info.value).startswith("Failed to fetch content: HTTP error 500")

    @pytest.mark.asyncio
    async def test_foreign_domain_is_not_fetched(self, api_content, mock_aiohttp):
        with pytest.raises(ContentError) as exc_info:
            await api_content.fetch_content("https://example.com/page.html")

        assert "Invalid domain: example.com" in str(exc_info.value)
        assert mock_aiohttp.requests == {}

    @pytest.mark.asyncio
    async def test_path_starting_with_http(self, api_content, mock_aiohttp):
        mock_aiohttp.get("https://www.meteoswiss.admin.ch/http-status.html", status=200, body=PAGE)

        response = await api_content.fetch_content("http-status.html", format="text")

        assert response.title == "Foehn"
        assert response.metadata.url == "https://www.meteoswiss.admin.ch/http-status.html"
