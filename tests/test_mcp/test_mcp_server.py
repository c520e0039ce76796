"""
Tests for the MCP server tools, prompts and HTTP app.
"""

import inspect
import json

import httpx
import pytest
from fastmcp import Client, FastMCP
from fastmcp.tools import ToolResult

from mcp_server import ServerContext, create_http_app, create_mcp_server

TOOL_NAMES = {"meteoswissWeatherReport", "meteoswissSearch", "meteoswissFetch"}
PROMPT_NAMES = {
    "wetterNordschweiz",
    "wetterbericht",
    "weatherNorthernSwitzerland",
    "swissWeather",
    "meteoSuisseRomande",
    "meteoTicino",
}


@pytest.fixture
def server_context(fixture_config) -> ServerContext:
    return ServerContext(fixture_config)


@pytest.fixture
def mcp_server(server_context) -> FastMCP:
    """Create MCP server instance for testing."""
    return create_mcp_server(server_context)


def result_json(result) -> dict:
    return json.loads(result.content[0].text)


class TestServerSetup:
    """Test server registration."""

    @pytest.mark.asyncio
    async def test_server_identity(self, mcp_server):
        assert mcp_server.name == "mcp-server-meteoswiss"

    def test_framework_supports_http_options(self):
        http_params = inspect.signature(FastMCP.http_app).parameters
        for name in ("path", "middleware", "host_origin_protection", "allowed_hosts", "allowed_origins"):
            assert name in http_params

        result = ToolResult(content="boom", is_error=True)
        assert result.is_error is True

    @pytest.mark.asyncio
    async def test_tools_are_registered(self, mcp_server):
        async with Client(mcp_server) as client:
            tools = await client.list_tools()

        assert {tool.name for tool in tools} == TOOL_NAMES

    @pytest.mark.asyncio
    async def test_tool_schemas(self, mcp_server):
        async with Client(mcp_server) as client:
            tools = {tool.name: tool for tool in await client.list_tools()}

        report_schema = tools["meteoswissWeatherReport"].inputSchema
        assert report_schema["required"] == ["region"]
        assert report_schema["properties"]["region"]["enum"] == ["north", "south", "west"]

        search_schema = tools["meteoswissSearch"].inputSchema
        assert search_schema["properties"]["pageSize"]["maximum"] == 100
        assert "ctx" not in search_schema["properties"]

    @pytest.mark.asyncio
    async def test_prompts_are_registered(self, mcp_server):
        async with Client(mcp_server) as client:
            prompts = await client.list_prompts()

        assert {prompt.name for prompt in prompts} == PROMPT_NAMES

    @pytest.mark.asyncio
    async def test_prompt_messages(self, mcp_server):
        async with Client(mcp_server) as client:
            result = await client.get_prompt("meteoTicino")

        assert [message.role for message in result.messages] == ["user", "assistant"]
        assert "Ticino" in result.messages[0].content.text


class TestWeatherReportTool:
    """Test the weather report tool."""

    @pytest.mark.asyncio
    async def test_report(self, mcp_server):
        async with Client(mcp_server) as client:
            result = await client.call_tool(
                "meteoswissWeatherReport", {"region": "north", "language": "de"}
            )

        report = result_json(result)
        assert report["title"] == "Wetterbericht Alpennordseite"
        assert report["updatedAt"] == "Aktualisiert am 18.10.2026, 05:30"
        assert len(report["forecast"]) == 2

    @pytest.mark.asyncio
    async def test_default_language_is_english(self, mcp_server):
        async with Client(mcp_server) as client:
            result = await client.call_tool("meteoswissWeatherReport", {"region": "north"})

        assert result_json(result)["language"] == "en"

    @pytest.mark.asyncio
    async def test_missing_report_is_tool_error(self, mcp_server):
        async with Client(mcp_server) as client:
            result = await client.call_tool(
                "meteoswissWeatherReport",
                {"region": "south", "language": "it"},
                raise_on_error=False,
            )

        assert result.is_error
        text = result.content[0].text
        assert text.startswith('Failed to get weather report for region "south"')
        assert text.count("Failed to") == 1


class TestSearchTool:
    """Test the search tool."""

    @pytest.mark.asyncio
    async def test_search(self, mcp_server):
        async with Client(mcp_server) as client:
            result = await client.call_tool(
                "meteoswissSearch", {"query": "Wetter", "pageSize": 2, "sort": "date-desc"}
            )

        results = result_json(result)
        assert results["totalResults"] == 3
        assert results["pageSize"] == 2
        assert results["results"][0]["title"] == "Wetterwarnungen"

    @pytest.mark.asyncio
    async def test_invalid_page_size_is_rejected(self, mcp_server):
        async with Client(mcp_server) as client:
            result = await client.call_tool(
                "meteoswissSearch", {"query": "Wetter", "pageSize": 500}, raise_on_error=False
            )

        assert result.is_error


class TestFetchTool:
    """Test the content fetch tool."""

    @pytest.mark.asyncio
    async def test_fetch(self, mcp_server):
        async with Client(mcp_server) as client:
            result = await client.call_tool(
                "meteoswissFetch", {"id": "weather-warnings", "includeImages": True}
            )

        content = result_json(result)
        assert content["title"] == "Weather warnings"
        assert content["format"] == "markdown"
        assert content["metadata"]["language"] == "en"
        assert content["images"][0]["alt"] == "Warning map"

    @pytest.mark.asyncio
    async def test_missing_content(self, mcp_server):
        async with Client(mcp_server) as client:
            result = await client.call_tool(
                "meteoswissFetch", {"id": "missing-page"}, raise_on_error=False
            )

        assert result.is_error
        assert result.content[0].text == "Failed to fetch content: Content not found: missing-page"


class TestHttpApp:
    """Test the streamable-HTTP application."""

    @pytest.mark.asyncio
    async def test_health(self, mcp_server, server_context):
        server_context.cache.set("https://www.meteoswiss.admin.ch/a", "body")
        app = create_http_app(mcp_server, server_context)

        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://localhost") as client:
            response = await client.get("/health")

        assert response.status_code == 200
        assert response.json() == {
            "status": "ok",
            "sessions": 0,
            "endpoint": "http://localhost:3000/mcp",
            "cache": {"size": 1, "entries": ["https://www.meteoswiss.admin.ch/a"]},
        }

    @pytest.mark.asyncio
    async def test_unknown_session_is_rejected(self, mcp_server, server_context):
        app = create_http_app(mcp_server, server_context)

        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://localhost") as client:
            response = await client.post(
                "/mcp",
                json={"jsonrpc": "2.0", "id": 1, "method": "tools/list"},
                headers={"mcp-session-id": "unknown", "accept": "application/json, text/event-stream"},
            )

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_new_session_refused_by_context_registry(self, mcp_server, server_context):
        server_context.sessions.max_sessions = 0
        app = create_http_app(mcp_server, server_context)

        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://localhost") as client:
            response = await client.post(
                "/mcp",
                json={"jsonrpc": "2.0", "id": 1, "method": "initialize", "params": {}},
                headers={"accept": "application/json, text/event-stream"},
            )

        assert response.status_code == 503
        assert response.json()["error"]["message"] == "Maximum sessions limit (0) reached"
        assert not hasattr(mcp_server, "server_context")


class TestServerContext:
    """Test startup and shutdown of shared state."""

    @pytest.mark.asyncio
    async def test_start_and_close(self, server_context):
        await server_context.start()
        await server_context.start()
        await server_context.close()

        assert server_context.sessions.size == 0

    def test_data_services_use_fixture_tree(self, server_context, fixtures_dir):
        assert server_context.search.fixtures_dir == fixtures_dir / "search"
        assert server_context.content.fixtures_dir == fixtures_dir / "content"
        assert server_context.weather_reports.root == fixtures_dir / "weather-report"
        assert server_context.search.use_fixtures
