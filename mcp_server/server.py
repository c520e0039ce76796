"""
MeteoSwiss MCP Server Implementation

This module implements the MCP server using the FastMCP framework. It exposes
MeteoSwiss weather reports, site search and page content as tools, plus a few
ready-made prompts, over stdio or streamable HTTP.
"""

import json
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Literal, Optional

from fastmcp import Context, FastMCP
from fastmcp.prompts import Message
from fastmcp.tools import ToolResult
from pydantic import Field
from starlette.requests import Request
from starlette.responses import JSONResponse
from typing_extensions import Annotated

from meteoswiss import __version__
from meteoswiss.config import load_config
from meteoswiss.logging import setup_logging
from meteoswiss.urls import HEALTH_PATH, MCP_PATH

from .context import ServerContext
from .transport import session_tracking_middleware

logger = logging.getLogger(__name__)
tool_logger = logging.getLogger("mcp_server.tools")

SERVER_NAME = "mcp-server-meteoswiss"

INSTRUCTIONS = """
Access official MeteoSwiss weather reports and forecasts for Switzerland.

Available tools:
- meteoswissWeatherReport: daily weather report for Northern, Southern or
  Western Switzerland in German, French, Italian or English
- meteoswissSearch: search the MeteoSwiss website
- meteoswissFetch: fetch a MeteoSwiss page as markdown, text or HTML
"""

WEATHER_REPORT_DESCRIPTION = """Get the official MeteoSwiss weather report for a Swiss region. Returns detailed daily forecasts including weather conditions, temperatures, and regional outlooks.

MeteoSwiss divides Switzerland into three main forecast regions:
- north: Northern Switzerland (including Zurich, Basel, Bern, and the Swiss Plateau)
- south: Southern Switzerland (Ticino and southern valleys)
- west: Western Switzerland (Romandy, including Geneva, Lausanne, and western Alps)

Weather reports are updated twice daily (morning and afternoon) and include:
- General weather situation and outlook
- Daily forecasts for the next 3-5 days
- Temperature ranges and trends
- Precipitation probability using standardized terms
- Regional-specific conditions (e.g., Foehn effects, valley fog)

Language support reflects Switzerland's multilingual nature:
- German (de): Primary language for northern regions
- French (fr): Primary language for western regions
- Italian (it): Primary language for southern regions (Ticino)
- English (en): Available for all regions"""

SEARCH_DESCRIPTION = """Search the MeteoSwiss website for weather information, climate data, warnings and publications.

Results contain a title, description, content type, dates and a URL. Pass a result URL to meteoswissFetch to read the full page."""

FETCH_DESCRIPTION = """Fetch the full content of a MeteoSwiss web page.

The id is a page URL (as returned by meteoswissSearch) or a path on www.meteoswiss.admin.ch. Only MeteoSwiss domains are accepted. Content is returned as markdown, plain text or HTML, optionally with page metadata and images."""

READ_ONLY = {"readOnlyHint": True, "openWorldHint": True}


def _json_text(payload: Dict[str, Any]) -> str:
    return json.dumps(payload, indent=2, ensure_ascii=False)


async def _tool_error(ctx: Optional[Context], operation: str, error: Exception) -> ToolResult:
    message = str(error)
    if not message.startswith("Failed to"):
        message = f"Failed to {operation}: {message}"
    tool_logger.error(message)
    if ctx:
        await ctx.error(message)
    return ToolResult(content=message, is_error=True)


def _create_lifespan(context: ServerContext):
    @asynccontextmanager
    async def lifespan(server: FastMCP) -> AsyncIterator[Dict[str, Any]]:
        await context.start()
        try:
            yield {"context": context}
        finally:
            await context.close()

    return lifespan


def create_mcp_server(context: Optional[ServerContext] = None) -> FastMCP:
    """
    Create and configure the MeteoSwiss MCP server.

    Args:
        context: Shared server state; built from the environment when omitted

    Returns:
        FastMCP: Configured MCP server instance
    """
    if context is None:
        context = ServerContext(load_config())

    mcp = FastMCP(
        name=SERVER_NAME,
        instructions=INSTRUCTIONS,
        version=__version__,
        lifespan=_create_lifespan(context),
    )

    @mcp.tool(
        name="meteoswissWeatherReport",
        description=WEATHER_REPORT_DESCRIPTION,
        tags={"weather", "forecast"},
        annotations=READ_ONLY,
    )
    async def meteoswiss_weather_report(
        region: Annotated[
            Literal["north", "south", "west"],
            Field(description="Forecast region: north, south or west"),
        ],
        language: Annotated[
            Literal["de", "fr", "it", "en"],
            Field(description="Report language"),
        ] = "en",
        ctx: Optional[Context] = None,
    ) -> ToolResult:
        """Return the latest weather report for a region as JSON text."""
        tool_logger.info(
            "meteoswissWeatherReport called: region=%s language=%s", region, language
        )
        try:
            if ctx:
                await ctx.info(f"Getting weather report for {region} in {language}")
            report = await context.weather_reports.get_latest_report(region, language)
        except Exception as e:
            return await _tool_error(ctx, "get weather report", e)

        tool_logger.debug("Weather report retrieved: %s", report.title)
        return ToolResult(content=_json_text(report.to_wire()))

    @mcp.tool(
        name="meteoswissSearch",
        description=SEARCH_DESCRIPTION,
        tags={"search"},
        annotations=READ_ONLY,
    )
    async def meteoswiss_search(
        query: Annotated[str, Field(description="The search query string", min_length=1)],
        language: Annotated[
            Literal["de", "fr", "it", "en"],
            Field(description="The language for search results"),
        ] = "de",
        contentType: Annotated[
            Optional[str],
            Field(description='Filter by content type (e.g., "content", "pages")'),
        ] = None,
        page: Annotated[
            int, Field(description="Page number for pagination (1-based)", ge=1)
        ] = 1,
        pageSize: Annotated[
            int, Field(description="Number of results per page (max 100)", ge=1, le=100)
        ] = 12,
        sort: Annotated[
            Literal["relevance", "date-desc", "date-asc"],
            Field(description="Sort order for results"),
        ] = "relevance",
        ctx: Optional[Context] = None,
    ) -> ToolResult:
        """Search MeteoSwiss content."""
        tool_logger.info("meteoswissSearch called: query=%r language=%s", query, language)
        try:
            if ctx:
                await ctx.info(f"Searching MeteoSwiss for {query!r}")
            results = await context.search.search(
                query,
                language=language,
                content_type=contentType,
                page=page,
                page_size=pageSize,
                sort=sort,
            )
        except Exception as e:
            return await _tool_error(ctx, "search MeteoSwiss content", e)

        tool_logger.debug("Search returned %d of %d results", len(results.results), results.total_results)
        return ToolResult(content=_json_text(results.to_wire()))

    @mcp.tool(
        name="meteoswissFetch",
        description=FETCH_DESCRIPTION,
        tags={"content"},
        annotations=READ_ONLY,
    )
    async def meteoswiss_fetch(
        id: Annotated[
            str, Field(description="The content ID or path to fetch", min_length=1)
        ],
        format: Annotated[
            Literal["markdown", "text", "html"],
            Field(description="The output format for the content"),
        ] = "markdown",
        includeMetadata: Annotated[
            bool, Field(description="Whether to include metadata in the response")
        ] = True,
        includeImages: Annotated[
            bool, Field(description="Whether to include images found in the content")
        ] = False,
        ctx: Optional[Context] = None,
    ) -> ToolResult:
        """Fetch a MeteoSwiss page."""
        tool_logger.info("meteoswissFetch called: id=%s format=%s", id, format)
        try:
            if ctx:
                await ctx.info(f"Fetching {id}")
            content = await context.content.fetch_content(
                id,
                format=format,
                include_metadata=includeMetadata,
                include_images=includeImages,
            )
        except Exception as e:
            return await _tool_error(ctx, "fetch content", e)

        return ToolResult(content=_json_text(content.to_wire()))

    _register_prompts(mcp)

    @mcp.custom_route(HEALTH_PATH, methods=["GET"])
    async def health(request: Request) -> JSONResponse:
        return JSONResponse(context.health())

    return mcp


def _conversation(user: str, assistant: str) -> list:
    return [Message(user), Message(assistant, role="assistant")]


def _register_prompts(mcp: FastMCP) -> None:
    """Register the canned weather report conversations."""

    @mcp.prompt(
        name="wetterNordschweiz",
        description="Aktueller Wetterbericht für die Nordschweiz",
    )
    def wetter_nordschweiz() -> list:
        return _conversation(
            "Zeige mir den aktuellen Wetterbericht für die Nordschweiz auf Deutsch.",
            "Ich hole für Sie den aktuellen Wetterbericht für die Nordschweiz auf Deutsch.",
        )

    @mcp.prompt(
        name="wetterbericht",
        description="Wetterbericht für eine Schweizer Region abrufen",
    )
    def wetterbericht() -> list:
        return _conversation(
            "Zeige mir den Wetterbericht für die Nordschweiz auf Deutsch.",
            "Ich rufe den Wetterbericht für die gewünschte Region ab. Verwenden Sie das "
            "Tool meteoswissWeatherReport mit den Parametern region (north/south/west) "
            "und language (de/fr/it/en).",
        )

    @mcp.prompt(
        name="weatherNorthernSwitzerland",
        description="Current weather report for Northern Switzerland",
    )
    def weather_northern_switzerland() -> list:
        return _conversation(
            "Show me the current weather report for Northern Switzerland in English.",
            "I'll get the current weather report for Northern Switzerland in English for you.",
        )

    @mcp.prompt(
        name="swissWeather",
        description="Get weather report for a Swiss region",
    )
    def swiss_weather() -> list:
        return _conversation(
            "I want to see the weather report for Northern Switzerland in English.",
            "I'll retrieve the weather report for your chosen region. Use the "
            "meteoswissWeatherReport tool with parameters region (north/south/west) "
            "and language (en/de/fr/it).",
        )

    @mcp.prompt(
        name="meteoSuisseRomande",
        description="Bulletin météo actuel pour la Suisse romande",
    )
    def meteo_suisse_romande() -> list:
        return _conversation(
            "Montre-moi le bulletin météo actuel pour la Suisse romande en français.",
            "Je vais chercher le bulletin météo actuel pour la Suisse romande en français.",
        )

    @mcp.prompt(
        name="meteoTicino",
        description="Bollettino meteo attuale per il Ticino",
    )
    def meteo_ticino() -> list:
        return _conversation(
            "Mostrami il bollettino meteo attuale per il Ticino in italiano.",
            "Recupero il bollettino meteo attuale per il Ticino in italiano.",
        )


def create_http_app(mcp: FastMCP, context: ServerContext):
    """
    Build the streamable-HTTP ASGI app with session tracking.

    Args:
        mcp: Server created by :func:`create_mcp_server`
        context: The context the server was created with

    Returns:
        Starlette application serving ``/mcp`` and ``/health``
    """
    server_config = context.config.server

    return mcp.http_app(
        path=MCP_PATH,
        middleware=[session_tracking_middleware(context.sessions, MCP_PATH)],
        host_origin_protection=server_config.host_origin_protection,
        allowed_hosts=server_config.allowed_hosts,
        allowed_origins=server_config.allowed_origins,
    )


def main(transport: str = "stdio", host: Optional[str] = None, port: Optional[int] = None) -> None:
    """Main entry point for the MCP server."""
    config = load_config()
    setup_logging(config.logging)

    context = ServerContext(config)
    mcp = create_mcp_server(context)

    if transport == "stdio":
        logger.info("Starting MeteoSwiss MCP server on stdio")
        mcp.run()
        return

    import uvicorn

    host = host or config.server.bind_address
    port = port or config.server.port
    logger.info("Starting MeteoSwiss MCP server at %s", context.mcp_endpoint_url)
    uvicorn.run(create_http_app(mcp, context), host=host, port=port, log_level="info")


if __name__ == "__main__":
    main()
