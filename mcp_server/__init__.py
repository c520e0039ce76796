"""
MeteoSwiss MCP Server

An MCP (Model Context Protocol) server exposing official MeteoSwiss weather
reports and website content as tools for LLM consumption using the FastMCP
framework.

This server provides:
- Regional weather reports for Northern, Southern and Western Switzerland
- Full-text search over the MeteoSwiss websites
- Page content retrieval as markdown, text or HTML
- Streamable HTTP transport with bounded, idle-evicted sessions
"""

from meteoswiss import __version__

from .context import ServerContext
from .server import create_http_app, create_mcp_server, main

__all__ = ["ServerContext", "create_http_app", "create_mcp_server", "main", "__version__"]
