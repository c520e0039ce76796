"""
Public URL generation for the HTTP transport.
"""

from typing import Optional

MCP_PATH = "/mcp"
HEALTH_PATH = "/health"


def get_base_url(port: int, public_url: Optional[str] = None) -> str:
    """
    Base URL clients should use to reach the server.

    ``public_url`` wins when set. Otherwise a localhost URL is built, using
    https for port 443 and omitting the default ports 80 and 443.
    """
    if public_url:
        return public_url.rstrip("/")

    scheme = "https" if port == 443 else "http"
    if port in (80, 443):
        return f"{scheme}://localhost"
    return f"{scheme}://localhost:{port}"


def get_mcp_endpoint_url(port: int, public_url: Optional[str] = None) -> str:
    return get_base_url(port, public_url) + MCP_PATH


def get_health_endpoint_url(port: int, public_url: Optional[str] = None) -> str:
    return get_base_url(port, public_url) + HEALTH_PATH
