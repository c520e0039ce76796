"""
HTTP access layer: retrying fetch client on top of aiohttp.
"""

from .client import DEFAULT_USER_AGENT, FetchOptions, HttpClient

__all__ = ["DEFAULT_USER_AGENT", "FetchOptions", "HttpClient"]
