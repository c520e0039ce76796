"""
Retrying HTTP client for MeteoSwiss endpoints.

This module wraps an aiohttp ``ClientSession`` with a per-attempt timeout,
a fixed number of retries spaced by a constant delay plus jitter, and
cooperation with :class:`~meteoswiss.cache.HttpCache` for conditional
requests.
"""

from __future__ import annotations

import asyncio
import json
import logging
import random
import time
from typing import Any, Dict, Optional

from aiohttp import ClientSession, ClientTimeout
from pydantic import BaseModel, ConfigDict, Field

from ..cache import HttpCache
from ..config.models import HttpConfig
from ..exceptions import HttpRequestError

logger = logging.getLogger(__name__)

RETRY_JITTER = 0.2

DEFAULT_ACCEPT = "application/json, text/html"
DEFAULT_USER_AGENT = "MeteoSwiss-MCP-Server/1.0"


class FetchOptions(BaseModel):
    """Per-call options for :meth:`HttpClient.fetch_text`."""

    retries: int = Field(default=3, ge=0, description="Retries after the first attempt")
    retry_delay: float = Field(
        default=1.0, ge=0.0, description="Base delay between attempts in seconds"
    )
    timeout: float = Field(default=5.0, gt=0.0, description="Per-attempt timeout in seconds")
    headers: Dict[str, str] = Field(
        default_factory=dict, description="Extra request headers"
    )
    use_cache: bool = Field(default=True, description="Read from and write to the cache")

    model_config = ConfigDict(extra="forbid")

    @classmethod
    def from_config(cls, config: HttpConfig, **overrides: Any) -> "FetchOptions":
        """Build options from the HTTP configuration section."""
        values: Dict[str, Any] = {
            "retries": config.retries,
            "retry_delay": config.retry_delay,
            "timeout": config.timeout,
        }
        values.update(overrides)
        return cls(**values)


class HttpClient:
    """
    Async HTTP client with caching and linear retry.

    The client owns its aiohttp session unless one is passed in. Use it as an
    async context manager or call :meth:`close` when done.

    Example:
        ```python
        async with HttpClient(HttpCache()) as client:
            data = await client.fetch_json("https://www.meteoswiss.admin.ch/...")
        ```
    """

    def __init__(
        self,
        cache: Optional[HttpCache] = None,
        config: Optional[HttpConfig] = None,
        session: Optional[ClientSession] = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            cache: Response cache; a private one is created when omitted
            config: HTTP defaults (retries, delay, timeout, user agent)
            session: Existing aiohttp session to reuse
        """
        self.cache = cache if cache is not None else HttpCache()
        self.config = config or HttpConfig()
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> "HttpClient":
        await self._get_session()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def _get_session(self) -> ClientSession:
        if self._session is None or self._session.closed:
            self._session = ClientSession()
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Close the underlying session if this client created it."""
        if self._session is not None and self._owns_session:
            await self._session.close()
        self._session = None

    def _default_headers(self) -> Dict[str, str]:
        return {"Accept": DEFAULT_ACCEPT, "User-Agent": self.config.user_agent}

    async def fetch_text(self, url: str, options: Optional[FetchOptions] = None) -> str:
        """
        Fetch ``url`` and return the response body as text.

        A fresh cache entry is returned without any network I/O. Otherwise the
        request is attempted ``retries + 1`` times; stale validators are sent
        as conditional headers and a ``304`` refreshes the cached copy.

        Args:
            url: Absolute URL to fetch
            options: Fetch options; defaults come from the client config

        Returns:
            Response body

        Raises:
            HttpRequestError: When every attempt failed. ``status_code`` is
                set for upstream HTTP errors and ``None`` for transport errors.
        """
        options = options or FetchOptions.from_config(self.config)

        if options.use_cache:
            # Stale entries stay in place so they can be revalidated below
            cached = self.cache.peek(url)
            if cached is not None and self.cache.is_fresh(cached):
                logger.debug("Cache hit for %s", url)
                return cached.data

        last_error: Optional[Exception] = None
        total_attempts = options.retries + 1

        for attempt in range(total_attempts):
            logger.debug("Attempt %d/%d for %s", attempt + 1, total_attempts, url)
            try:
                return await self._attempt(url, options)
            except Exception as e:
                last_error = e
                logger.debug("Attempt %d for %s failed: %s", attempt + 1, url, e)

                if attempt < options.retries:
                    delay = options.retry_delay + random.uniform(0, RETRY_JITTER)
                    logger.debug("Retrying %s in %.2fs", url, delay)
                    await asyncio.sleep(delay)

        if isinstance(last_error, HttpRequestError):
            logger.warning("Giving up on %s: %s", url, last_error)
            raise last_error

        reason = str(last_error) or type(last_error).__name__
        logger.warning("Giving up on %s: %s", url, reason)
        raise HttpRequestError(
            f"Failed to fetch data from {url}: {reason}", url
        ) from last_error

    async def _attempt(self, url: str, options: FetchOptions) -> str:
        headers = self._default_headers()
        headers.update(options.headers)

        if options.use_cache:
            stale = self.cache.get_stale_entry(url)
            if stale is not None:
                headers.update(stale.conditional_headers())

        session = await self._get_session()
        started = time.monotonic()

        async with session.get(
            url, headers=headers, timeout=ClientTimeout(total=options.timeout)
        ) as response:
            logger.debug(
                "Response from %s in %.0fms: %d %s",
                url,
                (time.monotonic() - started) * 1000,
                response.status,
                response.reason,
            )

            if response.status == 304 and options.use_cache:
                refreshed = self.cache.update_not_modified(url, response.headers)
                if refreshed is not None:
                    logger.debug("Not modified, serving cached copy of %s", url)
                    return refreshed.data

            if not 200 <= response.status < 300:
                raise HttpRequestError(
                    f"HTTP error {response.status}: {response.reason}",
                    url,
                    response.status,
                )

            text = await response.text()
            logger.debug("Fetched %d characters from %s", len(text), url)

            if options.use_cache:
                self.cache.set(url, text, response.headers)

            return text

    async def fetch_json(self, url: str, options: Optional[FetchOptions] = None) -> Any:
        """
        Fetch ``url`` and decode the body as JSON.

        Raises:
            HttpRequestError: On fetch failure, or without a status code when
                the body is not valid JSON (not retried).
        """
        options = self._with_accept(options, "application/json")
        text = await self.fetch_text(url, options)

        try:
            return json.loads(text)
        except ValueError as e:
            raise HttpRequestError(f"Failed to parse JSON from {url}: {e}", url) from e

    async def fetch_html(self, url: str, options: Optional[FetchOptions] = None) -> str:
        """Fetch ``url`` preferring an HTML representation."""
        return await self.fetch_text(url, self._with_accept(options, "text/html"))

    def _with_accept(self, options: Optional[FetchOptions], accept: str) -> FetchOptions:
        options = options or FetchOptions.from_config(self.config)
        headers = dict(options.headers)
        headers["Accept"] = accept
        return options.model_copy(update={"headers": headers})


__all__ = [
    "DEFAULT_ACCEPT",
    "DEFAULT_USER_AGENT",
    "FetchOptions",
    "HttpClient",
    "RETRY_JITTER",
]
