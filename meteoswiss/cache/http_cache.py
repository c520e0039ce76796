"""
In-memory HTTP response cache with conditional revalidation support.

Entries are keyed by request URL and carry the validators (ETag and
Last-Modified) needed to build ``If-None-Match`` / ``If-Modified-Since``
headers once the cached copy has gone stale.
"""

import asyncio
import logging
import re
import time
from dataclasses import dataclass
from datetime import timezone
from email.utils import parsedate_to_datetime
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple, Union

logger = logging.getLogger(__name__)

HeaderValue = Union[str, Iterable[str]]
Headers = Union[Mapping[str, HeaderValue], Iterable[Tuple[str, HeaderValue]]]

MIN_TTL = 60.0
DEFAULT_CLEANUP_INTERVAL = 300.0

_MAX_AGE_RE = re.compile(r"max-age=(\d+)", re.IGNORECASE)


@dataclass
class CacheEntry:
    """Cached response body plus validators and freshness window."""

    data: Any
    etag: Optional[str]
    last_modified: Optional[str]
    cached_at: float
    expires_at: float

    def is_expired(self, now: float) -> bool:
        """Check whether the entry is past its expiry time."""
        return now > self.expires_at

    @property
    def ttl(self) -> float:
        return self.expires_at - self.cached_at


@dataclass
class StaleValidators:
    """Validators of an entry, available regardless of freshness."""

    etag: Optional[str] = None
    last_modified: Optional[str] = None

    def conditional_headers(self) -> Dict[str, str]:
        """Build the conditional request headers for these validators."""
        headers: Dict[str, str] = {}
        if self.etag:
            headers["If-None-Match"] = self.etag
        if self.last_modified:
            headers["If-Modified-Since"] = self.last_modified
        return headers


def normalize_headers(headers: Optional[Headers]) -> Dict[str, str]:
    """
    Normalize response headers to a lower-cased name -> single value mapping.

    Multi-valued headers keep their first value. Works with plain dicts,
    aiohttp's ``CIMultiDictProxy`` and lists of ``(name, value)`` pairs.

    Args:
        headers: Raw response headers

    Returns:
        Dictionary with lower-case header names and string values
    """
    if not headers:
        return {}

    items = headers.items() if isinstance(headers, Mapping) else headers
    normalized: Dict[str, str] = {}
    for name, value in items:
        key = name.lower()
        if key in normalized:
            continue
        if isinstance(value, (str, bytes)):
            text = value.decode("latin-1") if isinstance(value, bytes) else value
        else:
            first = next(iter(value), None)
            if first is None:
                continue
            text = str(first)
        normalized[key] = text
    return normalized


class HttpCache:
    """
    TTL cache for upstream HTTP responses.

    The TTL of an entry is derived from ``Cache-Control: max-age`` first, then
    from ``Expires``, and is never shorter than ``min_ttl``. Expired entries
    are purged lazily by :meth:`get` and in bulk by :meth:`cleanup`, which can
    run on a background task started with :meth:`start_cleanup`.
    """

    def __init__(
        self,
        min_ttl: float = MIN_TTL,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """
        Initialize the cache.

        Args:
            min_ttl: Lower bound for every computed TTL in seconds
            clock: Callable returning the current time as epoch seconds
        """
        self.min_ttl = min_ttl
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._cleanup_task: Optional[asyncio.Task] = None

    def get(self, key: str) -> Optional[CacheEntry]:
        """Return the fresh entry for ``key``, dropping it if it has expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None

        if entry.is_expired(self._clock()):
            del self._entries[key]
            logger.debug("Cache entry expired: %s", key)
            return None

        return entry

    def set(self, key: str, data: Any, headers: Optional[Headers] = None) -> CacheEntry:
        """
        Store ``data`` under ``key`` with a TTL computed from ``headers``.

        Args:
            key: Cache key, normally the request URL
            data: Response payload
            headers: Response headers (single or multi-valued)

        Returns:
            The stored cache entry
        """
        normalized = normalize_headers(headers)
        now = self._clock()
        ttl = self._compute_ttl(normalized, now)

        entry = CacheEntry(
            data=data,
            etag=normalized.get("etag"),
            last_modified=normalized.get("last-modified"),
            cached_at=now,
            expires_at=now + ttl,
        )
        self._entries[key] = entry
        logger.debug("Cached %s for %.0fs", key, ttl)
        return entry

    def get_stale_entry(self, key: str) -> Optional[StaleValidators]:
        """Return the validators stored for ``key`` even if the entry is stale."""
        entry = self._entries.get(key)
        if entry is None or (not entry.etag and not entry.last_modified):
            return None
        return StaleValidators(etag=entry.etag, last_modified=entry.last_modified)

    def peek(self, key: str) -> Optional[CacheEntry]:
        """Return the entry for ``key`` without freshness checks."""
        return self._entries.get(key)

    def is_fresh(self, entry: CacheEntry) -> bool:
        return not entry.is_expired(self._clock())

    def update_not_modified(
        self, key: str, headers: Optional[Headers] = None
    ) -> Optional[CacheEntry]:
        """
        Refresh an entry after a ``304 Not Modified`` response.

        The existing payload is kept and the freshness window is recomputed
        from the new headers. Validators missing from the 304 response are
        carried over from the stored entry.
        """
        entry = self._entries.get(key)
        if entry is None:
            return None

        normalized = normalize_headers(headers)
        if entry.etag and "etag" not in normalized:
            normalized["etag"] = entry.etag
        if entry.last_modified and "last-modified" not in normalized:
            normalized["last-modified"] = entry.last_modified
        refreshed = self.set(key, entry.data, normalized)
        logger.debug("Revalidated cache entry: %s", key)
        return refreshed

    def cleanup(self) -> int:
        """
        Remove every expired entry.

        Returns:
            Number of entries removed
        """
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
        for key in expired:
            del self._entries[key]

        if expired:
            logger.debug("Cache cleanup removed %d entries", len(expired))
        return len(expired)

    def clear(self) -> None:
        """Drop all entries."""
        self._entries.clear()

    def get_stats(self) -> Dict[str, Any]:
        """Return the entry count and keys for health reporting."""
        return {"size": len(self._entries), "entries": list(self._entries.keys())}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def start_cleanup(self, interval: float = DEFAULT_CLEANUP_INTERVAL) -> None:
        """Start the periodic cleanup task on the running event loop."""
        if self._cleanup_task is not None and not self._cleanup_task.done():
            return
        self._cleanup_task = asyncio.create_task(self._cleanup_loop(interval))

    async def stop_cleanup(self) -> None:
        """Cancel the periodic cleanup task and wait for it to finish."""
        task = self._cleanup_task
        self._cleanup_task = None
        if task is None:
            return

        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _cleanup_loop(self, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            self.cleanup()

    def _compute_ttl(self, headers: Dict[str, str], now: float) -> float:
        cache_control = headers.get("cache-control")
        if cache_control:
            match = _MAX_AGE_RE.search(cache_control)
            if match:
                return max(float(match.group(1)), self.min_ttl)

        expires_in = self._parse_expires(headers.get("expires"), now)
        if expires_in is not None and expires_in > 0:
            return max(expires_in, self.min_ttl)

        return self.min_ttl

    @staticmethod
    def _parse_expires(value: Optional[str], now: float) -> Optional[float]:
        if not value:
            return None
        try:
            expires = parsedate_to_datetime(value)
        except (TypeError, ValueError):
            return None
        if expires.tzinfo is None:
            expires = expires.replace(tzinfo=timezone.utc)
        return expires.timestamp() - now
