"""
Exception hierarchy for the MeteoSwiss client library.

Absence (cache miss, unknown session) is never an error and is reported as
``None``. Only conditions the caller has to translate into a failure response
are raised.
"""

from __future__ import annotations

from typing import Any, Optional


class MeteoSwissError(Exception):
    """
    Base exception for all MeteoSwiss operations.

    Attributes:
        message: Human-readable error message
        url: URL that caused the error (if applicable)
        details: Additional error details as keyword arguments
    """

    def __init__(self, message: str, url: Optional[str] = None, **kwargs: Any) -> None:
        super().__init__(message)
        self.message = message
        self.url = url
        self.details = kwargs


class HttpRequestError(MeteoSwissError):
    """
    Raised when an upstream request fails.

    ``status_code`` is set when the server answered with a non-2xx status and
    left as ``None`` for transport failures (timeouts, DNS, resets) and for
    bodies that could not be parsed.
    """

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, url, **kwargs)
        self.status_code = status_code


class SessionLimitError(MeteoSwissError):
    """Raised when a new session would exceed the registry capacity."""

    def __init__(self, max_sessions: int) -> None:
        super().__init__(f"Maximum sessions limit ({max_sessions}) reached")
        self.max_sessions = max_sessions


class ContentError(MeteoSwissError):
    """Raised when content cannot be located or extracted."""

    pass


class ConfigurationError(MeteoSwissError):
    """Raised for invalid configuration values."""

    def __init__(self, message: str, errors: Optional[list] = None) -> None:
        super().__init__(message)
        self.errors = errors or []
