"""
Streamable-HTTP transport with session tracking.

The FastMCP HTTP app manages the protocol sessions themselves. The
SessionTrackingMiddleware in front of the MCP endpoint mirrors every session
into the SessionRegistry so that the number of concurrent sessions stays
bounded and idle sessions get terminated.
"""

import logging
from typing import Any, Dict, List, Tuple

from starlette.datastructures import Headers
from starlette.middleware import Middleware
from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from meteoswiss.exceptions import SessionLimitError
from meteoswiss.sessions import SessionRegistry
from meteoswiss.urls import MCP_PATH

logger = logging.getLogger(__name__)

SESSION_HEADER = "mcp-session-id"

# Request headers replayed when the server terminates a session itself
_REPLAYED_HEADERS = (b"host", b"origin", b"authorization", b"mcp-protocol-version", b"user-agent")


def _jsonrpc_error(status_code: int, code: int, message: str) -> JSONResponse:
    return JSONResponse(
        {"jsonrpc": "2.0", "id": None, "error": {"code": code, "message": message}},
        status_code=status_code,
    )


class McpSessionHandle:
    """
    Registry handle for one streamable-HTTP session.

    Closing the handle terminates the session in the wrapped app by replaying
    a ``DELETE`` request with the session's id and the headers of its latest
    request. Closing is idempotent.
    """

    def __init__(self, app: ASGIApp, session_id: str, scope: Scope) -> None:
        self.app = app
        self.session_id = session_id
        self.closed = False
        self._scope: Dict[str, Any] = {}
        self._headers: List[Tuple[bytes, bytes]] = []
        self.refresh(scope)

    def refresh(self, scope: Scope) -> None:
        """Remember the latest request of this session."""
        self._scope = dict(scope)
        self._headers = [
            (name, value) for name, value in scope.get("headers", []) if name in _REPLAYED_HEADERS
        ]

    def mark_closed(self) -> None:
        """Record that the client already terminated the session."""
        self.closed = True

    async def close(self) -> None:
        if self.closed:
            return
        self.closed = True

        scope = dict(self._scope)
        scope.update(
            method="DELETE",
            query_string=b"",
            headers=self._headers + [(SESSION_HEADER.encode(), self.session_id.encode("latin-1"))],
        )

        status: Dict[str, int] = {}

        async def receive() -> Message:
            return {"type": "http.request", "body": b"", "more_body": False}

        async def send(message: Message) -> None:
            if message["type"] == "http.response.start":
                status["code"] = message["status"]

        await self.app(scope, receive, send)
        logger.debug("Terminated session %s (status %s)", self.session_id, status.get("code"))


class SessionTrackingMiddleware:
    """
    ASGI middleware mirroring MCP sessions into a SessionRegistry.

    - Requests naming an unknown session are answered with 404.
    - New sessions are refused with 503 while the registry is full.
    - Sessions created by the wrapped app are registered from the
      ``mcp-session-id`` response header.
    - A client ``DELETE`` removes the session from the registry.
    """

    def __init__(self, app: ASGIApp, registry: SessionRegistry, path: str = MCP_PATH) -> None:
        self.app = app
        self.registry = registry
        self.path = path.rstrip("/")

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope["path"].rstrip("/") != self.path:
            await self.app(scope, receive, send)
            return

        session_id = Headers(scope=scope).get(SESSION_HEADER)
        if session_id:
            await self._handle_session_request(session_id, scope, receive, send)
        elif scope["method"] == "POST":
            await self._handle_new_session(scope, receive, send)
        else:
            await self.app(scope, receive, send)

    async def _handle_session_request(
        self, session_id: str, scope: Scope, receive: Receive, send: Send
    ) -> None:
        handle = self.registry.get(session_id)
        if handle is None:
            logger.debug("Request for unknown session %s", session_id)
            response = _jsonrpc_error(404, -32001, "Session not found")
            await response(scope, receive, send)
            return

        if isinstance(handle, McpSessionHandle):
            handle.refresh(scope)

        if scope["method"] != "DELETE":
            await self.app(scope, receive, send)
            return

        if isinstance(handle, McpSessionHandle):
            handle.mark_closed()
        try:
            await self.app(scope, receive, send)
        finally:
            await self.registry.remove(session_id)
            logger.info("Session %s closed by client", session_id)

    async def _handle_new_session(self, scope: Scope, receive: Receive, send: Send) -> None:
        if self.registry.is_full:
            logger.warning("Refusing new session: registry full (%d)", self.registry.size)
            response = _jsonrpc_error(
                503, -32000, str(SessionLimitError(self.registry.max_sessions))
            )
            await response(scope, receive, send)
            return

        rejected: List[McpSessionHandle] = []

        async def send_wrapper(message: Message) -> None:
            if message["type"] == "http.response.start" and 200 <= message["status"] < 300:
                new_id = Headers(raw=message.get("headers", [])).get(SESSION_HEADER)
                if new_id:
                    handle = McpSessionHandle(self.app, new_id, scope)
                    try:
                        self.registry.add(new_id, handle)
                        logger.info("Session %s opened (total %d)", new_id, self.registry.size)
                    except SessionLimitError:
                        rejected.append(handle)
            await send(message)

        await self.app(scope, receive, send_wrapper)

        for handle in rejected:
            logger.warning("Terminating session %s: registry full", handle.session_id)
            await handle.close()


def session_tracking_middleware(
    registry: SessionRegistry, path: str = MCP_PATH
) -> Middleware:
    """Starlette ``Middleware`` entry for :class:`SessionTrackingMiddleware`."""
    return Middleware(SessionTrackingMiddleware, registry=registry, path=path)
