"""
Bounded registry of live streaming sessions with idle eviction.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Protocol, runtime_checkable

from ..exceptions import SessionLimitError

logger = logging.getLogger(__name__)

DEFAULT_MAX_SESSIONS = 100
DEFAULT_SESSION_TIMEOUT = 300.0
DEFAULT_SWEEP_INTERVAL = 60.0


@runtime_checkable
class SessionTransport(Protocol):
    """Connection handle tracked by the registry."""

    async def close(self) -> None:
        ...


@dataclass
class Session:
    """A tracked session and the time it was last used."""

    transport: SessionTransport
    last_activity: float = field(default_factory=time.monotonic)


class SessionRegistry:
    """
    Registry of active sessions keyed by session id.

    The registry never holds more than ``max_sessions`` entries. Sessions
    untouched for longer than ``session_timeout`` seconds are closed and
    removed by :meth:`cleanup`, which runs every ``sweep_interval`` seconds
    once :meth:`start` has been called.
    """

    def __init__(
        self,
        max_sessions: int = DEFAULT_MAX_SESSIONS,
        session_timeout: float = DEFAULT_SESSION_TIMEOUT,
        sweep_interval: float = DEFAULT_SWEEP_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize the registry.

        Args:
            max_sessions: Maximum number of concurrently tracked sessions
            session_timeout: Idle time in seconds after which a session expires
            sweep_interval: Seconds between background cleanup runs
            clock: Monotonic time source
        """
        self.max_sessions = max_sessions
        self.session_timeout = session_timeout
        self.sweep_interval = sweep_interval
        self._clock = clock
        self._sessions: Dict[str, Session] = {}
        self._sweep_task: Optional[asyncio.Task] = None

    @property
    def size(self) -> int:
        """Number of tracked sessions."""
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def session_ids(self) -> List[str]:
        return list(self._sessions)

    @property
    def is_full(self) -> bool:
        return len(self._sessions) >= self.max_sessions

    def add(self, session_id: str, transport: SessionTransport) -> None:
        """
        Track ``transport`` under ``session_id``.

        Re-adding an id that is already tracked replaces the handle and
        refreshes its activity without counting against the limit.

        Raises:
            SessionLimitError: If the registry is full and the id is new
        """
        if session_id not in self._sessions and self.is_full:
            logger.warning(
                "Rejecting session %s: limit of %d reached", session_id, self.max_sessions
            )
            raise SessionLimitError(self.max_sessions)

        self._sessions[session_id] = Session(transport=transport, last_activity=self._clock())
        logger.debug("Session added: %s (total %d)", session_id, len(self._sessions))

    def get(self, session_id: str) -> Optional[SessionTransport]:
        """Return the transport for ``session_id`` and mark it active."""
        session = self._sessions.get(session_id)
        if session is None:
            return None

        session.last_activity = self._clock()
        return session.transport

    async def remove(self, session_id: str) -> None:
        """Close and forget ``session_id``; unknown ids are ignored."""
        session = self._sessions.pop(session_id, None)
        if session is not None:
            await self._close(session_id, session)

    async def _close(self, session_id: str, session: Session) -> None:
        try:
            await session.transport.close()
        except Exception as e:
            logger.warning("Error closing session %s: %s", session_id, e)
        logger.debug("Session removed: %s (total %d)", session_id, len(self._sessions))

    def _is_idle(self, session: Session, now: float) -> bool:
        return now - session.last_activity > self.session_timeout

    def expired_ids(self) -> List[str]:
        """Ids of sessions idle for longer than the timeout."""
        now = self._clock()
        return [
            session_id
            for session_id, session in self._sessions.items()
            if self._is_idle(session, now)
        ]

    async def cleanup(self) -> int:
        """
        Remove every idle session.

        Closing a transport may yield to other tasks, so each candidate is
        checked again right before it is dropped. A session that was used or
        re-added in the meantime stays tracked.

        Returns:
            Number of sessions removed
        """
        now = self._clock()
        candidates = [
            (session_id, session)
            for session_id, session in self._sessions.items()
            if self._is_idle(session, now)
        ]

        removed = 0
        for session_id, session in candidates:
            if self._sessions.get(session_id) is not session:
                continue
            if not self._is_idle(session, self._clock()):
                continue
            del self._sessions[session_id]
            logger.info("Session %s expired after inactivity", session_id)
            await self._close(session_id, session)
            removed += 1
        return removed

    def start(self) -> None:
        """Start the periodic sweep on the running event loop."""
        if self._sweep_task is not None and not self._sweep_task.done():
            return
        self._sweep_task = asyncio.create_task(self._sweep_loop())

    async def stop(self) -> None:
        """Stop the sweep and close every tracked session."""
        task = self._sweep_task
        self._sweep_task = None
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        sessions = list(self._sessions.items())
        self._sessions.clear()
        for session_id, session in sessions:
            await self._close(session_id, session)

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self.sweep_interval)
            try:
                await self.cleanup()
            except Exception:
                logger.exception("Session sweep failed")
