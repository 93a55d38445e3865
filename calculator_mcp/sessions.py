"""
Session Registry

In-memory map from session id to the transport that session owns.

The registry is the only shared mutable structure in the HTTP layer. It is
guarded by a lock so that create() is atomic with respect to the uniqueness
check and remove() is atomic with respect to lookup(), whatever runtime the
caller happens to be on.

Idle expiry: every lookup refreshes a session's last-activity timestamp, and
sweep() evicts sessions idle for longer than idle_timeout. A session with an
open server-to-client stream is never idle. An idle_timeout of None or 0
keeps sessions alive until their transport closes.
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

TransportT = TypeVar("TransportT")


def new_session_id() -> str:
    """Opaque, CSPRNG-backed id made of visible ASCII only."""
    return uuid.uuid4().hex


@dataclass
class Session(Generic[TransportT]):
    """One client conversation bound to exactly one transport."""

    id: str
    transport: TransportT
    created_at: float
    last_activity_at: float
    open_streams: int = 0

    def idle_for(self, now: float) -> float:
        return now - self.last_activity_at

    def expired(self, now: float, idle_timeout: float) -> bool:
        return self.open_streams == 0 and self.idle_for(now) > idle_timeout


class SessionRegistry(Generic[TransportT]):
    """
    Registry of live sessions.

    Args:
        transport_factory: Builds the transport for a freshly drawn session id.
        idle_timeout: Seconds of inactivity after which sweep() evicts a session.
        clock: Monotonic time source, injectable for tests.
        id_factory: Session id generator, injectable for tests.
    """

    def __init__(
        self,
        transport_factory: Callable[[str], TransportT],
        *,
        idle_timeout: float | None = None,
        clock: Callable[[], float] = time.monotonic,
        id_factory: Callable[[], str] = new_session_id,
    ) -> None:
        self._transport_factory = transport_factory
        self.idle_timeout = idle_timeout
        self._clock = clock
        self._id_factory = id_factory
        self._sessions: dict[str, Session[TransportT]] = {}
        self._lock = threading.Lock()

    def create(self) -> tuple[str, TransportT]:
        """Register a new session with a fresh, non-colliding id."""
        with self._lock:
            session_id = self._id_factory()
            while session_id in self._sessions:
                logger.warning("Session id collision, drawing a new id")
                session_id = self._id_factory()

            transport = self._transport_factory(session_id)
            now = self._clock()
            self._sessions[session_id] = Session(
                id=session_id,
                transport=transport,
                created_at=now,
                last_activity_at=now,
            )

        logger.info(f"New session initialized: {session_id}")
        return session_id, transport

    def lookup(self, session_id: str) -> TransportT | None:
        """Return the session's transport, or None if it is not live."""
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return None
            session.last_activity_at = self._clock()
            return session.transport

    def get(self, session_id: str) -> Session[TransportT] | None:
        """Return the session record without touching its activity."""
        with self._lock:
            return self._sessions.get(session_id)

    def stream_opened(self, session_id: str) -> None:
        """Mark a long-lived stream as open; the session is active until it closes."""
        with self._lock:
            session = self._sessions.get(session_id)
            if session is not None:
                session.open_streams += 1
                session.last_activity_at = self._clock()

    def stream_closed(self, session_id: str) -> None:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is not None:
                session.open_streams = max(0, session.open_streams - 1)
                session.last_activity_at = self._clock()

    def remove(self, session_id: str) -> bool:
        """Remove a session. Removing an unknown id is a no-op."""
        with self._lock:
            session = self._sessions.pop(session_id, None)

        if session is None:
            return False
        logger.info(f"Session closed: {session_id}")
        return True

    def count(self) -> int:
        with self._lock:
            return len(self._sessions)

    def session_ids(self) -> list[str]:
        with self._lock:
            return list(self._sessions)

    def sweep(self) -> list[Session[TransportT]]:
        """
        Evict sessions idle longer than idle_timeout.

        Returns the evicted sessions so the caller can close their
        transports. A no-op when idle_timeout is None or 0.
        """
        if not self.idle_timeout:
            return []

        with self._lock:
            now = self._clock()
            expired = [
                session
                for session in self._sessions.values()
                if session.expired(now, self.idle_timeout)
            ]
            for session in expired:
                del self._sessions[session.id]

        for session in expired:
            logger.info(f"Session expired after {session.idle_for(now):.0f}s idle: {session.id}")
        return expired

    def clear(self) -> list[Session[TransportT]]:
        """Remove every session, returning what was removed."""
        with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
        return sessions
