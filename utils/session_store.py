"""
In-memory dialog session store.

One Session per conversation id, holding the active mode, the step within
that mode's question sequence and the ticket collected so far. Sessions live
for the process lifetime at most; idle ones are removed by a periodic sweep.
"""
import asyncio
import threading
import uuid
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Literal, Optional

from utils.logger import get_logger
from utils.ticket import Ticket

logger = get_logger(__name__)


Mode = Literal["idle", "triage", "network", "windows", "account", "app"]

DEFAULT_SESSION_TTL = timedelta(minutes=45)
DEFAULT_SWEEP_INTERVAL_SECONDS = 5 * 60


def new_session_id() -> str:
    return uuid.uuid4().hex


@dataclass
class Session:
    """Dialog state for one conversation."""
    session_id: str
    mode: Mode = "idle"
    step: int = 0
    ticket: Ticket = field(default_factory=Ticket)
    created_at: datetime = field(default_factory=datetime.now)
    last_seen_at: datetime = field(default_factory=datetime.now)

    def switch_mode(self, mode: Mode) -> None:
        """Enter a mode at its first step."""
        self.mode = mode
        self.step = 0


class SessionStore:
    """
    Thread-safe map of session id to Session.

    Uses an OrderedDict so the least recently used session is evicted first
    once max_sessions is exceeded.
    """

    def __init__(self, ttl: timedelta = DEFAULT_SESSION_TTL, max_sessions: int = 1000):
        self.ttl = ttl
        self.max_sessions = max_sessions
        self._sessions: "OrderedDict[str, Session]" = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def _evict_if_needed(self):
        """Evict oldest sessions beyond max_sessions (call while holding lock)."""
        while len(self._sessions) > self.max_sessions:
            evicted_id, _ = self._sessions.popitem(last=False)
            logger.debug(f"Evicted session {evicted_id} (store full)")

    def get_or_create(self, session_id: Optional[str] = None) -> Session:
        """
        Return the session for session_id, creating a fresh idle one if needed.

        Args:
            session_id: Conversation identifier; a new id is generated when empty

        Returns:
            The session, with last_seen_at refreshed
        """
        sid = session_id or new_session_id()
        with self._lock:
            session = self._sessions.get(sid)
            if session is None:
                session = Session(session_id=sid)
                self._sessions[sid] = session
                self._evict_if_needed()
                logger.debug(f"Created session {sid}")
            else:
                self._sessions.move_to_end(sid)
            session.last_seen_at = datetime.now()
            return session

    def get(self, session_id: str) -> Optional[Session]:
        """Look up a session without creating it or refreshing its timestamp."""
        with self._lock:
            return self._sessions.get(session_id)

    def reset(self, session: Session) -> None:
        """Put a session back to idle with an empty ticket."""
        session.switch_mode("idle")
        session.ticket = Ticket()
        logger.info(f"Session {session.session_id} reset")

    def clear(self, session_id: str) -> bool:
        """
        Remove a session.

        Returns:
            True if the session existed
        """
        with self._lock:
            return self._sessions.pop(session_id, None) is not None

    def sweep_expired(self, now: Optional[datetime] = None, ttl: Optional[timedelta] = None) -> int:
        """
        Remove sessions idle for longer than ttl.

        Args:
            now: Reference time (defaults to the current time)
            ttl: Idle threshold (defaults to the store's ttl)

        Returns:
            Number of sessions removed
        """
        now = now or datetime.now()
        cutoff = now - (ttl if ttl is not None else self.ttl)

        with self._lock:
            expired = [sid for sid, s in self._sessions.items() if s.last_seen_at < cutoff]
            for sid in expired:
                del self._sessions[sid]

        if expired:
            logger.info(f"Swept {len(expired)} expired sessions ({len(self._sessions)} active)")
        return len(expired)


async def run_periodic_sweep(
    store: SessionStore,
    interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS,
    ttl: Optional[timedelta] = None,
) -> None:
    """
    Sweep expired sessions every interval_seconds until cancelled.

    Runs as a single background task for the whole process.
    """
    logger.info(f"Session sweep running every {interval_seconds}s")
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            store.sweep_expired(ttl=ttl)
        except Exception as e:
            logger.error(f"Session sweep failed: {e}", exc_info=True)
