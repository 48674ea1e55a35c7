"""Session registry with in-memory storage."""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

from config import settings
from models.session_model import DEFAULT_CODE, DEFAULT_LANGUAGE

logger = logging.getLogger(__name__)


@dataclass
class Session:
    """Represents one collaborative document."""

    id: str
    created_at: float
    code: str = DEFAULT_CODE
    language: str = DEFAULT_LANGUAGE.value
    last_active_at: Optional[float] = None

    def touch(self, now: float) -> None:
        self.last_active_at = now


class SessionRegistry:
    """Keyed in-memory store of session records.

    Each registry owns its own storage; the application creates one at
    startup and hands it to the HTTP routes and the real-time gateway.
    """

    def __init__(
        self,
        ttl_seconds: int | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._sessions: dict[str, Session] = {}
        self._ttl_seconds = (
            settings.session_ttl_seconds if ttl_seconds is None else ttl_seconds
        )
        self._clock = clock

    def create(self, session_id: str) -> Session:
        """Create a session with default contents and return it."""
        if session_id in self._sessions:
            logger.warning("Session id collision, overwriting: %s", session_id)
        now = self._clock()
        session = Session(id=session_id, created_at=now, last_active_at=now)
        self._sessions[session_id] = session
        logger.info("Created session: %s", session_id)
        return session

    def get(self, session_id: str) -> Session | None:
        """Get a session by ID, returning None if not found."""
        return self._sessions.get(session_id)

    def update_code(self, session_id: str, code: str) -> bool:
        """Replace the code buffer. Returns False if session not found."""
        session = self._sessions.get(session_id)
        if session is None:
            logger.warning("Session not found for code update: %s", session_id)
            return False
        session.code = code
        session.touch(self._clock())
        logger.debug("Updated code in session %s (%d chars)", session_id, len(code))
        return True

    def update_language(self, session_id: str, language: str) -> bool:
        """Replace the language. Returns False if session not found."""
        session = self._sessions.get(session_id)
        if session is None:
            logger.warning("Session not found for language update: %s", session_id)
            return False
        session.language = language
        session.touch(self._clock())
        logger.info("Updated language in session %s -> %s", session_id, language)
        return True

    def exists(self, session_id: str) -> bool:
        return session_id in self._sessions

    def count(self) -> int:
        return len(self._sessions)

    def sweep_expired(self) -> int:
        """Remove sessions idle for longer than the TTL. Returns removed count."""
        cutoff = self._clock() - self._ttl_seconds
        expired = [
            sid for sid, s in self._sessions.items() if self._last_activity(s) < cutoff
        ]
        for sid in expired:
            del self._sessions[sid]
        if expired:
            logger.info("Removed %d expired session(s)", len(expired))
        return len(expired)

    @staticmethod
    def _last_activity(session: Session) -> float:
        if session.last_active_at is None:
            return session.created_at
        return session.last_active_at
