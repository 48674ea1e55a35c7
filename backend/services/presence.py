"""Per-session presence tracking for connected clients."""

import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

from models.events import PresenceSnapshot, PresenceUser

logger = logging.getLogger(__name__)

SHORT_ID_LENGTH = 8


@dataclass
class PresenceEntry:
    """Activity state of one connection inside one session."""

    is_active: bool
    joined_at: float


def short_id(connection_id: str) -> str:
    """Display form of a connection id; not reversible to the full id."""
    return connection_id[:SHORT_ID_LENGTH]


def _iso(ts: float) -> str:
    return (
        datetime.fromtimestamp(ts, tz=timezone.utc)
        .isoformat(timespec="milliseconds")
        .replace("+00:00", "Z")
    )


class PresenceTracker:
    """Maps session id -> connection id -> presence entry.

    A session's map only exists while it has at least one entry; the last
    leave deletes it.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._sessions: dict[str, dict[str, PresenceEntry]] = {}
        self._clock = clock

    def join(self, session_id: str, connection_id: str) -> PresenceSnapshot:
        entries = self._sessions.setdefault(session_id, {})
        entries[connection_id] = PresenceEntry(is_active=True, joined_at=self._clock())
        return self.snapshot(session_id)

    def leave(self, session_id: str, connection_id: str) -> PresenceSnapshot | None:
        """Remove an entry. Returns None when nobody is left to notify."""
        entries = self._sessions.get(session_id)
        if entries is None:
            return None
        entries.pop(connection_id, None)
        if not entries:
            del self._sessions[session_id]
            logger.debug("Presence map dropped for session %s", session_id)
            return None
        return self.snapshot(session_id)

    def set_active(
        self, session_id: str, connection_id: str, is_active: bool
    ) -> PresenceSnapshot | None:
        entry = self._sessions.get(session_id, {}).get(connection_id)
        if entry is None:
            return None
        entry.is_active = is_active
        return self.snapshot(session_id)

    def snapshot(self, session_id: str) -> PresenceSnapshot:
        entries = self._sessions.get(session_id, {})
        users = [
            PresenceUser(
                id=short_id(connection_id),
                is_active=entry.is_active,
                joined_at=_iso(entry.joined_at),
            )
            for connection_id, entry in entries.items()
        ]
        return PresenceSnapshot(
            user_count=len(users),
            active_count=sum(1 for u in users if u.is_active),
            users=users,
        )

    def has_entry(self, session_id: str, connection_id: str) -> bool:
        return connection_id in self._sessions.get(session_id, {})

    def has_session(self, session_id: str) -> bool:
        return session_id in self._sessions

    def session_count(self) -> int:
        return len(self._sessions)
