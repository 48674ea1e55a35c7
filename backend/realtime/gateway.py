"""Real-time gateway: connection state machine and broadcast policy.

Each connection is either in no room or in exactly one session room. Inbound
events are dispatched through a table of handlers. A handler validates its
payload, mutates the registry and presence tracker, and returns the effects
(room changes and emits) for the transport adapter to carry out in order.
Handlers never await, so every decision is atomic with respect to other
connections.

Broadcast policy:
    code / language / output updates   -> room, sender excluded
    presence updates                   -> whole room
    errors and session state           -> sender only
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Union

from pydantic import ValidationError

from models import events
from models.events import (
    ActivityChange,
    CodeChange,
    InboundPayload,
    JoinSession,
    LanguageChange,
    OutputChange,
    PresenceSnapshot,
)
from models.session_model import Language
from services.presence import PresenceTracker
from services.session import SessionRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EnterRoom:
    sid: str
    room: str


@dataclass(frozen=True)
class LeaveRoom:
    sid: str
    room: str


@dataclass(frozen=True)
class Emit:
    """Send ``event`` to a sid or a room, optionally skipping one sid."""

    event: str
    data: dict[str, Any] = field(default_factory=dict)
    to: Optional[str] = None
    skip_sid: Optional[str] = None


Effect = Union[EnterRoom, LeaveRoom, Emit]
Handler = Callable[[str, Any], list[Effect]]


def _error(sid: str, message: str) -> Emit:
    return Emit(events.ERROR, {"message": message}, to=sid)


def _presence(room: str, snapshot: PresenceSnapshot) -> Emit:
    return Emit(events.PRESENCE_UPDATE, snapshot.to_payload(), to=room)


class Gateway:
    """Room membership and message protocol for all connections."""

    def __init__(self, registry: SessionRegistry, presence: PresenceTracker) -> None:
        self._registry = registry
        self._presence = presence
        self._rooms: dict[str, Optional[str]] = {}
        self._handlers: dict[str, Handler] = {
            events.JOIN_SESSION: self._join_session,
            events.CODE_CHANGE: self._code_change,
            events.LANGUAGE_CHANGE: self._language_change,
            events.OUTPUT_CHANGE: self._output_change,
            events.ACTIVITY_CHANGE: self._activity_change,
        }

    @property
    def event_names(self) -> tuple[str, ...]:
        return tuple(self._handlers)

    def room_of(self, sid: str) -> Optional[str]:
        return self._rooms.get(sid)

    def connection_count(self) -> int:
        return len(self._rooms)

    # ---------- lifecycle ----------
    def connect(self, sid: str) -> list[Effect]:
        self._rooms[sid] = None
        logger.info("Client connected: %s", sid)
        return []

    def disconnect(self, sid: str) -> list[Effect]:
        room = self._rooms.pop(sid, None)
        logger.info("Client disconnected: %s", sid)
        if room is None:
            return []
        logger.info("Client %s left session on disconnect: %s", sid, room)
        return self._leave(sid, room)

    def handle(self, sid: str, event: str, data: Any) -> list[Effect]:
        """Dispatch one inbound event and return the resulting effects."""
        handler = self._handlers.get(event)
        if handler is None:
            logger.debug("Ignoring unknown event %r from %s", event, sid)
            return []
        if sid not in self._rooms:
            # Disconnected is terminal; late events must not revive the sid.
            logger.debug("Dropping %r from unknown or disconnected client %s", event, sid)
            return []
        return handler(sid, data)

    # ---------- handlers ----------
    def _join_session(self, sid: str, data: Any) -> list[Effect]:
        payload = _parse(JoinSession, data)
        if payload is None or not payload.session_id:
            return [_error(sid, events.ERR_SESSION_ID_REQUIRED)]
        session_id = payload.session_id
        session = self._registry.get(session_id)
        if session is None:
            logger.warning("Client %s tried to join unknown session: %s", sid, session_id)
            return [_error(sid, events.ERR_SESSION_NOT_FOUND)]

        effects: list[Effect] = []
        previous = self._rooms.get(sid)
        if previous is not None:
            effects.extend(self._leave(sid, previous))
            logger.info("Client %s left session: %s", sid, previous)

        self._rooms[sid] = session_id
        snapshot = self._presence.join(session_id, sid)
        logger.info("Client %s joined session: %s", sid, session_id)
        effects.append(EnterRoom(sid, session_id))
        effects.append(
            Emit(
                events.SESSION_STATE,
                {"code": session.code, "language": session.language},
                to=sid,
            )
        )
        effects.append(_presence(session_id, snapshot))
        return effects

    def _code_change(self, sid: str, data: Any) -> list[Effect]:
        payload = _parse(CodeChange, data)
        if payload is None or not payload.session_id or payload.code is None:
            return [_error(sid, events.ERR_INVALID_CODE_CHANGE)]
        if not self._registry.update_code(payload.session_id, payload.code):
            return [_error(sid, events.ERR_UPDATE_CODE_FAILED)]
        return [
            Emit(
                events.CODE_UPDATE,
                {"code": payload.code},
                to=payload.session_id,
                skip_sid=sid,
            )
        ]

    def _language_change(self, sid: str, data: Any) -> list[Effect]:
        payload = _parse(LanguageChange, data)
        if payload is None or not payload.session_id or not payload.language:
            return [_error(sid, events.ERR_INVALID_LANGUAGE_CHANGE)]
        if not isinstance(payload.language, str) or payload.language not in Language.values():
            return [_error(sid, events.ERR_INVALID_LANGUAGE)]
        if not self._registry.update_language(payload.session_id, payload.language):
            return [_error(sid, events.ERR_UPDATE_LANGUAGE_FAILED)]
        return [
            Emit(
                events.LANGUAGE_UPDATE,
                {"language": payload.language},
                to=payload.session_id,
                skip_sid=sid,
            )
        ]

    def _output_change(self, sid: str, data: Any) -> list[Effect]:
        # Output is relayed only, never stored.
        payload = _parse(OutputChange, data)
        if payload is None or not payload.session_id:
            return [_error(sid, events.ERR_INVALID_OUTPUT)]
        return [
            Emit(
                events.OUTPUT_UPDATE,
                {
                    "output": payload.output,
                    "error": payload.error,
                    "isRunning": payload.is_running,
                },
                to=payload.session_id,
                skip_sid=sid,
            )
        ]

    def _activity_change(self, sid: str, data: Any) -> list[Effect]:
        payload = _parse(ActivityChange, data)
        if payload is None or not payload.session_id or payload.is_active is None:
            return []
        snapshot = self._presence.set_active(payload.session_id, sid, payload.is_active)
        if snapshot is None:
            return []
        return [_presence(payload.session_id, snapshot)]

    # ---------- helpers ----------
    def _leave(self, sid: str, room: str) -> list[Effect]:
        effects: list[Effect] = [LeaveRoom(sid, room)]
        snapshot = self._presence.leave(room, sid)
        if snapshot is not None:
            effects.append(_presence(room, snapshot))
        return effects


def _parse(model: type[InboundPayload], data: Any) -> Any:
    if not isinstance(data, dict):
        return None
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        logger.debug("Rejected %s payload: %s", model.__name__, exc)
        return None
