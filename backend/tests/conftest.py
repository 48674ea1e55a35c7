"""Shared fixtures: an in-memory stand-in for the Socket.IO server."""

from collections import defaultdict
from typing import Any

import pytest

from realtime.gateway import Gateway
from realtime.server import register_handlers
from services.presence import PresenceTracker
from services.session import SessionRegistry


class FakeSocketServer:
    """Implements the subset of ``socketio.AsyncServer`` the adapter uses.

    Like Socket.IO, every sid is also a room containing only itself.
    """

    def __init__(self) -> None:
        self.handlers: dict[str, Any] = {}
        self.rooms: dict[str, set[str]] = defaultdict(set)
        self.received: dict[str, list[tuple[str, Any]]] = defaultdict(list)

    def on(self, event, handler=None, namespace=None):
        self.handlers[event] = handler

    async def enter_room(self, sid, room, namespace=None):
        self.rooms[room].add(sid)

    async def leave_room(self, sid, room, namespace=None):
        self.rooms[room].discard(sid)

    async def emit(self, event, data=None, to=None, room=None, skip_sid=None, namespace=None):
        target = to if to is not None else room
        for sid in sorted(self.rooms.get(target, ())):
            if sid != skip_sid:
                self.received[sid].append((event, data))

    # -- client side helpers --
    async def connect(self, sid: str) -> None:
        self.rooms[sid].add(sid)
        await self.handlers["connect"](sid, {})

    async def disconnect(self, sid: str) -> None:
        await self.handlers["disconnect"](sid, "client disconnect")
        for members in self.rooms.values():
            members.discard(sid)

    async def send(self, sid: str, event: str, data: Any = None) -> None:
        await self.handlers[event](sid, data)

    def events(self, sid: str, event: str) -> list[Any]:
        return [data for name, data in self.received[sid] if name == event]


@pytest.fixture
def registry() -> SessionRegistry:
    return SessionRegistry()


@pytest.fixture
def presence() -> PresenceTracker:
    return PresenceTracker()


@pytest.fixture
def gateway(registry, presence) -> Gateway:
    return Gateway(registry, presence)


@pytest.fixture
def sio(gateway) -> FakeSocketServer:
    server = FakeSocketServer()
    register_handlers(server, gateway)
    return server
