"""Socket.IO transport for the real-time gateway."""

import logging
from typing import Any, Awaitable, Callable

import socketio

from realtime.gateway import Effect, Emit, EnterRoom, Gateway, LeaveRoom

logger = logging.getLogger(__name__)


def create_socket_server(gateway: Gateway, cors_origins: list[str]) -> socketio.AsyncServer:
    """Create an ASGI Socket.IO server with the gateway's handlers registered."""
    sio = socketio.AsyncServer(
        async_mode="asgi",
        cors_allowed_origins=cors_origins,
        logger=False,
        engineio_logger=False,
    )
    register_handlers(sio, gateway)
    return sio


def register_handlers(sio: Any, gateway: Gateway) -> None:
    """Attach connect/disconnect and every protocol event to ``sio``."""

    async def connect(sid: str, environ: dict[str, Any], auth: Any = None) -> None:
        await apply_effects(sio, gateway.connect(sid))

    async def disconnect(sid: str, *args: Any) -> None:
        await _run(sio, "disconnect", sid, lambda: gateway.disconnect(sid))

    sio.on("connect", connect)
    sio.on("disconnect", disconnect)
    for event in gateway.event_names:
        sio.on(event, _event_handler(sio, gateway, event))


def _event_handler(
    sio: Any, gateway: Gateway, event: str
) -> Callable[..., Awaitable[None]]:
    async def handler(sid: str, data: Any = None) -> None:
        await _run(sio, event, sid, lambda: gateway.handle(sid, event, data))

    return handler


async def _run(
    sio: Any, event: str, sid: str, decide: Callable[[], list[Effect]]
) -> None:
    # A failing handler must not take down the connection or the process.
    try:
        effects = decide()
    except Exception:
        logger.exception("Handler for %r failed: sid=%s", event, sid)
        return
    await apply_effects(sio, effects)


async def apply_effects(sio: Any, effects: list[Effect]) -> None:
    """Carry out gateway effects against the Socket.IO server, in order."""
    for effect in effects:
        if isinstance(effect, EnterRoom):
            await sio.enter_room(effect.sid, effect.room)
        elif isinstance(effect, LeaveRoom):
            await sio.leave_room(effect.sid, effect.room)
        elif isinstance(effect, Emit):
            await sio.emit(effect.event, effect.data, to=effect.to, skip_sid=effect.skip_sid)
        else:
            raise TypeError(f"unsupported effect: {effect!r}")
