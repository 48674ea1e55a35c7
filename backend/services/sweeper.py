"""Background task that periodically expires idle sessions."""

import asyncio
import contextlib
import logging

from config import settings
from services.session import SessionRegistry

logger = logging.getLogger(__name__)


class SessionSweeper:
    """Runs ``SessionRegistry.sweep_expired`` on a fixed interval.

    The task is owned by the application lifespan: ``start`` at startup,
    ``stop`` at shutdown.
    """

    def __init__(
        self, registry: SessionRegistry, interval_seconds: float | None = None
    ) -> None:
        self._registry = registry
        self._interval = (
            settings.session_cleanup_interval_seconds
            if interval_seconds is None
            else interval_seconds
        )
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._loop())
        logger.info("Session sweeper started (every %ss)", self._interval)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("Session sweeper stopped")

    def sweep_once(self) -> int:
        removed = self._registry.sweep_expired()
        if removed:
            logger.info(
                "Sweep removed %d session(s), %d remaining",
                removed,
                self._registry.count(),
            )
        return removed

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                self.sweep_once()
            except Exception:
                logger.exception("Session sweep failed")
