"""
Idle Sweeper - Background task that expires idle sessions.
"""

from __future__ import annotations
from typing import TYPE_CHECKING
import asyncio
import logging

if TYPE_CHECKING:
    from .manager import SessionManager

logger = logging.getLogger(__name__)


class IdleSweeper:
    """
    Calls SessionManager.expire_idle every `interval` seconds.

    Usage:
        sweeper = IdleSweeper(manager)
        sweeper.start()
        ...
        await sweeper.stop()
    """

    def __init__(self, manager: SessionManager, interval: float | None = None):
        self.manager = manager
        self.interval = interval if interval is not None else manager.settings.sweep_interval
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self):
        """Schedule the sweep loop on the running event loop."""
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="wordplay-idle-sweeper")
        logger.debug("Idle sweeper started (every %.0fs)", self.interval)

    async def stop(self):
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.debug("Idle sweeper stopped")

    async def sweep_once(self) -> list[str]:
        return await self.manager.expire_idle()

    async def _run(self):
        while True:
            await asyncio.sleep(self.interval)
            try:
                await self.sweep_once()
            except Exception:
                # Logged; the next tick sweeps again
                logger.exception("Idle sweep failed")
