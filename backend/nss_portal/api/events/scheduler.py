import asyncio
import logging
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from nss_portal.api.events import service

logger = logging.getLogger(__name__)


class EventStatusScheduler:
    """
    Periodic event status sweep.

    Runs one sweep as soon as it starts and then one every ``interval``
    seconds. A failed sweep is logged and retried on the next interval.
    """

    def __init__(self, session_factory: Callable[[], AsyncSession], interval: float = 60):
        self.session_factory = session_factory
        self.interval = interval
        self.running = False
        self._task: Optional[asyncio.Task] = None

    async def tick(self, now: Optional[datetime] = None) -> Optional[tuple[int, int]]:
        try:
            async with self.session_factory() as session:
                return await service.update_event_statuses(session, now=now)
        except Exception:
            logger.exception("Error updating event statuses")
            return None

    async def start(self):
        if self.running:
            logger.warning("Event status scheduler already running")
            return
        self.running = True
        self._task = asyncio.create_task(self._loop())
        logger.info("Event status scheduler started, interval %ss", self.interval)

    async def stop(self):
        self.running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("Event status scheduler stopped")

    async def _loop(self):
        while self.running:
            await self.tick()
            await asyncio.sleep(self.interval)
