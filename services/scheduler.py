from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional
from zoneinfo import ZoneInfo

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from services.dispatcher import ReminderDispatcher, TickReport
from utils.dates import local_now

logger = logging.getLogger(__name__)

JOB_ID = "habit-reminders"


class ReminderScheduler:
    """Fires ``dispatcher.run_tick`` at the start of every minute.

    Ticks never overlap (``max_instances=1``) and a tick that starts too late
    is dropped rather than replayed.
    """

    def __init__(
        self,
        dispatcher: ReminderDispatcher,
        tz: Optional[ZoneInfo] = None,
        clock: Optional[Callable[[], datetime]] = None,
        misfire_grace_seconds: int = 30,
    ):
        self.dispatcher = dispatcher
        self.tz = tz
        self.clock = clock or (lambda: local_now(tz))
        self.misfire_grace_seconds = misfire_grace_seconds
        self._scheduler: Optional[AsyncIOScheduler] = None

    @property
    def running(self) -> bool:
        return bool(self._scheduler and self._scheduler.running)

    async def run_once(self, now: Optional[datetime] = None) -> Optional[TickReport]:
        now = now or self.clock()
        try:
            logger.debug("Running reminder check for %s", now.isoformat())
            return await self.dispatcher.run_tick(now)
        except Exception:
            logger.exception("Error in reminder check job")
            return None

    def start(self) -> None:
        if self.running:
            return
        kwargs = {"timezone": self.tz} if self.tz else {}
        self._scheduler = AsyncIOScheduler(**kwargs)
        self._scheduler.add_job(
            self.run_once,
            CronTrigger(second=0, **kwargs),
            id=JOB_ID,
            max_instances=1,
            coalesce=True,
            misfire_grace_time=self.misfire_grace_seconds,
            replace_existing=True,
        )
        self._scheduler.start()
        logger.info("Reminder scheduler started")

    def shutdown(self) -> None:
        if not self.running:
            return
        self._scheduler.shutdown(wait=False)
        self._scheduler = None
        logger.info("Reminder scheduler stopped")
