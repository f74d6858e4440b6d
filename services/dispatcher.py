from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List

import anyio
from pydantic import BaseModel, Field

from services.matcher import ReminderMatcher
from services.notifier import Notifier, NotifyResult, NotifyStatus
from services.records import HabitRecord, SubscriptionRecord
from stores.base import SubscriptionRegistry

logger = logging.getLogger(__name__)

REMINDER_TITLE = "Habit Reminder"


def reminder_message(habit: HabitRecord) -> str:
    return f'Don\'t forget to complete "{habit.name}"!'


def reminder_payload(habit: HabitRecord, message: str) -> Dict[str, Any]:
    return {"title": REMINDER_TITLE, "body": message, "habitId": habit.id}


class DispatchReport(BaseModel):
    habit_id: str
    sent: int = 0
    pruned: int = 0
    failed: int = 0

    @property
    def attempted(self) -> int:
        return self.sent + self.pruned + self.failed


class TickReport(BaseModel):
    ran_at: datetime
    due: int = 0
    sent: int = 0
    pruned: int = 0
    failed: int = 0
    habits: List[DispatchReport] = Field(default_factory=list)


class ReminderDispatcher:
    """Sends reminders for due habits and prunes endpoints the push service has dropped.

    Holds no state between ticks: everything it needs is read from the
    ledger and the registry on each run.
    """

    def __init__(
        self,
        matcher: ReminderMatcher,
        registry: SubscriptionRegistry,
        notifier: Notifier,
        send_timeout: float = 10.0,
    ):
        self.matcher = matcher
        self.registry = registry
        self.notifier = notifier
        self.send_timeout = send_timeout

    async def _notify(self, sub: SubscriptionRecord, payload: Dict[str, Any]) -> NotifyResult:
        try:
            with anyio.fail_after(self.send_timeout):
                return await self.notifier.send(sub.endpoint, sub.keys, payload)
        except TimeoutError:
            return NotifyResult.error(f"timeout after {self.send_timeout}s")
        except Exception as exc:
            logger.exception("Notifier crashed for subscription %s", sub.id)
            return NotifyResult.error(repr(exc))

    async def _deliver_one(self, sub: SubscriptionRecord, payload: Dict[str, Any], report: DispatchReport) -> None:
        result = await self._notify(sub, payload)

        if result.status == NotifyStatus.ok:
            report.sent += 1
            return

        if result.status == NotifyStatus.expired:
            try:
                await self.registry.delete(sub.endpoint)
            except Exception:
                logger.exception("Could not delete expired subscription %s", sub.id)
                report.failed += 1
                return
            report.pruned += 1
            logger.info("Deleted expired subscription %s (%s)", sub.id, result.detail or "gone")
            return

        report.failed += 1
        logger.error("Error sending notification to subscription %s: %s", sub.id, result.detail)

    async def dispatch(self, habit: HabitRecord, message: str) -> DispatchReport:
        report = DispatchReport(habit_id=habit.id)
        subscriptions = await self.registry.list_for_habit(habit.id, habit.owner_id)
        if not subscriptions:
            return report

        payload = reminder_payload(habit, message)
        async with anyio.create_task_group() as tg:
            for sub in subscriptions:
                tg.start_soon(self._deliver_one, sub, payload, report)

        return report

    async def run_tick(self, now: datetime) -> TickReport:
        tick = TickReport(ran_at=now)

        due = await self.matcher.find_due(now)
        tick.due = len(due)

        for habit in due:
            try:
                report = await self.dispatch(habit, reminder_message(habit))
            except Exception:
                logger.exception("Reminder dispatch failed for habit %s", habit.id)
                continue
            tick.habits.append(report)
            tick.sent += report.sent
            tick.pruned += report.pruned
            tick.failed += report.failed

        if due:
            logger.info(
                "Reminder tick %s: due=%d sent=%d pruned=%d failed=%d",
                now.strftime("%H:%M"), tick.due, tick.sent, tick.pruned, tick.failed,
            )
        return tick
