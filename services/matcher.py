from __future__ import annotations

import logging
from datetime import datetime
from typing import List

from services.records import HabitRecord
from stores.base import HabitStore, LedgerStore
from utils.dates import parse_hhmm

logger = logging.getLogger(__name__)


def reminder_matches(habit: HabitRecord, now: datetime) -> bool:
    parsed = parse_hhmm(habit.reminder_time)
    if not parsed:
        return False
    return parsed == (now.hour, now.minute)


class ReminderMatcher:
    """Finds habits whose reminder is due this minute and that are still open today.

    Matching is exact to the minute: a tick that does not run during the
    reminder minute does not send that day's reminder later.
    """

    def __init__(self, habits: HabitStore, ledger: LedgerStore):
        self.habits = habits
        self.ledger = ledger

    async def find_due(self, now: datetime) -> List[HabitRecord]:
        today = now.date()
        due: List[HabitRecord] = []

        for habit in await self.habits.list_with_reminder():
            if not reminder_matches(habit, now):
                continue
            if await self.ledger.has_completion(habit.id, today):
                logger.debug("Habit %s already completed on %s, no reminder", habit.id, today)
                continue
            due.append(habit)

        return due
