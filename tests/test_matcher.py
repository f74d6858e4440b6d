from datetime import datetime

import pytest

from services.matcher import ReminderMatcher, reminder_matches
from services.records import HabitRecord
from tests.conftest import NOW, habit_data

pytestmark = pytest.mark.anyio


def make_habit(reminder_time):
    return HabitRecord(id="h1", owner_id="u1", **habit_data(reminder_time=reminder_time))


def test_reminder_matches_exact_minute_only():
    habit = make_habit("07:00")

    assert reminder_matches(habit, datetime(2024, 3, 15, 7, 0, 42))
    assert not reminder_matches(habit, datetime(2024, 3, 15, 7, 1))
    assert not reminder_matches(habit, datetime(2024, 3, 15, 19, 0))


def test_reminder_without_time_never_matches():
    assert not reminder_matches(make_habit(None), NOW)


async def test_find_due_skips_habits_completed_today(stores):
    open_habit = await stores.habits.create("u1", habit_data(name="Read"))
    done_habit = await stores.habits.create("u1", habit_data(name="Run"))
    await stores.habits.create("u1", habit_data(name="Stretch", reminder_time="08:30"))
    await stores.habits.create("u1", habit_data(name="Journal", reminder_time=None))
    await stores.ledger.create_completion(done_habit.id, NOW.date())

    due = await ReminderMatcher(stores.habits, stores.ledger).find_due(NOW)

    assert [h.id for h in due] == [open_habit.id]


async def test_skip_today_does_not_suppress_reminder(stores):
    habit = await stores.habits.create("u1", habit_data())
    await stores.ledger.create_skip(habit.id, NOW.date())

    due = await ReminderMatcher(stores.habits, stores.ledger).find_due(NOW)

    assert [h.id for h in due] == [habit.id]


async def test_yesterdays_completion_does_not_suppress(stores):
    habit = await stores.habits.create("u1", habit_data())
    await stores.ledger.create_completion(habit.id, datetime(2024, 3, 14).date())

    due = await ReminderMatcher(stores.habits, stores.ledger).find_due(NOW)

    assert [h.id for h in due] == [habit.id]


def test_loosely_formatted_reminder_never_matches():
    assert not reminder_matches(make_habit("7:0"), datetime(2024, 3, 15, 7, 0))
