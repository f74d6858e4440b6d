import pytest

from services.records import SubscriptionKeys
from services.scheduler import ReminderScheduler
from tests.conftest import NOW, habit_data

pytestmark = pytest.mark.anyio


class BrokenDispatcher:
    async def run_tick(self, now):
        raise RuntimeError("database unavailable")


async def test_run_once_uses_given_time(stores, notifier, dispatcher):
    habit = await stores.habits.create("u1", habit_data())
    await stores.subscriptions.subscribe("u1", "https://push.example/a", SubscriptionKeys(p256dh="p", auth="a"))

    report = await ReminderScheduler(dispatcher).run_once(NOW)

    assert report.ran_at == NOW
    assert report.sent == 1
    assert notifier.calls[0][2]["habitId"] == habit.id


async def test_run_once_falls_back_to_clock(dispatcher):
    scheduler = ReminderScheduler(dispatcher, clock=lambda: NOW)

    report = await scheduler.run_once()

    assert report.ran_at == NOW


async def test_run_once_swallows_tick_errors():
    scheduler = ReminderScheduler(BrokenDispatcher(), clock=lambda: NOW)

    assert await scheduler.run_once() is None


async def test_start_and_shutdown(dispatcher):
    scheduler = ReminderScheduler(dispatcher)

    scheduler.start()
    assert scheduler.running
    scheduler.start()

    scheduler.shutdown()
    assert not scheduler.running
