"""Process-local stores.

Every mutating method does its uniqueness check and its write without an
``await`` in between, so under a single event loop each call is atomic.
"""
from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from bson import ObjectId

from services.errors import Conflict, Forbidden, NotFound
from services.records import (
    CompletionRecord,
    HabitRecord,
    SkipRecord,
    SubscriptionKeys,
    SubscriptionRecord,
    UserRecord,
)
from stores.base import ledger_conflict_detail


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(ObjectId())


def in_range(day: date, start: Optional[date], end: Optional[date]) -> bool:
    if start and day < start:
        return False
    if end and day > end:
        return False
    return True


class MemoryState:
    def __init__(self):
        self.users: Dict[str, UserRecord] = {}
        self.habits: Dict[str, HabitRecord] = {}
        self.completions: Dict[str, CompletionRecord] = {}
        self.skips: Dict[str, SkipRecord] = {}
        # (habit_id, day) -> record id, shared by both kinds
        self.ledger_days: Dict[Tuple[str, date], str] = {}
        self.subscriptions: Dict[str, SubscriptionRecord] = {}


class MemoryUserStore:
    def __init__(self, state: MemoryState):
        self.state = state

    async def create(self, email: str, password_hash: str, name: Optional[str] = None) -> UserRecord:
        email = email.strip().lower()
        if any(u.email == email for u in self.state.users.values()):
            raise Conflict("User already exists")
        user = UserRecord(id=new_id(), email=email, name=name, password_hash=password_hash, created_at=utcnow())
        self.state.users[user.id] = user
        return user

    async def get(self, user_id: str) -> Optional[UserRecord]:
        return self.state.users.get(user_id)

    async def get_by_email(self, email: str) -> Optional[UserRecord]:
        email = email.strip().lower()
        for u in self.state.users.values():
            if u.email == email:
                return u
        return None


class MemoryHabitStore:
    def __init__(self, state: MemoryState):
        self.state = state

    async def create(self, owner_id: str, data: Dict[str, Any]) -> HabitRecord:
        now = utcnow()
        habit = HabitRecord(id=new_id(), owner_id=owner_id, created_at=now, updated_at=now, **data)
        self.state.habits[habit.id] = habit
        return habit

    async def get(self, owner_id: str, habit_id: str) -> HabitRecord:
        habit = self.state.habits.get(habit_id)
        if not habit or habit.owner_id != owner_id:
            raise NotFound("Habit not found")
        return habit

    async def list_for_owner(self, owner_id: str) -> List[HabitRecord]:
        items = [h for h in self.state.habits.values() if h.owner_id == owner_id]
        return sorted(items, key=lambda h: h.created_at, reverse=True)

    async def update(self, owner_id: str, habit_id: str, data: Dict[str, Any]) -> HabitRecord:
        habit = await self.get(owner_id, habit_id)
        updated = habit.model_copy(update={**data, "updated_at": utcnow()})
        self.state.habits[habit_id] = updated
        return updated

    async def delete(self, owner_id: str, habit_id: str) -> None:
        await self.get(owner_id, habit_id)
        del self.state.habits[habit_id]

        for key in [k for k in self.state.ledger_days if k[0] == habit_id]:
            del self.state.ledger_days[key]
        for cid in [c.id for c in self.state.completions.values() if c.habit_id == habit_id]:
            del self.state.completions[cid]
        for sid in [s.id for s in self.state.skips.values() if s.habit_id == habit_id]:
            del self.state.skips[sid]
        for endpoint in [s.endpoint for s in self.state.subscriptions.values() if s.habit_id == habit_id]:
            del self.state.subscriptions[endpoint]

    async def list_with_reminder(self) -> List[HabitRecord]:
        return [h for h in self.state.habits.values() if h.reminder_time]


class MemoryLedgerStore:
    def __init__(self, state: MemoryState):
        self.state = state

    def _claim(self, habit_id: str, day: date, record_id: str, kind: str) -> None:
        key = (habit_id, day)
        taken_id = self.state.ledger_days.get(key)
        if taken_id is not None:
            taken = "completion" if taken_id in self.state.completions else "skip"
            raise Conflict(ledger_conflict_detail(kind, taken))
        self.state.ledger_days[key] = record_id

    async def create_completion(
        self,
        habit_id: str,
        day: date,
        duration: Optional[int] = None,
        notes: Optional[str] = None,
    ) -> CompletionRecord:
        record = CompletionRecord(
            id=new_id(), habit_id=habit_id, day=day, duration=duration, notes=notes, completed_at=utcnow()
        )
        self._claim(habit_id, day, record.id, "completion")
        self.state.completions[record.id] = record
        return record

    async def create_skip(self, habit_id: str, day: date, reason: Optional[str] = None) -> SkipRecord:
        record = SkipRecord(id=new_id(), habit_id=habit_id, day=day, reason=reason, skipped_at=utcnow())
        self._claim(habit_id, day, record.id, "skip")
        self.state.skips[record.id] = record
        return record

    async def get_completions(
        self, habit_id: str, start: Optional[date] = None, end: Optional[date] = None
    ) -> List[CompletionRecord]:
        items = [
            c for c in self.state.completions.values()
            if c.habit_id == habit_id and in_range(c.day, start, end)
        ]
        return sorted(items, key=lambda c: c.day, reverse=True)

    async def get_skips(
        self, habit_id: str, start: Optional[date] = None, end: Optional[date] = None
    ) -> List[SkipRecord]:
        items = [
            s for s in self.state.skips.values()
            if s.habit_id == habit_id and in_range(s.day, start, end)
        ]
        return sorted(items, key=lambda s: s.day, reverse=True)

    async def has_completion(self, habit_id: str, day: date) -> bool:
        record_id = self.state.ledger_days.get((habit_id, day))
        return record_id is not None and record_id in self.state.completions

    async def get_completion(self, completion_id: str) -> Optional[CompletionRecord]:
        return self.state.completions.get(completion_id)

    async def get_skip(self, skip_id: str) -> Optional[SkipRecord]:
        return self.state.skips.get(skip_id)

    async def delete_completion(self, completion_id: str) -> bool:
        record = self.state.completions.pop(completion_id, None)
        if not record:
            return False
        self.state.ledger_days.pop((record.habit_id, record.day), None)
        return True

    async def delete_skip(self, skip_id: str) -> bool:
        record = self.state.skips.pop(skip_id, None)
        if not record:
            return False
        self.state.ledger_days.pop((record.habit_id, record.day), None)
        return True


class MemorySubscriptionRegistry:
    def __init__(self, state: MemoryState):
        self.state = state

    async def subscribe(
        self,
        owner_id: str,
        endpoint: str,
        keys: SubscriptionKeys,
        habit_id: Optional[str] = None,
    ) -> Tuple[SubscriptionRecord, bool]:
        existing = self.state.subscriptions.get(endpoint)
        if existing:
            if existing.owner_id != owner_id:
                raise Conflict("Endpoint already subscribed by another user")
            updated = existing.model_copy(update={"keys": keys, "habit_id": habit_id})
            self.state.subscriptions[endpoint] = updated
            return updated, False

        sub = SubscriptionRecord(
            id=new_id(), owner_id=owner_id, habit_id=habit_id, endpoint=endpoint, keys=keys, created_at=utcnow()
        )
        self.state.subscriptions[endpoint] = sub
        return sub, True

    async def unsubscribe(self, owner_id: str, endpoint: str) -> bool:
        existing = self.state.subscriptions.get(endpoint)
        if not existing:
            return False
        if existing.owner_id != owner_id:
            raise Forbidden("Subscription does not belong to user")
        del self.state.subscriptions[endpoint]
        return True

    async def list_for_habit(self, habit_id: str, owner_id: str) -> List[SubscriptionRecord]:
        return [
            s for s in self.state.subscriptions.values()
            if s.owner_id == owner_id and (s.habit_id is None or s.habit_id == habit_id)
        ]

    async def list_for_owner(self, owner_id: str) -> List[SubscriptionRecord]:
        return [s for s in self.state.subscriptions.values() if s.owner_id == owner_id]

    async def delete(self, endpoint: str) -> bool:
        return self.state.subscriptions.pop(endpoint, None) is not None
