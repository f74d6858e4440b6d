from __future__ import annotations

from datetime import date, datetime, time
from typing import Any, Dict, List, Optional, Tuple

from beanie.odm.fields import PydanticObjectId
from pymongo.errors import DuplicateKeyError

from models.enums import LedgerKind
from models.habits import Habit, LedgerEntry
from models.notifications import NotificationSubscription
from models.users import User
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
from utils.dates import as_day


def to_oid(value: Optional[str]) -> Optional[PydanticObjectId]:
    if not value:
        return None
    try:
        return PydanticObjectId(value)
    except Exception:
        return None


def day_start(d: date) -> datetime:
    return datetime.combine(d, time.min)


def to_user_record(u: User) -> UserRecord:
    return UserRecord(
        id=str(u.id),
        email=u.email,
        name=u.name,
        password_hash=u.password_hash,
        created_at=u.created_at,
    )


def to_habit_record(h: Habit) -> HabitRecord:
    return HabitRecord(
        id=str(h.id),
        owner_id=str(h.user_id),
        name=h.name,
        description=h.description,
        category=h.category,
        frequency=h.frequency,
        times_per_day=h.times_per_day,
        times_per_week=h.times_per_week,
        times_per_month=h.times_per_month,
        reminder_time=h.reminder_time,
        created_at=h.created_at,
        updated_at=h.updated_at,
    )


def to_completion_record(e: LedgerEntry) -> CompletionRecord:
    return CompletionRecord(
        id=str(e.id),
        habit_id=str(e.habit_id),
        day=as_day(e.day),
        duration=e.duration,
        notes=e.notes,
        completed_at=e.created_at,
    )


def to_skip_record(e: LedgerEntry) -> SkipRecord:
    return SkipRecord(
        id=str(e.id),
        habit_id=str(e.habit_id),
        day=as_day(e.day),
        reason=e.reason,
        skipped_at=e.created_at,
    )


def to_subscription_record(s: NotificationSubscription) -> SubscriptionRecord:
    return SubscriptionRecord(
        id=str(s.id),
        owner_id=str(s.user_id),
        habit_id=str(s.habit_id) if s.habit_id else None,
        endpoint=s.endpoint,
        keys=SubscriptionKeys(**(s.keys or {})),
        created_at=s.created_at,
    )


class MongoUserStore:
    async def create(self, email: str, password_hash: str, name: Optional[str] = None) -> UserRecord:
        doc = User(email=email.strip().lower(), password_hash=password_hash, name=name)
        try:
            await doc.insert()
        except DuplicateKeyError:
            raise Conflict("User already exists")
        return to_user_record(doc)

    async def get(self, user_id: str) -> Optional[UserRecord]:
        oid = to_oid(user_id)
        if not oid:
            return None
        doc = await User.get(oid)
        return to_user_record(doc) if doc else None

    async def get_by_email(self, email: str) -> Optional[UserRecord]:
        doc = await User.find_one(User.email == email.strip().lower())
        return to_user_record(doc) if doc else None


class MongoHabitStore:
    async def _get_doc(self, owner_id: str, habit_id: str) -> Habit:
        oid = to_oid(habit_id)
        doc = await Habit.get(oid) if oid else None
        if not doc or str(doc.user_id) != owner_id:
            raise NotFound("Habit not found")
        return doc

    async def create(self, owner_id: str, data: Dict[str, Any]) -> HabitRecord:
        doc = Habit(user_id=PydanticObjectId(owner_id), **data)
        await doc.insert()
        return to_habit_record(doc)

    async def get(self, owner_id: str, habit_id: str) -> HabitRecord:
        return to_habit_record(await self._get_doc(owner_id, habit_id))

    async def list_for_owner(self, owner_id: str) -> List[HabitRecord]:
        oid = to_oid(owner_id)
        if not oid:
            return []
        items = await Habit.find(Habit.user_id == oid).sort("-created_at").to_list()
        return [to_habit_record(h) for h in items]

    async def update(self, owner_id: str, habit_id: str, data: Dict[str, Any]) -> HabitRecord:
        doc = await self._get_doc(owner_id, habit_id)
        for key, value in data.items():
            setattr(doc, key, value)
        await doc.touch()
        return to_habit_record(doc)

    async def delete(self, owner_id: str, habit_id: str) -> None:
        doc = await self._get_doc(owner_id, habit_id)
        await LedgerEntry.find(LedgerEntry.habit_id == doc.id).delete()
        await NotificationSubscription.find(NotificationSubscription.habit_id == doc.id).delete()
        await doc.delete()

    async def list_with_reminder(self) -> List[HabitRecord]:
        items = await Habit.find({"reminder_time": {"$ne": None}}).to_list()
        return [to_habit_record(h) for h in items]


class MongoLedgerStore:
    async def _insert(self, entry: LedgerEntry) -> LedgerEntry:
        try:
            await entry.insert()
        except DuplicateKeyError:
            taken = await LedgerEntry.find_one(
                LedgerEntry.habit_id == entry.habit_id,
                LedgerEntry.day == entry.day,
            )
            taken_kind = taken.kind.value if taken else entry.kind.value
            raise Conflict(ledger_conflict_detail(entry.kind.value, taken_kind))
        return entry

    async def _find(
        self, habit_id: str, kind: LedgerKind, start: Optional[date], end: Optional[date]
    ) -> List[LedgerEntry]:
        oid = to_oid(habit_id)
        if not oid:
            return []
        query: Dict[str, Any] = {"habit_id": oid, "kind": kind.value}
        if start or end:
            query["day"] = {}
            if start:
                query["day"]["$gte"] = day_start(start)
            if end:
                query["day"]["$lte"] = day_start(end)
        return await LedgerEntry.find(query).sort("-day").to_list()

    async def _get(self, entry_id: str, kind: LedgerKind) -> Optional[LedgerEntry]:
        oid = to_oid(entry_id)
        doc = await LedgerEntry.get(oid) if oid else None
        if not doc or doc.kind != kind:
            return None
        return doc

    async def create_completion(
        self,
        habit_id: str,
        day: date,
        duration: Optional[int] = None,
        notes: Optional[str] = None,
    ) -> CompletionRecord:
        entry = LedgerEntry(
            habit_id=PydanticObjectId(habit_id),
            kind=LedgerKind.completion,
            day=day,
            duration=duration,
            notes=notes,
        )
        return to_completion_record(await self._insert(entry))

    async def create_skip(self, habit_id: str, day: date, reason: Optional[str] = None) -> SkipRecord:
        entry = LedgerEntry(
            habit_id=PydanticObjectId(habit_id),
            kind=LedgerKind.skip,
            day=day,
            reason=reason,
        )
        return to_skip_record(await self._insert(entry))

    async def get_completions(
        self, habit_id: str, start: Optional[date] = None, end: Optional[date] = None
    ) -> List[CompletionRecord]:
        return [to_completion_record(e) for e in await self._find(habit_id, LedgerKind.completion, start, end)]

    async def get_skips(
        self, habit_id: str, start: Optional[date] = None, end: Optional[date] = None
    ) -> List[SkipRecord]:
        return [to_skip_record(e) for e in await self._find(habit_id, LedgerKind.skip, start, end)]

    async def has_completion(self, habit_id: str, day: date) -> bool:
        oid = to_oid(habit_id)
        if not oid:
            return False
        n = await LedgerEntry.find(
            {"habit_id": oid, "kind": LedgerKind.completion.value, "day": day_start(day)}
        ).count()
        return bool(n and int(n) > 0)

    async def get_completion(self, completion_id: str) -> Optional[CompletionRecord]:
        doc = await self._get(completion_id, LedgerKind.completion)
        return to_completion_record(doc) if doc else None

    async def get_skip(self, skip_id: str) -> Optional[SkipRecord]:
        doc = await self._get(skip_id, LedgerKind.skip)
        return to_skip_record(doc) if doc else None

    async def delete_completion(self, completion_id: str) -> bool:
        doc = await self._get(completion_id, LedgerKind.completion)
        if not doc:
            return False
        await doc.delete()
        return True

    async def delete_skip(self, skip_id: str) -> bool:
        doc = await self._get(skip_id, LedgerKind.skip)
        if not doc:
            return False
        await doc.delete()
        return True


class MongoSubscriptionRegistry:
    async def _update_existing(
        self,
        doc: NotificationSubscription,
        owner_id: str,
        keys: SubscriptionKeys,
        habit_id: Optional[str],
    ) -> SubscriptionRecord:
        if str(doc.user_id) != owner_id:
            raise Conflict("Endpoint already subscribed by another user")
        doc.keys = keys.model_dump()
        doc.habit_id = to_oid(habit_id)
        await doc.touch()
        return to_subscription_record(doc)

    async def subscribe(
        self,
        owner_id: str,
        endpoint: str,
        keys: SubscriptionKeys,
        habit_id: Optional[str] = None,
    ) -> Tuple[SubscriptionRecord, bool]:
        doc = await NotificationSubscription.find_one(NotificationSubscription.endpoint == endpoint)
        if doc:
            return await self._update_existing(doc, owner_id, keys, habit_id), False

        doc = NotificationSubscription(
            user_id=PydanticObjectId(owner_id),
            habit_id=to_oid(habit_id),
            endpoint=endpoint,
            keys=keys.model_dump(),
        )
        try:
            await doc.insert()
        except DuplicateKeyError:
            # a concurrent subscribe won the insert
            existing = await NotificationSubscription.find_one(NotificationSubscription.endpoint == endpoint)
            if not existing:
                raise
            return await self._update_existing(existing, owner_id, keys, habit_id), False
        return to_subscription_record(doc), True

    async def unsubscribe(self, owner_id: str, endpoint: str) -> bool:
        doc = await NotificationSubscription.find_one(NotificationSubscription.endpoint == endpoint)
        if not doc:
            return False
        if str(doc.user_id) != owner_id:
            raise Forbidden("Subscription does not belong to user")
        await doc.delete()
        return True

    async def list_for_habit(self, habit_id: str, owner_id: str) -> List[SubscriptionRecord]:
        owner_oid = to_oid(owner_id)
        habit_oid = to_oid(habit_id)
        if not owner_oid or not habit_oid:
            return []
        items = await NotificationSubscription.find(
            {"user_id": owner_oid, "$or": [{"habit_id": habit_oid}, {"habit_id": None}]}
        ).to_list()
        return [to_subscription_record(s) for s in items]

    async def list_for_owner(self, owner_id: str) -> List[SubscriptionRecord]:
        oid = to_oid(owner_id)
        if not oid:
            return []
        items = await NotificationSubscription.find(NotificationSubscription.user_id == oid).to_list()
        return [to_subscription_record(s) for s in items]

    async def delete(self, endpoint: str) -> bool:
        result = await NotificationSubscription.find(NotificationSubscription.endpoint == endpoint).delete()
        return bool(result and result.deleted_count)
