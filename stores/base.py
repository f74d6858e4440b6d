"""Persistence interfaces the engine and the API depend on.

Two implementations exist: ``stores.mongo`` (beanie documents) and
``stores.memory`` (process-local dicts, used for local runs and tests).
"""
from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Optional, Protocol, Tuple

from services.records import (
    CompletionRecord,
    HabitRecord,
    SkipRecord,
    SubscriptionKeys,
    SubscriptionRecord,
    UserRecord,
)


def ledger_conflict_detail(kind: str, taken: str) -> str:
    if kind == taken:
        return f"{kind.capitalize()} already exists for this date"
    return f"Cannot record a {kind}: a {taken} already exists for this date"


class UserStore(Protocol):
    async def create(self, email: str, password_hash: str, name: Optional[str] = None) -> UserRecord:
        """Raises Conflict when the email is taken."""

    async def get(self, user_id: str) -> Optional[UserRecord]:
        ...

    async def get_by_email(self, email: str) -> Optional[UserRecord]:
        ...


class HabitStore(Protocol):
    async def create(self, owner_id: str, data: Dict[str, Any]) -> HabitRecord:
        ...

    async def get(self, owner_id: str, habit_id: str) -> HabitRecord:
        """Raises NotFound when the habit is missing or owned by someone else."""

    async def list_for_owner(self, owner_id: str) -> List[HabitRecord]:
        """Newest first."""

    async def update(self, owner_id: str, habit_id: str, data: Dict[str, Any]) -> HabitRecord:
        ...

    async def delete(self, owner_id: str, habit_id: str) -> None:
        """Deletes the habit, its ledger and the subscriptions that target it."""

    async def list_with_reminder(self) -> List[HabitRecord]:
        ...


class LedgerStore(Protocol):
    async def create_completion(
        self,
        habit_id: str,
        day: date,
        duration: Optional[int] = None,
        notes: Optional[str] = None,
    ) -> CompletionRecord:
        """Raises Conflict when (habit, day) already has a completion or a skip."""

    async def create_skip(self, habit_id: str, day: date, reason: Optional[str] = None) -> SkipRecord:
        """Raises Conflict when (habit, day) already has a completion or a skip."""

    async def get_completions(
        self, habit_id: str, start: Optional[date] = None, end: Optional[date] = None
    ) -> List[CompletionRecord]:
        """Newest first; ``start`` and ``end`` are inclusive."""

    async def get_skips(
        self, habit_id: str, start: Optional[date] = None, end: Optional[date] = None
    ) -> List[SkipRecord]:
        ...

    async def has_completion(self, habit_id: str, day: date) -> bool:
        ...

    async def get_completion(self, completion_id: str) -> Optional[CompletionRecord]:
        ...

    async def get_skip(self, skip_id: str) -> Optional[SkipRecord]:
        ...

    async def delete_completion(self, completion_id: str) -> bool:
        ...

    async def delete_skip(self, skip_id: str) -> bool:
        ...


class SubscriptionRegistry(Protocol):
    async def subscribe(
        self,
        owner_id: str,
        endpoint: str,
        keys: SubscriptionKeys,
        habit_id: Optional[str] = None,
    ) -> Tuple[SubscriptionRecord, bool]:
        """Returns (subscription, created). Raises Conflict when another owner holds the endpoint."""

    async def unsubscribe(self, owner_id: str, endpoint: str) -> bool:
        """Raises Forbidden for a foreign endpoint; False when nothing was registered."""

    async def list_for_habit(self, habit_id: str, owner_id: str) -> List[SubscriptionRecord]:
        """Subscriptions targeting the habit plus the owner's all-habit subscriptions."""

    async def list_for_owner(self, owner_id: str) -> List[SubscriptionRecord]:
        ...

    async def delete(self, endpoint: str) -> bool:
        ...
