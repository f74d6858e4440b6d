from __future__ import annotations

from datetime import date
from typing import Optional

from beanie.odm.fields import PydanticObjectId
from pydantic import Field
from pymongo import IndexModel, ASCENDING, DESCENDING

from .base import BaseDoc
from .enums import HabitCategory, HabitFrequency, LedgerKind


class Habit(BaseDoc):
    user_id: PydanticObjectId
    name: str = Field(min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    category: HabitCategory
    frequency: HabitFrequency
    times_per_day: Optional[int] = Field(default=None, ge=1, le=24)
    times_per_week: Optional[int] = Field(default=None, ge=1, le=7)
    times_per_month: Optional[int] = Field(default=None, ge=1, le=31)
    reminder_time: Optional[str] = Field(default=None, min_length=5, max_length=5)

    class Settings:
        name = "habits"
        indexes = [
            IndexModel([("user_id", ASCENDING), ("created_at", DESCENDING)]),
            IndexModel([("user_id", ASCENDING), ("category", ASCENDING)]),
            IndexModel([("reminder_time", ASCENDING)], sparse=True),
        ]


class LedgerEntry(BaseDoc):
    """A completion or a skip. One entry per (habit, day) regardless of kind."""

    habit_id: PydanticObjectId
    kind: LedgerKind
    day: date
    duration: Optional[int] = Field(default=None, ge=1, le=1440)
    notes: Optional[str] = Field(default=None, max_length=500)
    reason: Optional[str] = Field(default=None, max_length=500)

    class Settings:
        name = "habit_ledger"
        indexes = [
            IndexModel([("habit_id", ASCENDING), ("day", ASCENDING)], unique=True),
            IndexModel([("habit_id", ASCENDING), ("kind", ASCENDING), ("day", DESCENDING)]),
        ]
